"""TDEE trend series, weight rate, and adaptation/plateau detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from tdeetrack.config.settings import EstimatorConfig
from tdeetrack.tracking.models import DailyRecord, Trend, TrendPoint
from tdeetrack.tracking.observed import ObservedEstimate
from tdeetrack.tracking.weights import (
    WeightSeries,
    interpolate_weights,
    linear_fit,
    smoothed_trend,
    weekly_weight_change,
)

logger = logging.getLogger(__name__)


@dataclass
class TrendAnalysis:
    """Everything the trend step contributes to the estimate."""

    trend: Trend
    weekly_weight_change_kg: float
    weight_trend_kg: Optional[float]
    metabolic_adaptation: bool
    plateau_detected: bool
    trend_data: list[TrendPoint] = field(default_factory=list)


def merge_trend(
    history: Iterable[TrendPoint],
    point: Optional[TrendPoint] = None,
) -> list[TrendPoint]:
    """
    Append or overwrite a point in the TDEE series.

    The result is ascending by day with one point per day; when a day
    appears more than once the later entry wins, so recomputing today
    replaces today's point.
    """
    by_day: dict[date, TrendPoint] = {}
    for existing in history:
        by_day[existing.day] = existing
    if point is not None:
        by_day[point.day] = point
    return [by_day[d] for d in sorted(by_day)]


def classify_trend(
    points: Sequence[TrendPoint],
    current_tdee: float,
    config: Optional[EstimatorConfig] = None,
) -> Trend:
    """
    Classify the direction of the last ``trend_points`` TDEE values.

    The regression slope (kcal/day, x in calendar days) is scaled to a week
    and compared against a percentage of the current TDEE.
    """
    config = config or EstimatorConfig()
    recent = list(points)[-config.trend_points:]
    if len(recent) < 2 or current_tdee <= 0:
        return Trend.STABLE

    origin = recent[0].day
    xs = [(p.day - origin).days for p in recent]
    ys = [p.tdee for p in recent]
    slope, _ = linear_fit(xs, ys)

    weekly = slope * 7
    threshold = config.trend_threshold_pct * current_tdee
    if weekly > threshold:
        return Trend.INCREASING
    if weekly < -threshold:
        return Trend.DECREASING
    return Trend.STABLE


def detect_metabolic_adaptation(
    observed: Optional[ObservedEstimate],
    formula_tdee: float,
    config: Optional[EstimatorConfig] = None,
) -> bool:
    """
    Observed expenditure sustainedly below what the formula predicts.

    Requires a window of at least ``adaptation_min_days`` and an observed
    TDEE more than ``adaptation_threshold`` below the formula TDEE.
    """
    config = config or EstimatorConfig()
    if observed is None or formula_tdee <= 0:
        return False
    if observed.window_days < config.adaptation_min_days:
        return False
    shortfall = (formula_tdee - observed.observed_tdee) / formula_tdee
    return shortfall > config.adaptation_threshold


def weekly_changes(series: WeightSeries, anchor: date, weeks: int) -> list[float]:
    """
    Weight change over each of the ``weeks`` consecutive 7-day windows
    ending at ``anchor``, most recent first. Stops early where the series
    does not cover a window.
    """
    changes = []
    for k in range(weeks):
        end = anchor - timedelta(days=7 * k)
        start = end - timedelta(days=7)
        w_end = series.weight_on(end)
        w_start = series.weight_on(start)
        if w_end is None or w_start is None:
            break
        changes.append(w_end - w_start)
    return changes


def detect_plateau(
    records: Sequence[DailyRecord],
    series: WeightSeries,
    recommended_intake: float,
    as_of: date,
    config: Optional[EstimatorConfig] = None,
) -> bool:
    """
    Weight flat for ``plateau_weeks`` straight weeks while eating below target.

    Each 7-day window must change by no more than ``plateau_threshold_kg``
    and average logged intake over the whole span must be below
    ``recommended_intake``.
    """
    config = config or EstimatorConfig()
    if len(series) == 0:
        return False

    anchor = min(as_of, series.days[-1])
    changes = weekly_changes(series, anchor, config.plateau_weeks)
    if len(changes) < config.plateau_weeks:
        return False
    if any(abs(change) > config.plateau_threshold_kg for change in changes):
        return False

    span_start = anchor - timedelta(days=7 * config.plateau_weeks - 1)
    intakes = [r.calories_in for r in records if span_start <= r.day <= anchor and r.has_intake]
    if not intakes:
        return False
    return sum(intakes) / len(intakes) < recommended_intake


def analyze_trend(
    records: Sequence[DailyRecord],
    history: Iterable[TrendPoint],
    point: TrendPoint,
    observed: Optional[ObservedEstimate],
    formula_tdee: float,
    recommended_intake: float,
    as_of: date,
    config: Optional[EstimatorConfig] = None,
) -> TrendAnalysis:
    """Run every trend-level check for one estimation run."""
    config = config or EstimatorConfig()
    trend_data = merge_trend(history, point)

    past = [r for r in records if r.day <= as_of]
    series = interpolate_weights(past)
    smoothed = smoothed_trend(past, config.weight_smoothing)

    adaptation = detect_metabolic_adaptation(observed, formula_tdee, config)
    plateau = detect_plateau(past, series, recommended_intake, as_of, config)
    if adaptation:
        logger.info("Metabolic adaptation detected (formula %.0f kcal)", formula_tdee)
    if plateau:
        logger.info("Weight plateau detected as of %s", as_of)

    return TrendAnalysis(
        trend=classify_trend(trend_data, point.tdee, config),
        weekly_weight_change_kg=weekly_weight_change(series, config.weight_regression_days),
        weight_trend_kg=smoothed[-1][1] if smoothed else None,
        metabolic_adaptation=adaptation,
        plateau_detected=plateau,
        trend_data=trend_data,
    )
