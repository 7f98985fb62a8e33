"""Observed TDEE from the energy balance of intake and weight change.

If intake and expenditure were equal, weight would not move. Over a window,
every kcal_per_kg of cumulative surplus shows up as ~1 kg of weight gain
(and the reverse for a deficit), so:

    observed_tdee = avg_intake - weight_delta_kg * kcal_per_kg / window_days

Only days with logged intake count toward the average; a day with zero
calories means "not logged", not "fasted".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

from tdeetrack.config.settings import EstimatorConfig
from tdeetrack.errors import ImplausibleEstimate, InsufficientData, WeightGapTooLong
from tdeetrack.tracking.models import DailyRecord
from tdeetrack.tracking.weights import (
    interpolate_weights,
    measured_weights,
    trend_fit,
    weight_gaps,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObservedEstimate:
    """A successful energy-balance estimate over a window."""

    observed_tdee: float
    total_intake: float
    avg_intake: float
    weight_delta_kg: float
    window_days: int  # inclusive span, first to last qualifying day
    qualifying_days: int
    start: date
    end: date
    r_squared: float = 0.0  # of the weigh-ins inside the window
    weight_residual_kg: float = 0.0


def window_records(
    records: Sequence[DailyRecord],
    as_of: date,
    days: int,
) -> list[DailyRecord]:
    """Records in the trailing ``days``-day window ending at ``as_of``."""
    start = as_of - timedelta(days=days - 1)
    return sorted((r for r in records if start <= r.day <= as_of), key=lambda r: r.day)


def observed_estimate(
    records: Sequence[DailyRecord],
    formula_tdee: float,
    as_of: Optional[date] = None,
    config: Optional[EstimatorConfig] = None,
) -> ObservedEstimate:
    """
    Estimate TDEE from intake and weight change over a rolling window.

    Args:
        records: Daily records (any order, gaps allowed)
        formula_tdee: Formula TDEE for the same biometrics, for the sanity band
        as_of: Last day of the window (default: latest record)
        config: Estimator constants

    Returns:
        ObservedEstimate

    Raises:
        InsufficientData: fewer than ``min_qualifying_days`` days with both
            intake and a (possibly interpolated) weight
        WeightGapTooLong: a weight gap longer than ``max_weight_gap_days``
        ImplausibleEstimate: result outside the sanity band around formula_tdee
    """
    config = config or EstimatorConfig()
    if not records:
        raise InsufficientData("no records")
    if as_of is None:
        as_of = max(r.day for r in records)

    window = window_records(records, as_of, config.window_days)

    series = interpolate_weights(window)
    qualifying: list[tuple[date, float, float]] = []
    for record in window:
        if not record.has_intake:
            continue
        weight = series.weight_on(record.day)
        if weight is None:
            continue
        qualifying.append((record.day, record.calories_in, weight))

    n = len(qualifying)
    longest_gap = max(weight_gaps(window), default=0)
    if longest_gap > config.max_weight_gap_days:
        raise WeightGapTooLong(
            f"weight not measured for {longest_gap} consecutive days "
            f"(max {config.max_weight_gap_days})",
            gap_days=longest_gap,
            qualifying_days=n,
        )
    if n < config.min_qualifying_days:
        raise InsufficientData(
            f"{n} qualifying days, need {config.min_qualifying_days}",
            qualifying_days=n,
        )

    first_day, _, first_weight = qualifying[0]
    last_day, _, last_weight = qualifying[-1]
    window_days = (last_day - first_day).days + 1
    if window_days <= 0:
        raise InsufficientData("empty window", qualifying_days=n)

    total_intake = sum(kcal for _, kcal, _ in qualifying)
    avg_intake = total_intake / n
    weight_delta = last_weight - first_weight
    observed_tdee = avg_intake - weight_delta * config.kcal_per_kg / window_days

    lower = config.sanity_band_low * formula_tdee
    upper = config.sanity_band_high * formula_tdee
    if not lower <= observed_tdee <= upper:
        raise ImplausibleEstimate(
            f"observed TDEE {observed_tdee:.0f} kcal outside [{lower:.0f}, {upper:.0f}]",
            observed_tdee=observed_tdee,
            lower=lower,
            upper=upper,
            qualifying_days=n,
            window_days=window_days,
        )

    weigh_ins = [(d, w) for d, w in measured_weights(window) if first_day <= d <= last_day]
    r_squared, residual = trend_fit(weigh_ins)

    logger.debug(
        "Observed TDEE %.0f kcal from %d qualifying days over %d days (delta %.2f kg)",
        observed_tdee,
        n,
        window_days,
        weight_delta,
    )
    return ObservedEstimate(
        observed_tdee=observed_tdee,
        total_intake=total_intake,
        avg_intake=avg_intake,
        weight_delta_kg=weight_delta,
        window_days=window_days,
        qualifying_days=n,
        start=first_day,
        end=last_day,
        r_squared=r_squared,
        weight_residual_kg=residual,
    )
