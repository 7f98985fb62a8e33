"""Adaptive TDEE estimation pipeline.

logs -> daily records -> {formula, observed} -> fusion -> trend -> insights

Everything here is a pure function of its arguments: no caching, no
globals, no I/O. The same records, biometrics and history always give the
same estimate, so callers may schedule it however they like and persist
the returned EstimationResult themselves.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from tdeetrack.config.settings import EstimatorConfig
from tdeetrack.errors import ImplausibleEstimate, InsufficientData, InvalidBiometrics
from tdeetrack.profiles.body_calc import FormulaEstimate, formula_estimate
from tdeetrack.tracking.aggregate import aggregate_daily_logs
from tdeetrack.tracking.fusion import FusedEstimate, fuse_estimates
from tdeetrack.tracking.insights import IntakeSummary, generate_insights
from tdeetrack.tracking.models import (
    DailyRecord,
    EstimationResult,
    ExerciseLogEntry,
    FoodLogEntry,
    TDEEEstimate,
    TrendPoint,
    UserBiometrics,
    WeightLogEntry,
)
from tdeetrack.tracking.observed import observed_estimate, window_records
from tdeetrack.tracking.quality import days_logged_this_week, total_days_with_data
from tdeetrack.tracking.trend import analyze_trend

logger = logging.getLogger(__name__)


def _fuse_at(
    records: Sequence[DailyRecord],
    formula: FormulaEstimate,
    biometrics: UserBiometrics,
    as_of: date,
    goal_delta_kcal: float,
    config: EstimatorConfig,
) -> FusedEstimate:
    """Run the observed estimator and fusion for a single day."""
    days_logged = days_logged_this_week(records, as_of)
    try:
        observed = observed_estimate(records, formula.tdee, as_of, config)
    except (InsufficientData, ImplausibleEstimate) as e:
        logger.debug("Observed estimate unavailable for %s: %s", as_of, e)
        return fuse_estimates(
            formula,
            None,
            days_logged,
            biometrics.sex,
            goal_delta_kcal,
            config,
            failure=e,
        )
    return fuse_estimates(
        formula,
        observed,
        days_logged,
        biometrics.sex,
        goal_delta_kcal,
        config,
    )


def rebuild_trend(
    records: Sequence[DailyRecord],
    formula: FormulaEstimate,
    biometrics: UserBiometrics,
    as_of: date,
    goal_delta_kcal: float = 0.0,
    config: Optional[EstimatorConfig] = None,
) -> list[TrendPoint]:
    """
    Reconstruct the TDEE series for the days before ``as_of``.

    Used when the caller has no stored history. Replays fusion at each of
    the previous ``trend_points - 1`` days that fall within the records.
    """
    config = config or EstimatorConfig()
    if not records:
        return []
    first_day = min(r.day for r in records)

    points = []
    for offset in range(config.trend_points - 1, 0, -1):
        day = as_of - timedelta(days=offset)
        if day < first_day:
            continue
        visible = [r for r in records if r.day <= day]
        fused = _fuse_at(visible, formula, biometrics, day, goal_delta_kcal, config)
        points.append(TrendPoint(day=day, tdee=fused.tdee, confidence=fused.confidence))
    return points


def _intake_summary(
    records: Sequence[DailyRecord],
    as_of: date,
    config: EstimatorConfig,
) -> IntakeSummary:
    logged = [r.calories_in for r in window_records(records, as_of, config.window_days) if r.has_intake]
    if not logged:
        return IntakeSummary(avg_intake=None, logged_days=0)
    return IntakeSummary(avg_intake=sum(logged) / len(logged), logged_days=len(logged))


def estimate_tdee(
    records: Sequence[DailyRecord],
    biometrics: UserBiometrics,
    goal_delta_kcal: float = 0.0,
    as_of: Optional[date] = None,
    trend_history: Optional[Iterable[TrendPoint]] = None,
    config: Optional[EstimatorConfig] = None,
) -> EstimationResult:
    """
    Compute the adaptive TDEE estimate for one day.

    Never raises for bad or missing data: invalid biometrics give
    ``estimate=None``; too little or implausible data falls back to the
    formula estimate with low confidence.

    Args:
        records: Daily records (as produced by aggregate_daily_logs)
        biometrics: The user's body metrics
        goal_delta_kcal: Daily kcal adjustment for the weekly goal
        as_of: Day to estimate for (default: latest record, or today)
        trend_history: Previously stored TDEE series; rebuilt from the
            records when None
        config: Estimator constants

    Returns:
        EstimationResult
    """
    config = config or EstimatorConfig()
    if as_of is None:
        as_of = max((r.day for r in records), default=date.today())

    past = sorted((r for r in records if r.day <= as_of), key=lambda r: r.day)
    days_logged = days_logged_this_week(past, as_of)
    total_days = total_days_with_data(past)

    try:
        formula = formula_estimate(biometrics)
    except InvalidBiometrics as e:
        logger.info("No estimate: %s", e)
        return EstimationResult(
            estimate=None,
            trend_data=[],
            insights=generate_insights(
                None, None, days_logged, total_days, config=config, profile_error=e
            ),
            days_logged_this_week=days_logged,
            total_days_with_data=total_days,
        )

    fused = _fuse_at(past, formula, biometrics, as_of, goal_delta_kcal, config)
    point = TrendPoint(day=as_of, tdee=fused.tdee, confidence=fused.confidence)

    if trend_history is None:
        history = rebuild_trend(past, formula, biometrics, as_of, goal_delta_kcal, config)
    else:
        history = [p for p in trend_history if p.day <= as_of]

    analysis = analyze_trend(
        past,
        history,
        point,
        fused.observed,
        formula.tdee,
        fused.recommended_intake,
        as_of,
        config,
    )

    insights = generate_insights(
        fused,
        analysis,
        days_logged,
        total_days,
        intake=_intake_summary(past, as_of, config),
        goal_delta_kcal=goal_delta_kcal,
        config=config,
    )

    estimate = TDEEEstimate(
        day=as_of,
        bmr=fused.bmr,
        activity_multiplier=fused.activity_multiplier,
        tdee=fused.tdee,
        recommended_intake=fused.recommended_intake,
        confidence=fused.confidence,
        estimate_source=fused.source,
        trend=analysis.trend,
        weekly_weight_change_kg=analysis.weekly_weight_change_kg,
        formula_tdee=fused.formula_tdee,
        observed_tdee=fused.observed.observed_tdee if fused.observed else None,
        qualifying_days=fused.observed.qualifying_days if fused.observed else 0,
        window_days=fused.observed.window_days if fused.observed else 0,
        weight_trend_kg=analysis.weight_trend_kg,
        metabolic_adaptation=analysis.metabolic_adaptation,
        plateau_detected=analysis.plateau_detected,
    )
    logger.info(
        "TDEE %.0f kcal (%s, confidence %.2f) for %s",
        estimate.tdee,
        estimate.estimate_source.value,
        estimate.confidence,
        as_of,
    )

    return EstimationResult(
        estimate=estimate,
        trend_data=analysis.trend_data,
        insights=insights,
        days_logged_this_week=days_logged,
        total_days_with_data=total_days,
    )


def estimate_from_logs(
    food: Iterable[FoodLogEntry],
    exercise: Iterable[ExerciseLogEntry],
    weights: Iterable[WeightLogEntry],
    biometrics: UserBiometrics,
    goal_delta_kcal: float = 0.0,
    as_of: Optional[date] = None,
    start: Optional[date] = None,
    timezone: Optional[str] = None,
    trend_history: Optional[Iterable[TrendPoint]] = None,
    config: Optional[EstimatorConfig] = None,
) -> EstimationResult:
    """Aggregate raw logs into daily records, then run estimate_tdee."""
    records = aggregate_daily_logs(
        food,
        exercise,
        weights,
        start=start,
        end=as_of,
        timezone=timezone,
    )
    return estimate_tdee(
        records,
        biometrics,
        goal_delta_kcal=goal_delta_kcal,
        as_of=as_of,
        trend_history=trend_history,
        config=config,
    )
