"""Turn fusion and trend output into a short, ordered list of insights."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tdeetrack.config.settings import EstimatorConfig
from tdeetrack.errors import (
    ImplausibleEstimate,
    InsufficientData,
    InvalidBiometrics,
    WeightGapTooLong,
)
from tdeetrack.tracking.fusion import FusedEstimate
from tdeetrack.tracking.models import Condition, EstimateSource, Insight, InsightType
from tdeetrack.tracking.trend import TrendAnalysis

SEVERITY_ORDER = {
    InsightType.ALERT: 0,
    InsightType.WARNING: 1,
    InsightType.SUCCESS: 2,
    InsightType.INFO: 3,
}

# Weight falling slower than this (kg/week) while eating below BMR is suspicious
UNDERREPORTING_MAX_LOSS_KG = 0.2


@dataclass(frozen=True)
class IntakeSummary:
    """Logged intake over the trailing estimation window."""

    avg_intake: Optional[float]
    logged_days: int


def _insight(kind: InsightType, condition: Condition, title: str, message: str) -> Insight:
    return Insight(type=kind, title=title, message=message, condition=condition)


def _data_insights(
    fused: FusedEstimate,
    total_days: int,
    config: EstimatorConfig,
) -> list[Insight]:
    insights = []
    failure = fused.failure

    if isinstance(failure, ImplausibleEstimate):
        direction = "below" if failure.observed_tdee < failure.lower else "above"
        insights.append(
            _insight(
                InsightType.WARNING,
                Condition.IMPLAUSIBLE_ESTIMATE,
                "Check your logging",
                f"Your logs imply ~{failure.observed_tdee:.0f} kcal/day, far {direction} "
                f"what is plausible for your profile. Missed or double-logged meals or "
                f"irregular weigh-ins are the usual cause; using the formula estimate for now.",
            )
        )

    if fused.source == EstimateSource.FORMULA:
        if total_days == 0:
            insights.append(
                _insight(
                    InsightType.INFO,
                    Condition.NO_DATA,
                    "Start logging to unlock adaptive TDEE",
                    "Log your food and weight daily to get a personalized metabolic estimate.",
                )
            )
        else:
            insights.append(
                _insight(
                    InsightType.INFO,
                    Condition.FORMULA_ONLY,
                    "Formula-only estimate",
                    "This estimate comes from the Mifflin-St Jeor formula. "
                    + _formula_only_detail(failure, config),
                )
            )
    return insights


def _formula_only_detail(failure: Optional[Exception], config: EstimatorConfig) -> str:
    """What would let the observed estimate take over, by failure kind."""
    if isinstance(failure, ImplausibleEstimate):
        return "It will personalize once your logged intake and weight change agree."
    if isinstance(failure, WeightGapTooLong):
        return (
            f"Your weigh-ins have a {failure.gap_days}-day gap; weigh in at least every "
            f"{config.max_weight_gap_days + 1} days to personalize it."
        )
    have = failure.qualifying_days if isinstance(failure, InsufficientData) else 0
    needed = max(1, config.min_qualifying_days - have)
    return f"{needed} more days with both food and weight logged are needed to personalize it."


def _logging_insight(days_logged: int) -> Optional[Insight]:
    if days_logged >= 6:
        return _insight(
            InsightType.SUCCESS,
            Condition.CONSISTENT_LOGGING,
            "Excellent tracking consistency",
            f"You've logged {days_logged} of the last 7 days. Keep it up.",
        )
    if days_logged >= 4:
        return _insight(
            InsightType.INFO,
            Condition.GOOD_LOGGING,
            "Good tracking this week",
            f"You've logged {days_logged} days this week. Log daily for the most accurate results.",
        )
    if days_logged > 0:
        return _insight(
            InsightType.WARNING,
            Condition.INCONSISTENT_LOGGING,
            "Inconsistent logging",
            f"Only {days_logged} days logged this week. Gaps reduce the accuracy of your estimate.",
        )
    return None


def generate_insights(
    fused: Optional[FusedEstimate],
    analysis: Optional[TrendAnalysis],
    days_logged: int,
    total_days: int,
    intake: Optional[IntakeSummary] = None,
    goal_delta_kcal: float = 0.0,
    config: Optional[EstimatorConfig] = None,
    profile_error: Optional[InvalidBiometrics] = None,
) -> list[Insight]:
    """
    Build the ordered insight list, most severe first, capped.

    Args:
        fused: Fusion output, None if biometrics were invalid
        analysis: Trend output, None if biometrics were invalid
        days_logged: Days with intake in the trailing week
        total_days: Days with any data over all time
        intake: Logged intake over the estimation window
        goal_delta_kcal: Daily goal adjustment, for on-track checks
        config: Estimator constants
        profile_error: Set when no estimate could be produced

    Returns:
        At most ``config.max_insights`` insights, one per condition
    """
    config = config or EstimatorConfig()
    insights: list[Insight] = []

    if fused is None or analysis is None:
        insights.append(
            _insight(
                InsightType.INFO,
                Condition.INCOMPLETE_PROFILE,
                "Complete your profile",
                "Add your height, weight and age to get an energy expenditure estimate."
                + (f" ({profile_error})" if profile_error else ""),
            )
        )
        logging_insight = _logging_insight(days_logged)
        if logging_insight:
            insights.append(logging_insight)
        return _finalize(insights, config)

    weekly = analysis.weekly_weight_change_kg

    if (
        intake is not None
        and intake.avg_intake is not None
        and intake.logged_days >= config.min_qualifying_days
        and intake.avg_intake < fused.bmr
        and weekly > -UNDERREPORTING_MAX_LOSS_KG
    ):
        insights.append(
            _insight(
                InsightType.ALERT,
                Condition.POSSIBLE_UNDERREPORTING,
                "Possible under-reporting",
                f"Logged intake averages ~{intake.avg_intake:.0f} kcal/day, below your "
                f"BMR of ~{fused.bmr:.0f} kcal, yet your weight is not dropping. Some food "
                "may be going unlogged.",
            )
        )

    if abs(weekly) > config.rapid_change_kg_per_week:
        direction = "losing" if weekly < 0 else "gaining"
        insights.append(
            _insight(
                InsightType.ALERT,
                Condition.RAPID_WEIGHT_CHANGE,
                "Rapid weight change",
                f"You are {direction} ~{abs(weekly):.1f} kg/week. This pace may not be "
                "sustainable.",
            )
        )

    insights.extend(_data_insights(fused, total_days, config))

    if analysis.metabolic_adaptation and fused.observed is not None:
        shortfall = fused.formula_tdee - fused.observed.observed_tdee
        insights.append(
            _insight(
                InsightType.WARNING,
                Condition.METABOLIC_ADAPTATION,
                "Metabolic adaptation detected",
                f"Your expenditure is running ~{shortfall:.0f} kcal/day below what the "
                "formula predicts. Consider a diet break or reverse diet.",
            )
        )

    if analysis.plateau_detected:
        insights.append(
            _insight(
                InsightType.WARNING,
                Condition.PLATEAU,
                "Weight plateau detected",
                f"Your weight has barely moved for {config.plateau_weeks} weeks despite "
                "eating below target. Consider adjusting your target, increasing "
                "activity, or a planned diet break.",
            )
        )

    if fused.source != EstimateSource.FORMULA:
        expected = goal_delta_kcal * 7 / config.kcal_per_kg
        if abs(weekly - expected) <= config.on_track_tolerance_kg:
            insights.append(
                _insight(
                    InsightType.SUCCESS,
                    Condition.ON_TRACK,
                    "On track",
                    f"Your weight is changing {weekly:+.2f} kg/week, in line with your "
                    f"goal of {expected:+.2f} kg/week.",
                )
            )

    logging_insight = _logging_insight(days_logged)
    if logging_insight:
        insights.append(logging_insight)

    return _finalize(insights, config)


def _finalize(insights: list[Insight], config: EstimatorConfig) -> list[Insight]:
    seen = set()
    unique = []
    for insight in insights:
        if insight.condition in seen:
            continue
        seen.add(insight.condition)
        unique.append(insight)
    unique.sort(key=lambda i: SEVERITY_ORDER[i.type])
    return unique[: config.max_insights]
