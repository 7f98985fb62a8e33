"""Blend the formula prior with the observed estimate.

The formula estimate is always available (given valid biometrics); the
observed estimate only once enough intake and weight data exist. The more
observed data there is, and the steadier the weigh-ins behind it, the more
the final TDEE leans on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from tdeetrack.config.settings import EstimatorConfig
from tdeetrack.errors import TDEEError
from tdeetrack.profiles.body_calc import FormulaEstimate, Sex, minimum_safe_intake
from tdeetrack.tracking.models import EstimateSource
from tdeetrack.tracking.observed import ObservedEstimate
from tdeetrack.tracking.quality import DataQuality, data_quality_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FusedEstimate:
    """Output of the fusion step, before trend analysis."""

    source: EstimateSource
    tdee: float
    bmr: float
    activity_multiplier: float
    formula_tdee: float
    confidence: float
    recommended_intake: float
    observed: Optional[ObservedEstimate] = None
    observed_weight: float = 0.0
    failure: Optional[TDEEError] = None


def data_quality_factor(days_logged: int) -> float:
    """
    Reward steady recent logging over raw volume.

    Scales with the days logged in the trailing week: (days + 1) / 8, so a
    full week gives 1.0 and an empty one still leaves some weight to the
    days already in the window.
    """
    days = min(7, max(0, days_logged))
    return (days + 1) / 8


def compute_confidence(
    qualifying_days: int,
    days_logged: int,
    config: Optional[EstimatorConfig] = None,
) -> float:
    """
    confidence = min(1, qualifying_days / full_confidence_days * quality factor)

    Logging one more day can only add a qualifying day and a logged day, so
    confidence never drops as data accumulates.
    """
    config = config or EstimatorConfig()
    raw = qualifying_days / config.full_confidence_days * data_quality_factor(days_logged)
    return float(min(1.0, max(0.0, raw)))


def weight_fit_factor(
    r_squared: float,
    residual_kg: float,
    config: Optional[EstimatorConfig] = None,
) -> float:
    """
    How far to trust the measured weight change when blending.

    Weigh-ins that stay within ``weight_noise_tolerance_kg`` of their trend
    line count fully. Noisier ones count by the trend's R² (doubled, so 0.5
    already counts fully), never less than ``weight_fit_floor``.
    """
    config = config or EstimatorConfig()
    if residual_kg <= config.weight_noise_tolerance_kg:
        return 1.0
    return float(min(1.0, max(config.weight_fit_floor, 2 * r_squared)))



def formula_confidence(days_logged: int, config: Optional[EstimatorConfig] = None) -> float:
    """Low, capped confidence for a formula-only estimate."""
    config = config or EstimatorConfig()
    fraction = min(1.0, max(0.0, days_logged / 7))
    return config.formula_confidence_cap * fraction


def recommended_intake(tdee: float, goal_delta_kcal: float, sex: Sex | str) -> float:
    """TDEE plus the profile's daily goal adjustment, never below the safe floor."""
    return max(float(minimum_safe_intake(sex)), tdee + goal_delta_kcal)


def fuse_estimates(
    formula: FormulaEstimate,
    observed: Optional[ObservedEstimate],
    days_logged: int,
    sex: Sex | str,
    goal_delta_kcal: float = 0.0,
    config: Optional[EstimatorConfig] = None,
    failure: Optional[TDEEError] = None,
) -> FusedEstimate:
    """
    Pick an estimate source and blend.

    Args:
        formula: Formula estimate for the user's biometrics
        observed: Observed estimate, or None if the observed estimator failed
        days_logged: Days with intake in the trailing week
        sex: Used for the recommended-intake floor
        goal_delta_kcal: Daily kcal adjustment for the weekly goal (pass-through)
        config: Estimator constants
        failure: Why the observed estimator failed, if it did

    Returns:
        FusedEstimate
    """
    config = config or EstimatorConfig()

    if observed is None:
        tdee = formula.tdee
        return FusedEstimate(
            source=EstimateSource.FORMULA,
            tdee=tdee,
            bmr=formula.bmr,
            activity_multiplier=formula.activity_multiplier,
            formula_tdee=formula.tdee,
            confidence=formula_confidence(days_logged, config),
            recommended_intake=recommended_intake(tdee, goal_delta_kcal, sex),
            failure=failure,
        )

    quality = data_quality_level(days_logged, config)
    confidence = compute_confidence(observed.qualifying_days, days_logged, config)

    if observed.window_days >= config.observed_min_window_days and quality == DataQuality.HIGH:
        source = EstimateSource.OBSERVED
        weight = 1.0
        tdee = observed.observed_tdee
    else:
        source = EstimateSource.HYBRID
        weight = min(1.0, observed.window_days / config.window_days)
        weight *= weight_fit_factor(observed.r_squared, observed.weight_residual_kg, config)
        tdee = (1 - weight) * formula.tdee + weight * observed.observed_tdee

    logger.debug(
        "Fused %s estimate: %.0f kcal (weight on observed %.2f, quality %s)",
        source.value,
        tdee,
        weight,
        quality.value,
    )
    return FusedEstimate(
        source=source,
        tdee=tdee,
        bmr=formula.bmr,
        activity_multiplier=tdee / formula.bmr,
        formula_tdee=formula.tdee,
        confidence=confidence,
        recommended_intake=recommended_intake(tdee, goal_delta_kcal, sex),
        observed=observed,
        observed_weight=weight,
    )
