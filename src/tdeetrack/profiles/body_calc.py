"""Formula-based energy expenditure from body metrics.

Calculates BMR with the Mifflin-St Jeor equation and TDEE with the standard
activity multipliers. This is the population prior that observed intake and
weight data are blended against.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from tdeetrack.errors import InvalidBiometrics

if TYPE_CHECKING:
    from tdeetrack.tracking.models import UserBiometrics


class Sex(Enum):
    """Biological sex for BMR calculation."""
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Sex"]:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered or member.value[0] == lowered:
                    return member
        return None


class ActivityLevel(Enum):
    """Activity level multipliers for TDEE calculation."""
    SEDENTARY = "sedentary"          # Little or no exercise
    LIGHT = "light"                  # Light exercise 1-3 days/week
    MODERATE = "moderate"            # Moderate exercise 3-5 days/week
    ACTIVE = "active"                # Hard exercise 6-7 days/week
    VERY_ACTIVE = "very_active"      # Very hard exercise, physical job

    @classmethod
    def _missing_(cls, value: object) -> Optional["ActivityLevel"]:
        if isinstance(value, str):
            key = value.strip().replace("-", "_").lower()
            return _ACTIVITY_ALIASES.get(key)
        return None


_ACTIVITY_ALIASES = {
    "sedentary": ActivityLevel.SEDENTARY,
    "light": ActivityLevel.LIGHT,
    "lightly_active": ActivityLevel.LIGHT,
    "moderate": ActivityLevel.MODERATE,
    "active": ActivityLevel.ACTIVE,
    "very_active": ActivityLevel.VERY_ACTIVE,
    "veryactive": ActivityLevel.VERY_ACTIVE,
    "extreme": ActivityLevel.VERY_ACTIVE,
}


class WeeklyGoal(Enum):
    """Target rate of weight change, as chosen in the profile."""
    LOSE_2 = "lose2"          # ~1 kg/week
    LOSE_1 = "lose1"          # ~0.5 kg/week
    LOSE_05 = "lose05"        # ~0.25 kg/week
    MAINTAIN = "maintain"
    GAIN_05 = "gain05"
    GAIN_1 = "gain1"


# Activity level multipliers (Harris-Benedict activity factors)
ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

# Daily calorie adjustment from TDEE by weekly goal
GOAL_ADJUSTMENTS = {
    WeeklyGoal.LOSE_2: -1000,
    WeeklyGoal.LOSE_1: -500,
    WeeklyGoal.LOSE_05: -250,
    WeeklyGoal.MAINTAIN: 0,
    WeeklyGoal.GAIN_05: 250,
    WeeklyGoal.GAIN_1: 500,
}

# Never recommend eating below these, regardless of TDEE and goal
MIN_SAFE_INTAKE = {
    Sex.MALE: 1500,
    Sex.FEMALE: 1200,
}


@dataclass(frozen=True)
class FormulaEstimate:
    """Result of the formula estimator."""

    bmr: float
    activity_multiplier: float
    tdee: float


def lbs_to_kg(lbs: float) -> float:
    """Convert pounds to kilograms."""
    return lbs * 0.453592


def inches_to_cm(inches: float) -> float:
    """Convert inches to centimeters."""
    return inches * 2.54


def calculate_bmr(
    age: float,
    sex: Sex,
    height_cm: float,
    weight_kg: float,
) -> float:
    """Calculate Basal Metabolic Rate using Mifflin-St Jeor equation.

    Args:
        age: Age in years
        sex: Biological sex
        height_cm: Height in centimeters
        weight_kg: Weight in kilograms

    Returns:
        BMR in calories per day
    """
    if sex == Sex.MALE:
        bmr = (10 * weight_kg) + (6.25 * height_cm) - (5 * age) + 5
    else:
        bmr = (10 * weight_kg) + (6.25 * height_cm) - (5 * age) - 161

    return bmr


def calculate_tdee(
    bmr: float,
    activity_level: ActivityLevel,
) -> float:
    """Calculate Total Daily Energy Expenditure.

    Args:
        bmr: Basal Metabolic Rate
        activity_level: Activity level

    Returns:
        TDEE in calories per day
    """
    multiplier = ACTIVITY_MULTIPLIERS[activity_level]
    return bmr * multiplier


def _positive(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def formula_estimate(biometrics: "UserBiometrics") -> FormulaEstimate:
    """Compute BMR, activity multiplier and formula TDEE.

    Raises:
        InvalidBiometrics: height, weight or age missing or non-positive, or
            sex / activity level not recognised.
    """
    if not _positive(biometrics.height_cm):
        raise InvalidBiometrics(f"height_cm must be positive, got {biometrics.height_cm!r}")
    if not _positive(biometrics.weight_kg):
        raise InvalidBiometrics(f"weight_kg must be positive, got {biometrics.weight_kg!r}")
    if not _positive(biometrics.age_years):
        raise InvalidBiometrics(f"age_years must be positive, got {biometrics.age_years!r}")
    if not isinstance(biometrics.sex, Sex):
        raise InvalidBiometrics(f"sex must be 'male' or 'female', got {biometrics.sex!r}")
    if not isinstance(biometrics.activity_level, ActivityLevel):
        raise InvalidBiometrics(
            f"activity_level must be one of {[a.value for a in ActivityLevel]}, "
            f"got {biometrics.activity_level!r}"
        )

    bmr = calculate_bmr(
        biometrics.age_years,
        biometrics.sex,
        biometrics.height_cm,
        biometrics.weight_kg,
    )
    if bmr <= 0:
        raise InvalidBiometrics(f"biometrics give a non-positive BMR ({bmr:.0f} kcal)")

    multiplier = ACTIVITY_MULTIPLIERS[biometrics.activity_level]
    return FormulaEstimate(
        bmr=bmr,
        activity_multiplier=multiplier,
        tdee=calculate_tdee(bmr, biometrics.activity_level),
    )


def goal_adjustment(goal: str | WeeklyGoal) -> int:
    """Return the daily calorie adjustment for a weekly goal preset.

    Example:
        >>> goal_adjustment("lose1")
        -500
    """
    return GOAL_ADJUSTMENTS[WeeklyGoal(goal)]


def daily_adjustment_for_rate(kg_per_week: float, kcal_per_kg: float = 7700.0) -> float:
    """Daily calorie delta needed for a target weekly weight change.

    Args:
        kg_per_week: Target change in kg/week (negative = loss)
        kcal_per_kg: Energy content of 1 kg of body mass change

    Returns:
        kcal/day to add to TDEE (negative = deficit)
    """
    return kg_per_week * kcal_per_kg / 7


def minimum_safe_intake(sex: Sex | str) -> int:
    """Return the floor for recommended intake."""
    try:
        return MIN_SAFE_INTAKE[Sex(sex)]
    except ValueError:
        return MIN_SAFE_INTAKE[Sex.FEMALE]
