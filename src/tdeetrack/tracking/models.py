"""Data models for intake/weight logs and adaptive TDEE estimates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from tdeetrack.profiles.body_calc import ActivityLevel, Sex


class EstimateSource(Enum):
    """Where the final TDEE number came from."""
    FORMULA = "formula"
    HYBRID = "hybrid"
    OBSERVED = "observed"


class Trend(Enum):
    """Direction of the TDEE series."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class InsightType(Enum):
    """Insight severity, most severe first."""
    ALERT = "alert"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


class Condition(Enum):
    """Conditions an insight can report. At most one insight per condition."""
    POSSIBLE_UNDERREPORTING = "possible_underreporting"
    RAPID_WEIGHT_CHANGE = "rapid_weight_change"
    IMPLAUSIBLE_ESTIMATE = "implausible_estimate"
    METABOLIC_ADAPTATION = "metabolic_adaptation"
    PLATEAU = "plateau"
    INCONSISTENT_LOGGING = "inconsistent_logging"
    ON_TRACK = "on_track"
    CONSISTENT_LOGGING = "consistent_logging"
    GOOD_LOGGING = "good_logging"
    FORMULA_ONLY = "formula_only"
    NO_DATA = "no_data"
    INCOMPLETE_PROFILE = "incomplete_profile"


def _coerce(enum_cls, value):
    """Convert a string to an enum member, leaving unknown values untouched.

    Unknown values are rejected later by the formula estimator so that
    building a profile never raises.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


@dataclass
class UserBiometrics:
    """Body metrics owned by the profile; read-only input to the estimator."""

    sex: Union[Sex, str]
    age_years: float
    height_cm: float
    weight_kg: float
    activity_level: Union[ActivityLevel, str] = ActivityLevel.MODERATE

    def __post_init__(self) -> None:
        self.sex = _coerce(Sex, self.sex)
        self.activity_level = _coerce(ActivityLevel, self.activity_level)


@dataclass(frozen=True)
class FoodLogEntry:
    """A single food log entry, tagged with a local day or a timestamp."""

    calories: float
    day: Optional[date] = None
    logged_at: Optional[datetime] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.day is None and self.logged_at is None:
            raise ValueError("FoodLogEntry needs either day or logged_at")


@dataclass(frozen=True)
class ExerciseLogEntry:
    """A single exercise log entry."""

    calories_burned: float
    day: Optional[date] = None
    logged_at: Optional[datetime] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.day is None and self.logged_at is None:
            raise ValueError("ExerciseLogEntry needs either day or logged_at")


@dataclass(frozen=True)
class WeightLogEntry:
    """A single body-weight measurement."""

    weight_kg: float
    day: Optional[date] = None
    logged_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.day is None and self.logged_at is None:
            raise ValueError("WeightLogEntry needs either day or logged_at")


@dataclass(frozen=True)
class DailyRecord:
    """Everything logged on one local calendar day.

    calories_in == 0 means nothing was logged, not a fasting day.
    """

    day: date
    calories_in: float = 0.0
    calories_out: float = 0.0
    weight_kg: Optional[float] = None

    @property
    def has_intake(self) -> bool:
        return self.calories_in > 0

    @property
    def has_data(self) -> bool:
        return self.has_intake or self.weight_kg is not None


@dataclass(frozen=True)
class TDEEEstimate:
    """One estimation run's output."""

    day: date
    bmr: float
    activity_multiplier: float
    tdee: float
    recommended_intake: float
    confidence: float
    estimate_source: EstimateSource
    trend: Trend
    weekly_weight_change_kg: float
    formula_tdee: float
    observed_tdee: Optional[float] = None
    qualifying_days: int = 0
    window_days: int = 0
    weight_trend_kg: Optional[float] = None
    metabolic_adaptation: bool = False
    plateau_detected: bool = False

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "bmr": self.bmr,
            "activity_multiplier": self.activity_multiplier,
            "tdee": self.tdee,
            "recommended_intake": self.recommended_intake,
            "confidence": self.confidence,
            "estimate_source": self.estimate_source.value,
            "trend": self.trend.value,
            "weekly_weight_change_kg": self.weekly_weight_change_kg,
            "formula_tdee": self.formula_tdee,
            "observed_tdee": self.observed_tdee,
            "qualifying_days": self.qualifying_days,
            "window_days": self.window_days,
            "weight_trend_kg": self.weight_trend_kg,
            "metabolic_adaptation": self.metabolic_adaptation,
            "plateau_detected": self.plateau_detected,
        }


@dataclass(frozen=True)
class TrendPoint:
    """A single point of the TDEE series used for charting and regression."""

    day: date
    tdee: float
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {"date": self.day.isoformat(), "tdee": self.tdee, "confidence": self.confidence}


@dataclass(frozen=True)
class Insight:
    """A human-readable, typed observation about the estimate."""

    type: InsightType
    title: str
    message: str
    condition: Condition

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "condition": self.condition.value,
        }


@dataclass
class EstimationResult:
    """Complete output of one estimation run."""

    estimate: Optional[TDEEEstimate]
    trend_data: list[TrendPoint] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)
    days_logged_this_week: int = 0
    total_days_with_data: int = 0

    def to_dict(self) -> dict:
        """Return plain JSON-serializable data."""
        return {
            "estimate": self.estimate.to_dict() if self.estimate else None,
            "trend_data": [p.to_dict() for p in self.trend_data],
            "insights": [i.to_dict() for i in self.insights],
            "days_logged_this_week": self.days_logged_this_week,
            "total_days_with_data": self.total_days_with_data,
        }
