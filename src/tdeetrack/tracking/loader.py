"""Load a log bundle (profile + food/exercise/weight logs) from YAML or JSON.

Example bundle::

    profile:
      sex: male
      age: 30
      height_cm: 175
      weight_kg: 80
      activity_level: moderate
    weight_unit: kg
    goal: lose1
    timezone: Europe/Berlin
    food:
      - {date: 2024-01-01, calories: 650, name: Oatmeal}
      - {logged_at: "2024-01-01T19:30:00+00:00", calories: 900}
    exercise:
      - {date: 2024-01-01, calories: 300}
    weights:
      - {date: 2024-01-01, weight: 80.2}
    trend_history:
      - {date: 2023-12-31, tdee: 2710}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from tdeetrack.profiles.body_calc import (
    WeeklyGoal,
    daily_adjustment_for_rate,
    goal_adjustment,
    inches_to_cm,
    lbs_to_kg,
)
from tdeetrack.tracking.models import (
    ExerciseLogEntry,
    FoodLogEntry,
    TrendPoint,
    UserBiometrics,
    WeightLogEntry,
)


@dataclass
class LogBundle:
    """Typed contents of a log bundle file."""

    biometrics: UserBiometrics
    food: list[FoodLogEntry] = field(default_factory=list)
    exercise: list[ExerciseLogEntry] = field(default_factory=list)
    weights: list[WeightLogEntry] = field(default_factory=list)
    trend_history: Optional[list[TrendPoint]] = None
    goal: Optional[str] = None
    timezone: Optional[str] = None


def _parse_day(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _when(item: dict, index: int, kind: str) -> dict:
    """Extract day / logged_at keyword arguments from a log item."""
    if "logged_at" in item:
        return {"logged_at": _parse_timestamp(item["logged_at"])}
    if "date" in item:
        value = item["date"]
        if isinstance(value, datetime):
            return {"logged_at": value}
        return {"day": _parse_day(value)}
    raise ValueError(f"{kind}[{index}] needs 'date' or 'logged_at'")


def _number(item: dict, keys: tuple[str, ...], index: int, kind: str) -> float:
    for key in keys:
        if key in item and item[key] is not None:
            return float(item[key])
    raise ValueError(f"{kind}[{index}] needs one of {keys}")


def parse_goal(goal: Any, kcal_per_kg: float = 7700.0) -> float:
    """Daily kcal delta from a goal preset, a kcal/day number, or a kg/week rate.

    Example:
        >>> parse_goal("lose1")
        -500.0
        >>> parse_goal("-0.5kg")
        -550.0
    """
    if goal is None:
        return 0.0
    if isinstance(goal, (int, float)):
        return float(goal)
    text = str(goal).strip().lower()
    try:
        return float(goal_adjustment(text))
    except ValueError:
        pass
    try:
        if text.endswith("kg"):
            return daily_adjustment_for_rate(float(text[:-2]), kcal_per_kg)
        return float(text)
    except ValueError:
        raise ValueError(
            f"goal must be a number or one of {[g.value for g in WeeklyGoal]}, got '{goal}'"
        ) from None


def parse_profile(data: dict, weight_unit: str = "kg") -> UserBiometrics:
    """Build UserBiometrics, converting imperial units where given."""
    if "height_cm" in data:
        height_cm = float(data["height_cm"])
    elif "height_inches" in data:
        height_cm = inches_to_cm(float(data["height_inches"]))
    else:
        height_cm = 0.0

    if "weight_kg" in data:
        weight_kg = float(data["weight_kg"])
    elif "weight_lbs" in data:
        weight_kg = lbs_to_kg(float(data["weight_lbs"]))
    elif "weight" in data:
        weight = float(data["weight"])
        weight_kg = lbs_to_kg(weight) if weight_unit == "lbs" else weight
    else:
        weight_kg = 0.0

    return UserBiometrics(
        sex=data.get("sex", ""),
        age_years=float(data.get("age", data.get("age_years", 0))),
        height_cm=height_cm,
        weight_kg=weight_kg,
        activity_level=data.get("activity_level", "moderate"),
    )


def parse_bundle(data: dict) -> LogBundle:
    """Parse an already-decoded bundle mapping."""
    if not isinstance(data, dict):
        raise ValueError("log bundle must be a mapping")
    if "profile" not in data:
        raise ValueError("log bundle needs a 'profile' section")

    weight_unit = str(data.get("weight_unit", "kg")).lower()
    if weight_unit not in ("kg", "lbs"):
        raise ValueError(f"weight_unit must be 'kg' or 'lbs', got '{weight_unit}'")

    food = [
        FoodLogEntry(
            calories=_number(item, ("calories",), i, "food"),
            name=item.get("name"),
            **_when(item, i, "food"),
        )
        for i, item in enumerate(data.get("food") or [])
    ]
    exercise = [
        ExerciseLogEntry(
            calories_burned=_number(item, ("calories", "calories_burned"), i, "exercise"),
            name=item.get("name"),
            **_when(item, i, "exercise"),
        )
        for i, item in enumerate(data.get("exercise") or [])
    ]

    weights = []
    for i, item in enumerate(data.get("weights") or []):
        value = _number(item, ("weight", "weight_kg"), i, "weights")
        unit = str(item.get("unit", weight_unit)).lower()
        weights.append(
            WeightLogEntry(
                weight_kg=lbs_to_kg(value) if unit == "lbs" else value,
                **_when(item, i, "weights"),
            )
        )

    trend_history = None
    if "trend_history" in data and data["trend_history"] is not None:
        trend_history = [
            TrendPoint(
                day=_parse_day(item["date"]),
                tdee=float(item["tdee"]),
                confidence=float(item.get("confidence", 0.0)),
            )
            for item in data["trend_history"]
        ]

    goal = data.get("goal")
    return LogBundle(
        biometrics=parse_profile(data["profile"] or {}, weight_unit),
        food=food,
        exercise=exercise,
        weights=weights,
        trend_history=trend_history,
        goal=None if goal is None else str(goal),
        timezone=data.get("timezone"),
    )


def load_bundle(path: Path) -> LogBundle:
    """Load a log bundle from a YAML or JSON file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return parse_bundle(data)
