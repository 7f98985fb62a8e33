"""Pytest fixtures for tdeetrack tests."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Optional, Sequence

import pytest

from tdeetrack.config.settings import EstimatorConfig
from tdeetrack.tracking.models import DailyRecord, UserBiometrics

START = date(2024, 1, 1)

# Male, 30 y, 175 cm, 80 kg, moderate:
# BMR = 800 + 1093.75 - 150 + 5 = 1748.75, TDEE = 1748.75 * 1.55 = 2710.5625
FORMULA_BMR = 1748.75
FORMULA_TDEE = 2710.5625


@pytest.fixture
def biometrics() -> UserBiometrics:
    """A valid reference profile."""
    return UserBiometrics(
        sex="male",
        age_years=30,
        height_cm=175,
        weight_kg=80,
        activity_level="moderate",
    )


@pytest.fixture
def config() -> EstimatorConfig:
    """Default estimator constants."""
    return EstimatorConfig()


def build_records(
    days: int,
    intake: float | Sequence[float] = 2200,
    start_weight: Optional[float] = 80.0,
    end_weight: Optional[float] = None,
    weigh_in_days: Optional[set[int]] = None,
    intake_days: Optional[set[int]] = None,
    start: date = START,
) -> list[DailyRecord]:
    """
    Synthetic daily records.

    Weight moves linearly from start_weight to end_weight over the span.
    Only days in weigh_in_days / intake_days get a weight / intake (all days
    when None).
    """
    if end_weight is None:
        end_weight = start_weight
    records = []
    for i in range(days):
        if isinstance(intake, (int, float)):
            kcal = float(intake)
        else:
            kcal = float(intake[i])
        if intake_days is not None and i not in intake_days:
            kcal = 0.0

        weight = None
        if start_weight is not None and (weigh_in_days is None or i in weigh_in_days):
            fraction = i / (days - 1) if days > 1 else 0.0
            weight = start_weight + (end_weight - start_weight) * fraction

        records.append(
            DailyRecord(
                day=start + timedelta(days=i),
                calories_in=kcal,
                weight_kg=weight,
            )
        )
    return records


@pytest.fixture
def make_records() -> Callable[..., list[DailyRecord]]:
    """Factory for synthetic daily records."""
    return build_records
