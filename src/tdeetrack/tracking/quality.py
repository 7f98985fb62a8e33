"""Logging consistency counters that feed confidence weighting."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Optional, Sequence

from tdeetrack.config.settings import EstimatorConfig
from tdeetrack.tracking.models import DailyRecord


class DataQuality(Enum):
    """Coarse data-quality level from the trailing week."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def days_logged_this_week(records: Sequence[DailyRecord], as_of: date) -> int:
    """Days with intake logged in the 7 calendar days ending at ``as_of``."""
    start = as_of - timedelta(days=6)
    return len({r.day for r in records if start <= r.day <= as_of and r.has_intake})


def total_days_with_data(records: Sequence[DailyRecord]) -> int:
    """Days with intake or a weight logged, over all time."""
    return len({r.day for r in records if r.has_data})


def data_quality_level(
    days_logged: int,
    config: Optional[EstimatorConfig] = None,
) -> DataQuality:
    """Map days logged this week to a quality level."""
    config = config or EstimatorConfig()
    if days_logged >= config.high_quality_days:
        return DataQuality.HIGH
    if days_logged >= config.medium_quality_days:
        return DataQuality.MEDIUM
    return DataQuality.LOW
