"""Adaptive TDEE estimation.

Fuses the Mifflin-St Jeor formula with observed intake and weight history
to estimate total daily energy expenditure.

Key components:
- Daily log aggregation (one record per local calendar day)
- Observed TDEE from energy balance over a rolling window
- Formula/observed fusion with confidence scoring
- Trend, metabolic adaptation and plateau detection
- Typed insights
"""

from __future__ import annotations

from tdeetrack.tracking.aggregate import aggregate_daily_logs
from tdeetrack.tracking.engine import estimate_from_logs, estimate_tdee
from tdeetrack.tracking.models import (
    DailyRecord,
    EstimateSource,
    EstimationResult,
    ExerciseLogEntry,
    FoodLogEntry,
    Insight,
    InsightType,
    TDEEEstimate,
    Trend,
    TrendPoint,
    UserBiometrics,
    WeightLogEntry,
)

__all__ = [
    "DailyRecord",
    "EstimateSource",
    "EstimationResult",
    "ExerciseLogEntry",
    "FoodLogEntry",
    "Insight",
    "InsightType",
    "TDEEEstimate",
    "Trend",
    "TrendPoint",
    "UserBiometrics",
    "WeightLogEntry",
    "aggregate_daily_logs",
    "estimate_from_logs",
    "estimate_tdee",
]
