"""Reduce raw food, exercise and weight logs to one record per day.

Days are bucketed by the user's local calendar day. Timezone-aware
timestamps are converted to the user's zone first so that an entry logged
late in the evening does not land on the next UTC day.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tdeetrack.tracking.models import (
    DailyRecord,
    ExerciseLogEntry,
    FoodLogEntry,
    WeightLogEntry,
)

logger = logging.getLogger(__name__)

LogEntry = Union[FoodLogEntry, ExerciseLogEntry, WeightLogEntry]

# Food entries that carry no energy and should not count as a logged day
IGNORED_FOOD_NAMES = frozenset({"water"})


def local_day(entry: LogEntry, tz: Optional[ZoneInfo] = None) -> date:
    """Return the local calendar day an entry belongs to.

    An explicit ``day`` always wins. Naive timestamps are taken as local
    already; aware ones are converted to ``tz`` when given.
    """
    if entry.day is not None:
        return entry.day
    logged_at: datetime = entry.logged_at  # type: ignore[assignment]
    if tz is not None and logged_at.tzinfo is not None:
        logged_at = logged_at.astimezone(tz)
    return logged_at.date()


def _valid_amount(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value >= 0


def date_range(start: date, end: date) -> list[date]:
    """Inclusive list of days from start to end (empty if end < start)."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def _user_zone(timezone: Optional[str]) -> Optional[ZoneInfo]:
    """The user's zone, or None (timestamps keep their own offset) if unknown."""
    if not timezone:
        return None
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; using each entry's own offset", timezone)
        return None


def aggregate_daily_logs(
    food: Iterable[FoodLogEntry] = (),
    exercise: Iterable[ExerciseLogEntry] = (),
    weights: Iterable[WeightLogEntry] = (),
    start: Optional[date] = None,
    end: Optional[date] = None,
    timezone: Optional[str] = None,
) -> list[DailyRecord]:
    """
    Build one DailyRecord per calendar day in [start, end].

    Days with no entries are still emitted (calories_in=0, weight_kg=None)
    so gaps stay visible downstream. Several weigh-ins on one day are
    averaged. Water entries, negative values and NaNs are dropped.

    Args:
        food: Food log entries
        exercise: Exercise log entries
        weights: Weight log entries
        start: First day (default: earliest entry)
        end: Last day (default: latest entry)
        timezone: IANA zone of the user, used for aware timestamps. An
            unknown name is logged and ignored.

    Returns:
        Records ordered by day ascending
    """
    tz = _user_zone(timezone)

    calories_in: dict[date, float] = defaultdict(float)
    calories_out: dict[date, float] = defaultdict(float)
    weigh_ins: dict[date, list[float]] = defaultdict(list)
    seen: set[date] = set()

    for entry in food:
        if entry.name and entry.name.strip().lower() in IGNORED_FOOD_NAMES:
            continue
        if not _valid_amount(entry.calories):
            logger.debug("Dropping food entry with invalid calories: %r", entry)
            continue
        d = local_day(entry, tz)
        calories_in[d] += entry.calories
        seen.add(d)

    for entry in exercise:
        if not _valid_amount(entry.calories_burned):
            logger.debug("Dropping exercise entry with invalid calories: %r", entry)
            continue
        d = local_day(entry, tz)
        calories_out[d] += entry.calories_burned
        seen.add(d)

    for entry in weights:
        if not _valid_amount(entry.weight_kg) or entry.weight_kg == 0:
            logger.debug("Dropping weight entry with invalid weight: %r", entry)
            continue
        d = local_day(entry, tz)
        weigh_ins[d].append(entry.weight_kg)
        seen.add(d)

    if start is None or end is None:
        if not seen:
            return []
        start = start or min(seen)
        end = end or max(seen)

    records = []
    for d in date_range(start, end):
        day_weights = weigh_ins.get(d)
        records.append(
            DailyRecord(
                day=d,
                calories_in=calories_in.get(d, 0.0),
                calories_out=calories_out.get(d, 0.0),
                weight_kg=sum(day_weights) / len(day_weights) if day_weights else None,
            )
        )

    logger.debug(
        "Aggregated %d log days into %d records (%s to %s)",
        len(seen),
        len(records),
        start,
        end,
    )
    return records
