"""Daily weight series: interpolation, gaps, smoothing and regression.

Scale weight is only measured on some days. For energy-balance math we need
a weight for every day of a window, so missing days are linearly
interpolated between the two nearest real measurements. We never
extrapolate past the first or last measurement.

The smoothed trend is the Hacker's Diet moving average:
    T_n = T_{n-1} + alpha * (W_n - T_{n-1})
with alpha scaled for irregular gaps as 1 - (1 - alpha)^t.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

import numpy as np
from scipy import stats

from tdeetrack.tracking.models import DailyRecord

DEFAULT_SMOOTHING = 0.15


@dataclass(frozen=True)
class WeightSeries:
    """Daily weights between the first and last real measurement."""

    days: list[date]
    weights: list[float]
    measured: list[bool]

    def __len__(self) -> int:
        return len(self.days)

    def weight_on(self, day: date) -> float | None:
        if not self.days or day < self.days[0] or day > self.days[-1]:
            return None
        return self.weights[(day - self.days[0]).days]

    @property
    def measurement_count(self) -> int:
        return sum(self.measured)


def measured_weights(records: Sequence[DailyRecord]) -> list[tuple[date, float]]:
    """Real (day, weight) measurements in chronological order."""
    return sorted(
        (r.day, r.weight_kg) for r in records if r.weight_kg is not None
    )


def interpolate_weights(records: Sequence[DailyRecord]) -> WeightSeries:
    """
    Build a gap-free daily weight series by linear interpolation.

    Args:
        records: Daily records, any order

    Returns:
        WeightSeries covering first..last measured day inclusive. Empty if
        there are no measurements.
    """
    points = measured_weights(records)
    if not points:
        return WeightSeries(days=[], weights=[], measured=[])

    first_day = points[0][0]
    offsets = np.array([(d - first_day).days for d, _ in points], dtype=float)
    values = np.array([w for _, w in points], dtype=float)

    span = int(offsets[-1]) + 1
    grid = np.arange(span, dtype=float)
    interpolated = np.interp(grid, offsets, values)

    measured_offsets = set(int(o) for o in offsets)
    days = [first_day + timedelta(days=i) for i in range(span)]
    return WeightSeries(
        days=days,
        weights=[float(w) for w in interpolated],
        measured=[i in measured_offsets for i in range(span)],
    )


def weight_gaps(records: Sequence[DailyRecord]) -> list[int]:
    """
    Lengths of runs of unmeasured days between consecutive measurements.

    Example:
        Measurements on Jan 1, Jan 2 and Jan 6 give [0, 3].
    """
    points = measured_weights(records)
    return [
        (later - earlier).days - 1
        for (earlier, _), (later, _) in zip(points, points[1:])
    ]


def time_scaled_alpha(base_alpha: float, days_elapsed: int) -> float:
    """
    Adjust smoothing factor for non-daily measurements.

    Example:
        >>> time_scaled_alpha(0.1, 1)
        0.1
        >>> round(time_scaled_alpha(0.1, 3), 3)
        0.271
    """
    if days_elapsed <= 0:
        days_elapsed = 1
    return 1 - (1 - base_alpha) ** days_elapsed


def update_trend(
    prev_trend: float,
    today_weight: float,
    smoothing: float = DEFAULT_SMOOTHING,
    days_elapsed: int = 1,
) -> float:
    """Advance the smoothed weight trend by one measurement."""
    adjusted_alpha = time_scaled_alpha(smoothing, days_elapsed)
    return prev_trend + adjusted_alpha * (today_weight - prev_trend)


def smoothed_trend(
    records: Sequence[DailyRecord],
    smoothing: float = DEFAULT_SMOOTHING,
) -> list[tuple[date, float]]:
    """
    Smoothed weight trend at each real measurement.

    The first measurement seeds the trend; gaps between measurements
    increase the weight given to the next one.
    """
    points = measured_weights(records)
    if not points:
        return []

    trends = [(points[0][0], points[0][1])]
    for (prev_day, _), (day, weight) in zip(points, points[1:]):
        days_elapsed = (day - prev_day).days
        trends.append((day, update_trend(trends[-1][1], weight, smoothing, days_elapsed)))
    return trends


def linear_fit(xs: Sequence[float], ys: Sequence[float]) -> tuple[float, float]:
    """
    Ordinary least squares slope and R² of ys against xs.

    Returns (0.0, 0.0) when there are fewer than two points or all xs are
    identical.
    """
    if len(xs) < 2 or len(set(xs)) < 2:
        return 0.0, 0.0
    result = stats.linregress(np.asarray(xs, dtype=float), np.asarray(ys, dtype=float))
    slope = float(result.slope)
    r_squared = float(result.rvalue) ** 2
    if not np.isfinite(slope):
        return 0.0, 0.0
    return slope, r_squared if np.isfinite(r_squared) else 0.0


def trend_fit(points: Sequence[tuple[date, float]]) -> tuple[float, float]:
    """
    R² and residual spread (kg) of weigh-ins around their straight-line trend.

    Args:
        points: Measured (day, weight) pairs in chronological order

    Returns:
        (r_squared, residual_kg); (0.0, 0.0) with fewer than two points
    """
    if len(points) < 2:
        return 0.0, 0.0
    first_day = points[0][0]
    xs = [(d - first_day).days for d, _ in points]
    ys = [w for _, w in points]
    _, r_squared = linear_fit(xs, ys)
    # OLS residual variance is (1 - R²) of the total variance
    residual = float(np.sqrt(max(0.0, 1.0 - r_squared) * np.var(ys)))
    return r_squared, residual


def weekly_weight_change(series: WeightSeries, days: int = 14) -> float:
    """
    Weekly rate of weight change (kg/week) over the last ``days`` days.

    Uses the regression slope of the interpolated series, so a single noisy
    weigh-in at either end does not dominate. 0.0 without two measurements.
    """
    if series.measurement_count < 2:
        return 0.0
    weights = series.weights[-days:]
    slope, _ = linear_fit(list(range(len(weights))), weights)
    return slope * 7
