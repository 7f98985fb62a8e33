"""Typed failure conditions raised inside the estimation pipeline.

None of these escape the public entry points in ``tdeetrack.tracking.engine``;
each one is mapped to a lower-confidence fallback there.
"""

from __future__ import annotations

from typing import Optional


class TDEEError(Exception):
    """Base class for estimator failures."""


class InvalidBiometrics(TDEEError, ValueError):
    """Missing or non-positive biometrics; no formula estimate is possible."""


class InsufficientData(TDEEError):
    """Too few qualifying days (or too sparse weights) for an observed estimate."""

    def __init__(self, message: str, qualifying_days: int = 0) -> None:
        super().__init__(message)
        self.qualifying_days = qualifying_days


class WeightGapTooLong(InsufficientData):
    """Weigh-ins in the window are too far apart to interpolate between."""

    def __init__(self, message: str, gap_days: int, qualifying_days: int = 0) -> None:
        super().__init__(message, qualifying_days)
        self.gap_days = gap_days



class ImplausibleEstimate(TDEEError):
    """Observed TDEE fell outside the sanity band around the formula TDEE."""

    def __init__(
        self,
        message: str,
        observed_tdee: float,
        lower: float,
        upper: float,
        qualifying_days: int = 0,
        window_days: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.observed_tdee = observed_tdee
        self.lower = lower
        self.upper = upper
        self.qualifying_days = qualifying_days
        self.window_days = window_days
