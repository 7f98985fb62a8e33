"""Adaptive TDEE estimation from intake and body-weight logs."""

__version__ = "0.1.0"
