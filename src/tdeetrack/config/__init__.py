"""Configuration management."""

from __future__ import annotations

from tdeetrack.config.settings import (
    DefaultsConfig,
    EstimatorConfig,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "DefaultsConfig",
    "EstimatorConfig",
    "Settings",
    "get_settings",
    "reload_settings",
]
