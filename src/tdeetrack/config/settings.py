"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".tdeetrack"


def _default_config_path() -> Path:
    """Return the default config file path."""
    return _default_config_dir() / "config.yaml"


@dataclass
class EstimatorConfig:
    """Tunable constants of the adaptive TDEE estimator.

    These are reasonable defaults, not physiology: they should be validated
    against real user data rather than treated as fixed.
    """

    # Energy content of 1 kg of body-mass change (mix of fat and lean tissue)
    kcal_per_kg: float = 7700.0

    # Observed estimator window
    window_days: int = 28
    min_qualifying_days: int = 7
    max_weight_gap_days: int = 5

    # Observed TDEE must lie within [low, high] x formula TDEE
    sanity_band_low: float = 0.5
    sanity_band_high: float = 2.0

    # Fusion
    observed_min_window_days: int = 21
    full_confidence_days: int = 28
    formula_confidence_cap: float = 0.3
    weight_noise_tolerance_kg: float = 0.5  # residual spread of weigh-ins around their trend
    weight_fit_floor: float = 0.1

    # Data quality levels (days logged in the trailing week)
    high_quality_days: int = 5
    medium_quality_days: int = 3

    # Trend analysis
    trend_points: int = 14
    trend_threshold_pct: float = 0.01  # of current TDEE, per week
    weight_regression_days: int = 14
    weight_smoothing: float = 0.15

    # Adaptation and plateau detection
    adaptation_threshold: float = 0.10
    adaptation_min_days: int = 21
    plateau_threshold_kg: float = 0.1
    plateau_weeks: int = 3

    # Insights
    max_insights: int = 4
    rapid_change_kg_per_week: float = 1.0
    on_track_tolerance_kg: float = 0.25

    def __post_init__(self) -> None:
        if self.kcal_per_kg <= 0:
            raise ValueError(f"kcal_per_kg must be positive, got {self.kcal_per_kg}")
        if self.min_qualifying_days < 2:
            raise ValueError(
                f"min_qualifying_days must be at least 2, got {self.min_qualifying_days}"
            )
        if self.window_days < self.min_qualifying_days:
            raise ValueError(
                f"window_days ({self.window_days}) must be >= "
                f"min_qualifying_days ({self.min_qualifying_days})"
            )
        if not 0 < self.sanity_band_low < 1 < self.sanity_band_high:
            raise ValueError(
                "sanity band must satisfy 0 < low < 1 < high, got "
                f"({self.sanity_band_low}, {self.sanity_band_high})"
            )
        if self.full_confidence_days <= 0:
            raise ValueError(
                f"full_confidence_days must be positive, got {self.full_confidence_days}"
            )
        if not 0 <= self.formula_confidence_cap <= 1:
            raise ValueError(
                f"formula_confidence_cap must be in [0, 1], got {self.formula_confidence_cap}"
            )
        if self.weight_noise_tolerance_kg < 0:
            raise ValueError(
                "weight_noise_tolerance_kg must be non-negative, got "
                f"{self.weight_noise_tolerance_kg}"
            )
        if not 0 < self.weight_fit_floor <= 1:
            raise ValueError(f"weight_fit_floor must be in (0, 1], got {self.weight_fit_floor}")
        if not 0 < self.weight_smoothing <= 1:
            raise ValueError(
                f"weight_smoothing must be in (0, 1], got {self.weight_smoothing}"
            )
        if self.trend_points < 2:
            raise ValueError(f"trend_points must be at least 2, got {self.trend_points}")
        if self.max_insights < 1:
            raise ValueError(f"max_insights must be at least 1, got {self.max_insights}")

    @classmethod
    def from_dict(cls, data: dict) -> "EstimatorConfig":
        """Build from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                continue
            default = getattr(cls, key)
            values[key] = int(value) if isinstance(default, int) else float(value)
        return cls(**values)


@dataclass
class DefaultsConfig:
    """Default values for various operations."""

    timezone: Optional[str] = None  # IANA name; None = entries are already local
    goal: str = "maintain"
    output_format: str = "table"  # "table", "json"


@dataclass
class Settings:
    """Main application settings."""

    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.tdeetrack/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        # Parse estimator constants
        if "estimator" in data:
            settings.estimator = EstimatorConfig.from_dict(data["estimator"] or {})

        # Parse defaults
        if "defaults" in data:
            def_data = data["defaults"] or {}
            if "timezone" in def_data:
                settings.defaults.timezone = def_data["timezone"]
            if "goal" in def_data:
                settings.defaults.goal = str(def_data["goal"])
            if "output_format" in def_data:
                settings.defaults.output_format = def_data["output_format"]

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.tdeetrack/config.yaml
        """
        if config_path is None:
            config_path = _default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "estimator": asdict(self.estimator),
            "defaults": {
                "timezone": self.defaults.timezone,
                "goal": self.defaults.goal,
                "output_format": self.defaults.output_format,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded, CLI only)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
