"""Tests for blending the formula and observed estimates."""

from __future__ import annotations

from datetime import timedelta

import pytest

from tdeetrack.errors import InsufficientData
from tdeetrack.profiles.body_calc import formula_estimate
from tdeetrack.tracking.fusion import (
    compute_confidence,
    data_quality_factor,
    formula_confidence,
    fuse_estimates,
    recommended_intake,
    weight_fit_factor,
)
from tdeetrack.tracking.models import EstimateSource
from tdeetrack.tracking.observed import ObservedEstimate

from conftest import FORMULA_BMR, FORMULA_TDEE, START


def observed(
    tdee: float = 2500.0,
    window_days: int = 28,
    r_squared: float = 1.0,
    residual_kg: float = 0.0,
):
    """ObservedEstimate over a daily-logged window ending window_days after START."""
    return ObservedEstimate(
        observed_tdee=tdee,
        total_intake=tdee * window_days,
        avg_intake=tdee,
        weight_delta_kg=0.0,
        window_days=window_days,
        qualifying_days=window_days,
        start=START,
        end=START + timedelta(days=window_days - 1),
        r_squared=r_squared,
        weight_residual_kg=residual_kg,
    )


@pytest.fixture
def formula(biometrics):
    return formula_estimate(biometrics)


class TestFuseEstimates:
    """Tests for source selection and blending."""

    def test_formula_when_observed_missing(self, formula) -> None:
        """No observed estimate means a formula-only result."""
        failure = InsufficientData("3 qualifying days, need 7", qualifying_days=3)
        fused = fuse_estimates(formula, None, 7, "male", failure=failure)
        assert fused.source == EstimateSource.FORMULA
        assert fused.tdee == pytest.approx(FORMULA_TDEE)
        assert fused.activity_multiplier == 1.55
        assert fused.confidence == pytest.approx(0.3)
        assert fused.failure is failure

    def test_observed_with_long_window_and_high_quality(self, formula) -> None:
        """21+ day window with 5+ days logged uses observed alone."""
        fused = fuse_estimates(formula, observed(2500.0, 28), 7, "male")
        assert fused.source == EstimateSource.OBSERVED
        assert fused.tdee == pytest.approx(2500.0)
        assert fused.observed_weight == 1.0
        assert fused.confidence == pytest.approx(1.0)

    def test_observed_multiplier_is_derived(self, formula) -> None:
        """Multiplier reported for observed results is tdee / bmr."""
        fused = fuse_estimates(formula, observed(2500.0, 28), 7, "male")
        assert fused.bmr == pytest.approx(FORMULA_BMR)
        assert fused.activity_multiplier == pytest.approx(2500.0 / FORMULA_BMR)

    def test_hybrid_for_short_window(self, formula) -> None:
        """A 14-day window blends half and half."""
        fused = fuse_estimates(formula, observed(2500.0, 14), 7, "male")
        assert fused.source == EstimateSource.HYBRID
        assert fused.observed_weight == pytest.approx(0.5)
        assert fused.tdee == pytest.approx(0.5 * FORMULA_TDEE + 0.5 * 2500.0)

    def test_hybrid_for_medium_quality(self, formula) -> None:
        """A full window with only 3-4 days logged this week stays hybrid."""
        fused = fuse_estimates(formula, observed(2500.0, 28), 4, "male")
        assert fused.source == EstimateSource.HYBRID
        assert fused.tdee == pytest.approx(2500.0)

    def test_noisy_weigh_ins_shrink_hybrid_weight(self, formula) -> None:
        """Scattered weigh-ins with a weak trend pull a hybrid toward the formula."""
        noisy = observed(2500.0, 14, r_squared=0.1, residual_kg=1.0)
        fused = fuse_estimates(formula, noisy, 7, "male")
        assert fused.source == EstimateSource.HYBRID
        assert fused.observed_weight == pytest.approx(0.5 * 0.2)
        assert fused.tdee == pytest.approx(0.9 * FORMULA_TDEE + 0.1 * 2500.0)

    def test_small_weight_scatter_keeps_hybrid_weight(self, formula) -> None:
        """Scatter within the noise tolerance does not change the blend."""
        steady = observed(2500.0, 14, r_squared=0.0, residual_kg=0.3)
        fused = fuse_estimates(formula, steady, 7, "male")
        assert fused.observed_weight == pytest.approx(0.5)

    def test_observed_source_ignores_weight_fit(self, formula) -> None:
        noisy = observed(2500.0, 28, r_squared=0.1, residual_kg=1.0)
        fused = fuse_estimates(formula, noisy, 7, "male")
        assert fused.source == EstimateSource.OBSERVED
        assert fused.tdee == pytest.approx(2500.0)

    def test_recommended_intake_includes_goal(self, formula) -> None:
        fused = fuse_estimates(formula, observed(2500.0, 28), 7, "male", goal_delta_kcal=-500)
        assert fused.recommended_intake == pytest.approx(2000.0)

    def test_recommended_intake_floor(self, formula) -> None:
        """A steep deficit never recommends below the safe floor."""
        fused = fuse_estimates(formula, observed(1800.0, 28), 7, "male", goal_delta_kcal=-1000)
        assert fused.recommended_intake == 1500


class TestConfidence:
    """Tests for confidence scoring."""

    def test_full_week_factor_is_one(self) -> None:
        assert data_quality_factor(7) == 1.0
        assert data_quality_factor(9) == 1.0

    def test_sparse_week_lowers_factor(self) -> None:
        """3 of 7 days logged: (3 + 1) / 8."""
        assert data_quality_factor(3) == pytest.approx(0.5)
        assert data_quality_factor(0) == pytest.approx(0.125)

    def test_scales_with_qualifying_days(self) -> None:
        assert compute_confidence(14, 7) == pytest.approx(0.5)
        assert compute_confidence(28, 7) == pytest.approx(1.0)

    def test_capped_at_one(self) -> None:
        assert compute_confidence(60, 7) == 1.0

    def test_monotonic_in_qualifying_and_logged_days(self) -> None:
        """An extra logged day adds to both inputs and never lowers confidence."""
        for qualifying in range(1, 40):
            for logged in range(0, 7):
                current = compute_confidence(qualifying, logged)
                assert 0.0 <= current <= 1.0
                assert compute_confidence(qualifying + 1, logged) >= current
                assert compute_confidence(qualifying + 1, logged + 1) >= current

    def test_formula_confidence_is_capped(self) -> None:
        assert formula_confidence(0) == 0.0
        assert formula_confidence(7) == pytest.approx(0.3)
        assert formula_confidence(3) == pytest.approx(0.3 * 3 / 7)
        assert formula_confidence(12) == pytest.approx(0.3)


class TestWeightFitFactor:
    """Tests for trusting the measured weight change."""

    def test_within_tolerance_is_one(self) -> None:
        assert weight_fit_factor(0.0, 0.5) == 1.0
        assert weight_fit_factor(0.9, 0.0) == 1.0

    def test_noisy_follows_r_squared(self) -> None:
        assert weight_fit_factor(0.3, 1.2) == pytest.approx(0.6)
        assert weight_fit_factor(0.8, 1.2) == 1.0

    def test_floor(self, config) -> None:
        assert weight_fit_factor(0.0, 2.0) == pytest.approx(config.weight_fit_floor)


class TestRecommendedIntake:
    """Tests for the recommended-intake floor."""

    def test_goal_applied(self) -> None:
        assert recommended_intake(2500, -500, "male") == 2000

    def test_floor_by_sex(self) -> None:
        assert recommended_intake(1300, -500, "female") == 1200
        assert recommended_intake(1300, -500, "male") == 1500

    def test_unknown_sex_uses_lower_floor(self) -> None:
        assert recommended_intake(1000, 0, "") == 1200
