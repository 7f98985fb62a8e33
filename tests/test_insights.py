"""Tests for insight generation."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from tdeetrack.errors import (
    ImplausibleEstimate,
    InsufficientData,
    InvalidBiometrics,
    WeightGapTooLong,
)
from tdeetrack.tracking.fusion import FusedEstimate
from tdeetrack.tracking.insights import IntakeSummary, generate_insights
from tdeetrack.tracking.models import Condition, EstimateSource, InsightType, Trend
from tdeetrack.tracking.observed import ObservedEstimate
from tdeetrack.tracking.trend import TrendAnalysis

from conftest import FORMULA_BMR, FORMULA_TDEE, START


def make_fused(source=EstimateSource.OBSERVED, tdee=2500.0, observed_tdee=None, failure=None):
    observed = None
    if source != EstimateSource.FORMULA:
        value = tdee if observed_tdee is None else observed_tdee
        observed = ObservedEstimate(
            observed_tdee=value,
            total_intake=value * 28,
            avg_intake=value,
            weight_delta_kg=0.0,
            window_days=28,
            qualifying_days=28,
            start=START,
            end=START + timedelta(days=27),
        )
    return FusedEstimate(
        source=source,
        tdee=tdee,
        bmr=FORMULA_BMR,
        activity_multiplier=tdee / FORMULA_BMR,
        formula_tdee=FORMULA_TDEE,
        confidence=1.0 if observed else 0.3,
        recommended_intake=tdee,
        observed=observed,
        failure=failure,
    )


def make_analysis(weekly=0.0, adaptation=False, plateau=False):
    return TrendAnalysis(
        trend=Trend.STABLE,
        weekly_weight_change_kg=weekly,
        weight_trend_kg=80.0,
        metabolic_adaptation=adaptation,
        plateau_detected=plateau,
    )


def conditions(insights):
    return [i.condition for i in insights]


class TestGenerateInsights:
    """Tests for which insights fire."""

    def test_on_track_and_consistent(self) -> None:
        insights = generate_insights(make_fused(), make_analysis(weekly=0.05), 7, 28)
        assert conditions(insights) == [Condition.ON_TRACK, Condition.CONSISTENT_LOGGING]
        assert all(i.type == InsightType.SUCCESS for i in insights)

    def test_on_track_follows_goal(self) -> None:
        """Losing ~0.45 kg/week matches a -500 kcal/day goal."""
        insights = generate_insights(
            make_fused(), make_analysis(weekly=-0.45), 7, 28, goal_delta_kcal=-500
        )
        assert Condition.ON_TRACK in conditions(insights)

        insights = generate_insights(make_fused(), make_analysis(weekly=0.0), 7, 28, goal_delta_kcal=-500)
        assert Condition.ON_TRACK not in conditions(insights)

    def test_rapid_weight_change_alert(self) -> None:
        insights = generate_insights(make_fused(), make_analysis(weekly=-1.4), 7, 28)
        assert insights[0].condition == Condition.RAPID_WEIGHT_CHANGE
        assert insights[0].type == InsightType.ALERT
        assert "losing" in insights[0].message

    def test_possible_underreporting(self) -> None:
        """Intake below BMR while weight holds steady."""
        intake = IntakeSummary(avg_intake=1400.0, logged_days=20)
        insights = generate_insights(make_fused(), make_analysis(), 7, 28, intake=intake)
        assert insights[0].condition == Condition.POSSIBLE_UNDERREPORTING
        assert insights[0].type == InsightType.ALERT

    def test_low_intake_with_loss_is_not_underreporting(self) -> None:
        intake = IntakeSummary(avg_intake=1400.0, logged_days=20)
        insights = generate_insights(make_fused(), make_analysis(weekly=-0.6), 7, 28, intake=intake)
        assert Condition.POSSIBLE_UNDERREPORTING not in conditions(insights)

    def test_underreporting_needs_enough_days(self) -> None:
        intake = IntakeSummary(avg_intake=1400.0, logged_days=3)
        insights = generate_insights(make_fused(), make_analysis(), 7, 28, intake=intake)
        assert Condition.POSSIBLE_UNDERREPORTING not in conditions(insights)

    def test_metabolic_adaptation_warning(self) -> None:
        fused = make_fused(observed_tdee=2300.0, tdee=2300.0)
        insights = generate_insights(fused, make_analysis(adaptation=True), 7, 28)
        adaptation = [i for i in insights if i.condition == Condition.METABOLIC_ADAPTATION]
        assert len(adaptation) == 1
        assert adaptation[0].type == InsightType.WARNING
        assert "411" in adaptation[0].message

    def test_plateau_warning(self) -> None:
        insights = generate_insights(make_fused(), make_analysis(plateau=True), 7, 28)
        assert insights[0].condition == Condition.PLATEAU
        assert insights[0].type == InsightType.WARNING

    @pytest.mark.parametrize(
        "days,condition,kind",
        [
            (7, Condition.CONSISTENT_LOGGING, InsightType.SUCCESS),
            (6, Condition.CONSISTENT_LOGGING, InsightType.SUCCESS),
            (5, Condition.GOOD_LOGGING, InsightType.INFO),
            (4, Condition.GOOD_LOGGING, InsightType.INFO),
            (2, Condition.INCONSISTENT_LOGGING, InsightType.WARNING),
        ],
    )
    def test_logging_consistency(self, days, condition, kind) -> None:
        insights = generate_insights(make_fused(), make_analysis(weekly=2.0), days, 28)
        found = [i for i in insights if i.condition == condition]
        assert len(found) == 1
        assert found[0].type == kind

    def test_consistent_logging_speaks_about_logging_only(self) -> None:
        """The consistency message makes no claim about the estimate itself."""
        insights = generate_insights(make_fused(), make_analysis(), 6, 28)
        found = [i for i in insights if i.condition == Condition.CONSISTENT_LOGGING]
        assert found[0].message == "You've logged 6 of the last 7 days. Keep it up."


    def test_no_logging_insight_without_logs(self) -> None:
        insights = generate_insights(make_fused(EstimateSource.FORMULA), make_analysis(), 0, 0)
        assert conditions(insights) == [Condition.NO_DATA]


class TestDataInsights:
    """Tests for formula fallbacks and bad-data insights."""

    def test_formula_only_explains_missing_days(self) -> None:
        failure = InsufficientData("3 qualifying days, need 7", qualifying_days=3)
        fused = make_fused(EstimateSource.FORMULA, tdee=FORMULA_TDEE, failure=failure)
        insights = generate_insights(fused, make_analysis(), 3, 5)
        formula_only = [i for i in insights if i.condition == Condition.FORMULA_ONLY]
        assert len(formula_only) == 1
        assert "4 more days" in formula_only[0].message

    def test_weight_gap_explains_the_gap(self) -> None:
        """Enough logged days but a long weigh-in gap asks for weigh-ins, not days."""
        failure = WeightGapTooLong("gap", gap_days=12, qualifying_days=14)
        fused = make_fused(EstimateSource.FORMULA, tdee=FORMULA_TDEE, failure=failure)
        insights = generate_insights(fused, make_analysis(), 7, 14)
        formula_only = [i for i in insights if i.condition == Condition.FORMULA_ONLY]
        assert len(formula_only) == 1
        assert "12-day gap" in formula_only[0].message
        assert "every 6 days" in formula_only[0].message
        assert "more days" not in formula_only[0].message

    def test_implausible_fallback_does_not_ask_for_days(self) -> None:
        failure = ImplausibleEstimate(
            "too low", observed_tdee=900.0, lower=1355.0, upper=5421.0, qualifying_days=14
        )
        fused = make_fused(EstimateSource.FORMULA, tdee=FORMULA_TDEE, failure=failure)
        insights = generate_insights(fused, make_analysis(), 7, 14)
        formula_only = [i for i in insights if i.condition == Condition.FORMULA_ONLY]
        assert len(formula_only) == 1
        assert "more days" not in formula_only[0].message


    def test_formula_only_never_on_track(self) -> None:
        fused = make_fused(EstimateSource.FORMULA, tdee=FORMULA_TDEE)
        insights = generate_insights(fused, make_analysis(), 7, 10)
        assert Condition.ON_TRACK not in conditions(insights)

    def test_implausible_estimate_warning(self) -> None:
        failure = ImplausibleEstimate(
            "too low", observed_tdee=900.0, lower=1355.0, upper=5421.0, qualifying_days=14
        )
        fused = make_fused(EstimateSource.FORMULA, tdee=FORMULA_TDEE, failure=failure)
        insights = generate_insights(fused, make_analysis(), 7, 14)
        assert insights[0].condition == Condition.IMPLAUSIBLE_ESTIMATE
        assert insights[0].type == InsightType.WARNING
        assert "below" in insights[0].message
        assert Condition.FORMULA_ONLY in conditions(insights)

    def test_incomplete_profile(self) -> None:
        error = InvalidBiometrics("height_cm must be a positive number, got 0")
        insights = generate_insights(None, None, 5, 10, profile_error=error)
        assert insights[0].condition == Condition.INCOMPLETE_PROFILE
        assert "height_cm" in insights[0].message
        assert Condition.GOOD_LOGGING in conditions(insights)


class TestOrderingAndCap:
    """Tests for severity ordering, dedupe and the cap."""

    def test_ordered_by_severity(self) -> None:
        fused = make_fused(observed_tdee=2300.0, tdee=2300.0)
        insights = generate_insights(fused, make_analysis(weekly=-1.5, adaptation=True), 7, 28)
        kinds = [i.type for i in insights]
        assert kinds == [InsightType.ALERT, InsightType.WARNING, InsightType.SUCCESS]

    def test_capped_at_four(self) -> None:
        """Five candidates: the least severe is dropped."""
        intake = IntakeSummary(avg_intake=1400.0, logged_days=28)
        fused = make_fused(observed_tdee=2300.0, tdee=2300.0)
        analysis = make_analysis(weekly=0.0, adaptation=True, plateau=True)
        insights = generate_insights(fused, analysis, 7, 28, intake=intake)

        assert len(insights) == 4
        assert conditions(insights) == [
            Condition.POSSIBLE_UNDERREPORTING,
            Condition.METABOLIC_ADAPTATION,
            Condition.PLATEAU,
            Condition.ON_TRACK,
        ]

    def test_cap_is_configurable(self, config) -> None:
        small = replace(config, max_insights=1)
        insights = generate_insights(make_fused(), make_analysis(), 7, 28, config=small)
        assert len(insights) == 1

    def test_one_insight_per_condition(self) -> None:
        intake = IntakeSummary(avg_intake=1400.0, logged_days=28)
        fused = make_fused(observed_tdee=2300.0, tdee=2300.0)
        insights = generate_insights(
            fused, make_analysis(weekly=1.5, adaptation=True, plateau=True), 2, 28, intake=intake
        )
        found = conditions(insights)
        assert len(found) == len(set(found))
