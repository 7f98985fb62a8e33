"""Plain-text rendering of estimation results."""

from __future__ import annotations

from tdeetrack.tracking.models import EstimateSource, EstimationResult, Insight, TDEEEstimate

SOURCE_LABELS = {
    EstimateSource.FORMULA: "formula only (Mifflin-St Jeor)",
    EstimateSource.HYBRID: "formula blended with your logs",
    EstimateSource.OBSERVED: "observed from your logs",
}


def format_estimate(estimate: TDEEEstimate) -> str:
    """Format a TDEE estimate as text."""
    lines = [
        f"Total Daily Energy Expenditure (TDEE) for {estimate.day.isoformat()}",
        "=" * 50,
        f"Your estimated TDEE:      {estimate.tdee:.0f} kcal/day",
        f"Source:                   {SOURCE_LABELS[estimate.estimate_source]}",
        f"Confidence:               {estimate.confidence:.0%}",
        f"Mifflin-St Jeor baseline: {estimate.formula_tdee:.0f} kcal/day "
        f"(BMR {estimate.bmr:.0f} x {estimate.activity_multiplier:.2f})",
    ]

    if estimate.observed_tdee is not None:
        lines.append(
            f"Observed from logs:       {estimate.observed_tdee:.0f} kcal/day "
            f"({estimate.qualifying_days} days over {estimate.window_days})"
        )

    lines.append(f"Recommended intake:       {estimate.recommended_intake:.0f} kcal/day")
    lines.append("")

    rate_dir = "losing" if estimate.weekly_weight_change_kg < 0 else "gaining"
    lines.append(
        f"Weight rate:  {abs(estimate.weekly_weight_change_kg):.2f} kg/week ({rate_dir})"
    )
    if estimate.weight_trend_kg is not None:
        lines.append(f"Weight trend: {estimate.weight_trend_kg:.1f} kg (smoothed)")
    lines.append(f"TDEE trend:   {estimate.trend.value}")

    return "\n".join(lines)


def format_insight(insight: Insight) -> str:
    """Format one insight as a single line."""
    return f"[{insight.type.value}] {insight.title}: {insight.message}"


def format_result(result: EstimationResult) -> str:
    """Format a full estimation result as text."""
    parts = []
    if result.estimate is None:
        parts.append("No estimate available: profile incomplete.")
    else:
        parts.append(format_estimate(result.estimate))

    parts.append("")
    parts.append(
        f"Days logged this week: {result.days_logged_this_week}/7 "
        f"({result.total_days_with_data} days with data overall)"
    )

    if result.insights:
        parts.append("")
        parts.append("Insights:")
        for insight in result.insights:
            parts.append(f"  - {format_insight(insight)}")

    return "\n".join(parts)


def summarize(result: EstimationResult) -> str:
    """One-line summary for JSON envelopes."""
    if result.estimate is None:
        return "No estimate: complete your profile"
    est = result.estimate
    return (
        f"TDEE: {est.tdee:.0f} kcal/day ({est.estimate_source.value}, "
        f"confidence {est.confidence:.0%}); eat ~{est.recommended_intake:.0f} kcal/day"
    )
