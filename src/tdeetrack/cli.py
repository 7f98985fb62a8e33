"""CLI interface using Typer."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tdeetrack.config import Settings, get_settings, reload_settings

app = typer.Typer(
    help="Adaptive TDEE estimation from intake and weight logs",
    no_args_is_help=True,
)
console = Console()

config_app = typer.Typer(help="Manage estimator configuration")
app.add_typer(config_app, name="config")

INSIGHT_STYLES = {
    "alert": "bold red",
    "warning": "yellow",
    "success": "green",
    "info": "cyan",
}


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def configure_logging(verbose: bool) -> None:
    """Route library logs through Rich when --verbose is given."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def fail(message: str, json_output: bool) -> None:
    """Report an error in the requested format and exit with status 1."""
    if json_output:
        output_json({"success": False, "errors": [message]})
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


# ============================================================================
# Main Commands
# ============================================================================


@app.command()
def estimate(
    log_file: Path = typer.Argument(..., help="YAML or JSON log bundle"),
    as_of: Optional[str] = typer.Option(
        None, "--as-of", "-d", help="Date to estimate for (YYYY-MM-DD, default: last log day)"
    ),
    goal: Optional[str] = typer.Option(
        None,
        "--goal",
        "-g",
        help="Goal preset (lose1, maintain, ...), kcal/day, or kg/week (e.g. -0.5kg)",
    ),
    timezone: Optional[str] = typer.Option(
        None, "--timezone", "--tz", help="IANA timezone for timestamped entries"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: ~/.tdeetrack/config.yaml)"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Also write a plain-text report to this file"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Estimate TDEE from a log bundle."""
    from datetime import date
    from zoneinfo import ZoneInfo

    from tdeetrack.tracking.diagnostics import SOURCE_LABELS, format_result, summarize
    from tdeetrack.tracking.engine import estimate_from_logs
    from tdeetrack.tracking.loader import load_bundle, parse_goal

    configure_logging(verbose)
    try:
        settings = reload_settings(config_path) if config_path else get_settings()
    except (ValueError, yaml.YAMLError) as e:
        fail(f"Invalid config: {e}", json_output)
    json_output = json_output or settings.defaults.output_format == "json"

    if not log_file.exists():
        fail(f"Log file not found: {log_file}", json_output)

    try:
        bundle = load_bundle(log_file)
        goal_delta = parse_goal(
            goal or bundle.goal or settings.defaults.goal,
            settings.estimator.kcal_per_kg,
        )
        day = date.fromisoformat(as_of) if as_of else None
        tz_name = timezone or bundle.timezone or settings.defaults.timezone
        if tz_name:
            ZoneInfo(tz_name)
    except (ValueError, KeyError, TypeError, yaml.YAMLError) as e:
        fail(f"Invalid input: {e}", json_output)

    result = estimate_from_logs(
        bundle.food,
        bundle.exercise,
        bundle.weights,
        bundle.biometrics,
        goal_delta_kcal=goal_delta,
        as_of=day,
        timezone=tz_name,
        trend_history=bundle.trend_history,
        config=settings.estimator,
    )

    if output:
        output.write_text(format_result(result) + "\n")

    if json_output:
        output_json({
            "success": result.estimate is not None,
            "command": "estimate",
            "data": result.to_dict(),
            "human_summary": summarize(result),
        })
        return

    est = result.estimate
    if est is None:
        console.print("[yellow]No estimate available: complete your profile.[/yellow]")
    else:
        table = Table(title=f"TDEE estimate for {est.day.isoformat()}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("TDEE", f"{est.tdee:.0f} kcal/day")
        table.add_row("Source", SOURCE_LABELS[est.estimate_source])
        table.add_row("Confidence", f"{est.confidence:.0%}")
        table.add_row("Formula TDEE", f"{est.formula_tdee:.0f} kcal/day")
        if est.observed_tdee is not None:
            table.add_row("Observed TDEE", f"{est.observed_tdee:.0f} kcal/day")
        table.add_row("BMR", f"{est.bmr:.0f} kcal/day")
        table.add_row("Activity multiplier", f"{est.activity_multiplier:.2f}")
        table.add_row("Recommended intake", f"{est.recommended_intake:.0f} kcal/day")
        table.add_row("Weight change", f"{est.weekly_weight_change_kg:+.2f} kg/week")
        table.add_row("TDEE trend", est.trend.value)
        console.print(table)

    console.print(
        f"Days logged this week: {result.days_logged_this_week}/7 "
        f"({result.total_days_with_data} days with data overall)"
    )
    for insight in result.insights:
        style = INSIGHT_STYLES[insight.type.value]
        console.print(f"[{style}]{insight.title}[/{style}]: {insight.message}")


@app.command()
def formula(
    age: float = typer.Option(..., "--age", help="Age in years"),
    sex: str = typer.Option(..., "--sex", help="male or female"),
    height_cm: float = typer.Option(..., "--height-cm", help="Height in cm"),
    weight_kg: float = typer.Option(..., "--weight-kg", help="Weight in kg"),
    activity: str = typer.Option("moderate", "--activity", "-a", help="Activity level"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Compute formula BMR and TDEE (Mifflin-St Jeor)."""
    from tdeetrack.errors import InvalidBiometrics
    from tdeetrack.profiles.body_calc import formula_estimate
    from tdeetrack.tracking.models import UserBiometrics

    biometrics = UserBiometrics(
        sex=sex,
        age_years=age,
        height_cm=height_cm,
        weight_kg=weight_kg,
        activity_level=activity,
    )
    try:
        result = formula_estimate(biometrics)
    except InvalidBiometrics as e:
        fail(str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "formula",
            "data": {
                "bmr": round(result.bmr, 1),
                "activity_multiplier": result.activity_multiplier,
                "tdee": round(result.tdee, 1),
            },
            "human_summary": f"TDEE: {result.tdee:.0f} kcal/day (BMR {result.bmr:.0f})",
        })
    else:
        console.print(f"  BMR:  {result.bmr:.0f} kcal/day")
        console.print(f"  Activity multiplier: {result.activity_multiplier}")
        console.print(f"  [bold]TDEE: {result.tdee:.0f} kcal/day[/bold]")


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(
    config_path: Optional[Path] = typer.Option(None, "--path", "-p", help="Config file"),
) -> None:
    """Show the effective configuration."""
    from dataclasses import asdict

    settings = Settings.load(config_path)

    table = Table(title="Estimator configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in asdict(settings.estimator).items():
        table.add_row(key, str(value))
    for key, value in asdict(settings.defaults).items():
        table.add_row(f"defaults.{key}", str(value))
    console.print(table)


@config_app.command("init")
def config_init(
    config_path: Optional[Path] = typer.Option(None, "--path", "-p", help="Config file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a config file with the default settings."""
    from tdeetrack.config.settings import _default_config_path

    target = config_path or _default_config_path()
    if target.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {target} (use --force)")
        raise typer.Exit(1)

    Settings().save(target)
    console.print(f"[green]Wrote config:[/green] {target}")


if __name__ == "__main__":
    app()
