"""Warden CLI — evaluate moderation snapshots from YAML/JSON files."""

from __future__ import annotations

import json
import logging
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from warden import __version__
from warden.errors import WardenError

console = Console()

_ACTION_STYLES = {
    "none": "green",
    "flag": "yellow",
    "quarantine": "dark_orange",
    "ban": "red",
}

_RISK_STYLES = {
    "excellent": "green",
    "good": "yellow",
    "fair": "dark_orange",
    "poor": "red",
    "low": "green",
    "moderate": "yellow",
    "high": "dark_orange",
    "critical": "red",
}


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show engine debug logging")
def main(verbose: bool):
    """Warden — adaptive threat scoring and policy resolution.

    Resolve aggressiveness thresholds, score members, predict threat
    trends and audit a community from snapshot files.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# ── Levels ───────────────────────────────────────────────────────────


@main.command()
@click.option("--config", "-c", "config_path", default=None, help="Engine config YAML")
def levels(config_path: Optional[str]):
    """Show the resolved thresholds for every aggressiveness level."""
    from warden.policy.resolver import describe_level, resolve_all

    config = _load_engine_config(config_path)

    table = Table(title="Aggressiveness Levels")
    table.add_column("Level", justify="right")
    table.add_column("Profile", style="cyan")
    table.add_column("Min Age", justify="right")
    table.add_column("Joins/min", justify="right")
    table.add_column("Msgs/min", justify="right")
    table.add_column("AI Floor", justify="right")
    table.add_column("Flag At", justify="right")
    table.add_column("Auto", justify="center")

    for thresholds in resolve_all(config):
        description = describe_level(thresholds.level)
        auto = "ban" if thresholds.auto_ban else "quarantine" if thresholds.auto_quarantine else "-"
        table.add_row(
            str(thresholds.level),
            description.label,
            f"{thresholds.min_account_age_days}d",
            str(thresholds.max_joins_per_minute),
            str(thresholds.max_messages_per_minute),
            f"{thresholds.ai_confidence_floor:.2f}",
            str(thresholds.suspicion_threshold),
            auto,
        )

    console.print(table)


# ── Resolve ──────────────────────────────────────────────────────────


@main.command(name="resolve")
@click.argument("level", type=int)
@click.option("--override-level", type=int, default=None, help="Per-user override level")
@click.option("--reputation", type=int, default=None, help="Apply the reputation adjustment")
@click.option("--config", "-c", "config_path", default=None, help="Engine config YAML")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a panel")
def resolve_command(
    level: int,
    override_level: Optional[int],
    reputation: Optional[int],
    config_path: Optional[str],
    as_json: bool,
):
    """Resolve the thresholds for LEVEL (1-10)."""
    from warden.policy.models import UserOverride
    from warden.policy.resolver import describe_level, resolve

    config = _load_engine_config(config_path)
    override = UserOverride(level=override_level, set_by="cli") if override_level is not None else None

    try:
        thresholds = resolve(level, override, reputation_score=reputation, config=config)
    except WardenError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(thresholds.to_dict(), indent=2))
        return

    description = describe_level(thresholds.level)
    lines = [f"[bold]{description.label}[/] - {description.summary}", ""]
    for key, value in thresholds.to_dict().items():
        lines.append(f"{key}: {value}")
    console.print(Panel("\n".join(lines), title=f"Level {thresholds.level}"))


# ── Score ────────────────────────────────────────────────────────────


@main.command(name="score")
@click.argument("members_file")
@click.option("--level", "-l", type=int, required=True, help="Server aggressiveness level (1-10)")
@click.option("--config", "-c", "config_path", default=None, help="Engine config YAML")
@click.option("--now", default=None, help="Evaluation time (ISO-8601), defaults to the current time")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
def score_command(members_file: str, level: int, config_path: Optional[str], now: Optional[str], as_json: bool):
    """Score every member listed in MEMBERS_FILE.

    The file holds either a list of member payloads or a mapping with
    ``members`` plus optional ``overrides`` and ``ai_signals`` keyed by user id.
    """
    from warden.engine import evaluate_members

    config = _load_engine_config(config_path)
    data = _load_data(members_file)
    members, overrides, ai_signals = _member_inputs(data)

    try:
        results = evaluate_members(
            members, level, overrides, ai_signals, config=config, now=_parse_now(now)
        )
    except WardenError as e:
        _fail(str(e))

    results.sort(key=lambda r: r.score, reverse=True)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return

    table = Table(title=f"Suspicion Scores (level {level}, {len(results)} members)")
    table.add_column("User", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Action")
    table.add_column("Reasons")

    for result in results:
        action = result.recommended_action.value
        style = _ACTION_STYLES[action]
        table.add_row(
            result.user_id,
            f"{result.score:.1f}",
            f"[{style}]{action.upper()}[/]",
            result.summary[:80],
        )

    console.print(table)


# ── Predict ──────────────────────────────────────────────────────────


@main.command()
@click.argument("events_file")
@click.option("--timeframe", "-t", default="7d", type=click.Choice(["24h", "7d", "30d"]))
@click.option("--category", default="all", type=click.Choice(["raid", "spam", "general", "all"]))
@click.option("--now", default=None, help="Evaluation time (ISO-8601), defaults to the current time")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a report")
def predict(events_file: str, timeframe: str, category: str, now: Optional[str], as_json: bool):
    """Predict threat probability from the event log in EVENTS_FILE."""
    from warden.trends.analyzer import forecast

    data = _load_data(events_file)
    try:
        events = _events(data)
        result = forecast(events, timeframe, category, now=_parse_now(now))
    except WardenError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    style = _RISK_STYLES[result.status]
    highest = result.highest
    console.print(
        Panel(
            f"Timeframe: {result.timeframe.label}\n"
            f"Events analyzed: {len(events)}\n"
            f"Average probability: {result.average_probability:.1f}%\n"
            f"Highest risk: {highest.category.value} ({highest.probability:.1f}%)\n"
            f"Status: [{style}]{result.status.upper()}[/]",
            title="Predictive Threat Analysis",
        )
    )

    for prediction in result.predictions:
        style = _RISK_STYLES[prediction.risk_label]
        console.print(
            f"\n[{style}]{prediction.risk_label.upper()}[/] [bold]{prediction.category.value}[/] "
            f"- {prediction.probability:.1f}% ({prediction.trend_direction.value})"
        )
        for indicator in prediction.indicators:
            console.print(f"  - {indicator}")
        console.print("  [bold]Recommended actions:[/]")
        for mitigation in prediction.mitigations:
            console.print(f"  * {mitigation}")


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.argument("snapshot_file")
@click.option("--level", "-l", type=int, default=5, help="Server aggressiveness level (1-10)")
@click.option("--config", "-c", "config_path", default=None, help="Engine config YAML")
@click.option("--now", default=None, help="Evaluation time (ISO-8601), defaults to the current time")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a report")
def audit(snapshot_file: str, level: int, config_path: Optional[str], now: Optional[str], as_json: bool):
    """Produce a server risk report from SNAPSHOT_FILE.

    The file holds a ``community`` mapping of counts and, optionally,
    ``members`` to score and ``events`` from which to count recent incidents.
    """
    from warden.engine import audit_community, evaluate_members
    from warden.risk.aggregator import snapshot_from_events
    from warden.risk.models import CommunitySnapshot

    config = _load_engine_config(config_path)
    data = _load_data(snapshot_file)
    if not isinstance(data, dict) or not isinstance(data.get("community"), dict):
        _fail(f"{snapshot_file}: expected a 'community' mapping")

    evaluated_at = _parse_now(now)
    community = data["community"]

    try:
        if "events" in data:
            snapshot = snapshot_from_events(
                _events(data["events"]),
                member_count=community.get("member_count", 0),
                privileged_count=community.get("privileged_count", 0),
                bot_count=community.get("bot_count", 0),
                new_account_count=community.get("new_account_count", 0),
                now=evaluated_at,
            )
        else:
            snapshot = CommunitySnapshot(**community)
        members, overrides, ai_signals = _member_inputs(data)
        results = evaluate_members(
            members, level, overrides, ai_signals, config=config, now=evaluated_at
        )
        report = audit_community(snapshot, results)
    except TypeError as e:
        _fail(f"{snapshot_file}: {e}")
    except WardenError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    style = _RISK_STYLES[report.level.value]
    tiers = report.risk_tiers
    console.print(
        Panel(
            f"Overall score: {report.score}/100\n"
            f"Level: [{style}]{report.level.value.upper()}[/]\n"
            f"Flagged members: {len(report.flagged_users)} "
            f"(high {tiers['high']}, moderate {tiers['moderate']}, low {tiers['low']})",
            title="Security Audit",
        )
    )

    console.print("\n[bold]Vulnerabilities:[/]")
    for vulnerability in report.vulnerabilities:
        console.print(f"  - {vulnerability}")

    if report.flagged_users:
        table = Table(title="Top Suspicious Members")
        table.add_column("User", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Action")
        table.add_column("Reasons")
        for result in report.flagged_users[:10]:
            action = result.recommended_action.value
            table.add_row(
                result.user_id,
                f"{result.score:.1f}",
                f"[{_ACTION_STYLES[action]}]{action.upper()}[/]",
                result.summary[:80],
            )
        console.print(table)


# ── Helpers ──────────────────────────────────────────────────────────


def _fail(message: str):
    console.print(f"[red]Error:[/] {message}")
    raise SystemExit(1)


def _load_data(path: str):
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        _fail(f"Failed to read {path}: {e}")


def _load_engine_config(path: Optional[str]):
    from warden.config import EngineConfig, load_config

    if path is None:
        return EngineConfig()
    try:
        return load_config(path)
    except (OSError, yaml.YAMLError, WardenError) as e:
        _fail(f"Failed to load config {path}: {e}")


def _parse_now(value: Optional[str]):
    from warden.utils.clock import parse_timestamp, utcnow

    if value is None:
        return utcnow()
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        _fail(f"--now must be an ISO-8601 timestamp, got {value!r}")


def _member_inputs(data):
    from warden.policy.models import UserOverride
    from warden.scoring.ai import coerce_ai_signal

    if isinstance(data, list):
        return data, {}, {}
    if not isinstance(data, dict):
        _fail("expected a list of members or a mapping with 'members'")

    try:
        overrides = {
            str(user_id): UserOverride.from_dict(entry)
            for user_id, entry in (data.get("overrides") or {}).items()
        }
    except (KeyError, TypeError, ValueError) as e:
        _fail(f"invalid override: {e}")

    ai_signals = {}
    for user_id, entry in (data.get("ai_signals") or {}).items():
        signal = coerce_ai_signal(entry)
        if signal is not None:
            ai_signals[str(user_id)] = signal

    return data.get("members") or [], overrides, ai_signals


def _events(data):
    from warden.trends.models import ThreatEvent

    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list):
        _fail("expected a list of events or a mapping with 'events'")
    return [ThreatEvent.from_dict(entry) for entry in data]


if __name__ == "__main__":
    main()
