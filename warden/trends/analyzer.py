"""Trend analyzer — projects near-future threat probability from past events.

Two fixed, disjoint 7-day windows ending at ``now`` measure the trend; the
prediction horizon only sets the lookback used for the base frequency
(twice the horizon). With no matching events in that lookback the
prediction falls back to a small residual probability instead of zero.
Probabilities are capped at 95: the analyzer never claims certainty.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from warden.errors import InvalidSignal
from warden.trends.models import (
    ThreatCategory,
    ThreatEvent,
    ThreatForecast,
    ThreatPrediction,
    ThreatSeverity,
    ThreatType,
    Timeframe,
    TrendDirection,
)
from warden.utils.clock import age_in_days, ensure_aware, utcnow

TREND_WINDOW_DAYS = 7
MAX_PROBABILITY = 95.0
TREND_WEIGHT = 0.5
TREND_SIGNIFICANCE = 0.3


@dataclass(frozen=True)
class _CategoryProfile:
    noun: str
    floor: float
    frequency_factor: float
    burst_bonus: float
    urgent_above: float
    matches: Callable[[ThreatType], bool]


_PROFILES: dict[ThreatCategory, _CategoryProfile] = {
    ThreatCategory.RAID: _CategoryProfile(
        noun="raids",
        floor=5,
        frequency_factor=100,
        burst_bonus=15,
        urgent_above=50,
        matches=lambda t: t == ThreatType.RAID,
    ),
    ThreatCategory.SPAM: _CategoryProfile(
        noun="spam incidents",
        floor=10,
        frequency_factor=80,
        burst_bonus=10,
        urgent_above=60,
        matches=lambda t: t == ThreatType.SPAM,
    ),
    ThreatCategory.GENERAL: _CategoryProfile(
        noun="threats",
        floor=15,
        frequency_factor=60,
        burst_bonus=20,
        urgent_above=70,
        matches=lambda t: True,
    ),
}


def parse_timeframe(value: Union[Timeframe, str]) -> Timeframe:
    if isinstance(value, Timeframe):
        return value
    try:
        return Timeframe(value)
    except ValueError:
        allowed = ", ".join(t.value for t in Timeframe)
        raise InvalidSignal(f"timeframe must be one of {allowed}, got {value!r}", "timeframe") from None


def parse_category(value: Union[ThreatCategory, str, None]) -> ThreatCategory:
    if value is None:
        return ThreatCategory.GENERAL
    if isinstance(value, ThreatCategory):
        return value
    try:
        return ThreatCategory(value)
    except ValueError:
        allowed = ", ".join(c.value for c in ThreatCategory)
        raise InvalidSignal(f"category must be one of {allowed}, got {value!r}", "category") from None


def analyze(
    events: Iterable[ThreatEvent],
    timeframe: Union[Timeframe, str] = Timeframe.WEEK,
    category: Union[ThreatCategory, str, None] = None,
    *,
    now: Optional[datetime] = None,
) -> ThreatPrediction:
    """Predict the probability of one threat category within ``timeframe``.

    ``events`` need not be sorted. Events dated after ``now`` are ignored.

    Raises:
        InvalidSignal: for an unknown timeframe or category.
    """
    timeframe = parse_timeframe(timeframe)
    category = parse_category(category)
    profile = _PROFILES[category]
    now = ensure_aware(now or utcnow())

    aged: list[tuple[ThreatEvent, float]] = []
    for event in events:
        if not profile.matches(event.type):
            continue
        age = age_in_days(event.timestamp, now)
        if age >= 0:
            aged.append((event, age))

    window_days = timeframe.days * 2
    window = [event for event, age in aged if age < window_days]
    recent = [event for event, age in aged if age < TREND_WINDOW_DAYS]
    prior = [event for event, age in aged if TREND_WINDOW_DAYS <= age < 2 * TREND_WINDOW_DAYS]

    recent_freq = len(recent) / TREND_WINDOW_DAYS
    prior_freq = len(prior) / TREND_WINDOW_DAYS
    # No prior activity means no baseline to compare against, not an infinite rise.
    trend = (recent_freq - prior_freq) / prior_freq if prior_freq > 0 else 0.0

    frequency = len(window) / window_days
    if not window:
        probability = profile.floor
    else:
        probability = min(
            MAX_PROBABILITY,
            profile.frequency_factor * frequency * (1 + max(0.0, trend * TREND_WEIGHT)),
        )
        if _is_burst(category, recent):
            probability = min(MAX_PROBABILITY, probability + profile.burst_bonus)

    direction = _direction(trend)

    return ThreatPrediction(
        category=category,
        probability=float(probability),
        trend_direction=direction,
        timeframe=timeframe,
        trend=trend,
        frequency=frequency,
        window_count=len(window),
        recent_count=len(recent),
        prior_count=len(prior),
        indicators=_indicators(category, profile, window, recent, prior, window_days, frequency, direction),
        mitigations=_mitigations(category, profile, probability),
    )


def forecast(
    events: Iterable[ThreatEvent],
    timeframe: Union[Timeframe, str] = Timeframe.WEEK,
    category: Union[ThreatCategory, str, None] = "all",
    *,
    now: Optional[datetime] = None,
) -> ThreatForecast:
    """Predict several categories at once; ``"all"`` covers raid, spam and general."""
    timeframe = parse_timeframe(timeframe)
    now = ensure_aware(now or utcnow())
    events = list(events)

    if category == "all":
        categories = [ThreatCategory.RAID, ThreatCategory.SPAM, ThreatCategory.GENERAL]
    else:
        categories = [parse_category(category)]

    return ThreatForecast(
        timeframe=timeframe,
        predictions=[analyze(events, timeframe, c, now=now) for c in categories],
    )


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _is_burst(category: ThreatCategory, recent: list[ThreatEvent]) -> bool:
    if category == ThreatCategory.RAID:
        return len(recent) > 3
    if category == ThreatCategory.SPAM:
        return len(recent) > 5
    critical = sum(1 for e in recent if e.severity == ThreatSeverity.CRITICAL)
    high = sum(1 for e in recent if e.severity == ThreatSeverity.HIGH)
    return critical > 2 or high > 5


def _direction(trend: float) -> TrendDirection:
    if trend > TREND_SIGNIFICANCE:
        return TrendDirection.INCREASING
    if trend < -TREND_SIGNIFICANCE:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def _indicators(
    category: ThreatCategory,
    profile: _CategoryProfile,
    window: list[ThreatEvent],
    recent: list[ThreatEvent],
    prior: list[ThreatEvent],
    window_days: int,
    frequency: float,
    direction: TrendDirection,
) -> list[str]:
    indicators = [
        f"{len(window)} {profile.noun} in last {window_days} days ({frequency:.2f}/day)",
        f"Recent 7d: {len(recent)} {profile.noun} vs Previous 7d: {len(prior)} {profile.noun}",
        f"{direction.value.upper()} trend",
    ]

    if category == ThreatCategory.GENERAL:
        critical = sum(1 for e in window if e.severity == ThreatSeverity.CRITICAL)
        high = sum(1 for e in window if e.severity == ThreatSeverity.HIGH)
        indicators.append(
            f"Severity breakdown: {critical} critical, {high} high, {len(window) - critical - high} medium/low"
        )
    elif category == ThreatCategory.RAID:
        if len(recent) > 5:
            indicators.append("HIGH: Elevated raid activity")
        else:
            indicators.append("Moderate activity detected" if window else "No raid history")
    else:
        if len(recent) > 10:
            indicators.append("HIGH: Sustained spam pattern")
        else:
            indicators.append("Moderate spam activity" if window else "No spam history")

    return indicators


def _mitigations(category: ThreatCategory, profile: _CategoryProfile, probability: float) -> list[str]:
    urgent = probability > profile.urgent_above

    if category == ThreatCategory.RAID:
        return [
            "Raise the server verification level to HIGH",
            "Enable anti-raid protection",
            "Limit invite creation permissions",
            "Require accounts to be at least 7 days old",
            "URGENT: Lock the server temporarily" if urgent else "Standard monitoring sufficient",
        ]
    if category == ThreatCategory.SPAM:
        return [
            "Enable automatic moderation",
            "Activate slowmode in public channels",
            "Apply a 10-minute timeout to new members",
            "Enable message content filtering",
            "URGENT: Restrict posting by new members" if urgent else "Current filters adequate",
        ]
    return [
        "Increase monitoring frequency",
        "Review security logs daily",
        "Assign more moderators",
        "Enable all protection modules",
        "CRITICAL: Implement emergency protocols" if urgent else "Maintain current security posture",
    ]
