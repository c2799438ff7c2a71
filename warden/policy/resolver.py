"""Policy resolver — maps an aggressiveness level to concrete thresholds.

Level 1 is the permissive profile and level 10 the maximum profile; every
level in between is a linear interpolation of the two anchor tables.
Quarantine and ban automation switch on at fixed levels instead.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from warden.config import EngineConfig
from warden.errors import InvalidLevel
from warden.policy.models import (
    MAX_LEVEL,
    MIN_LEVEL,
    OVERRIDABLE_COUNTERS,
    LevelDescription,
    PolicyThresholds,
    UserOverride,
)

logger = logging.getLogger(__name__)

AUTO_QUARANTINE_LEVEL = 5
AUTO_BAN_LEVEL = 8

TRUSTED_REPUTATION = 70
UNTRUSTED_REPUTATION = 40

_LEVEL_DESCRIPTIONS: dict[int, tuple[str, str]] = {
    1: ("MINIMAL", "Very permissive, only critical threats"),
    2: ("LOW", "Permissive with basic protection"),
    3: ("MODERATE", "Standard protection"),
    4: ("MODERATE-HIGH", "Increased vigilance"),
    5: ("BALANCED", "Recommended default"),
    6: ("MODERATE-AGGRESSIVE", "Enhanced protection"),
    7: ("AGGRESSIVE", "Strict enforcement"),
    8: ("VERY AGGRESSIVE", "Very strict, low tolerance"),
    9: ("ULTRA AGGRESSIVE", "Extreme protection"),
    10: ("MAXIMUM", "Zero tolerance, instant bans"),
}


def resolve(
    server_level: int,
    override: Optional[UserOverride] = None,
    *,
    reputation_score: Optional[int] = None,
    server_ai_floor: Optional[float] = None,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> PolicyThresholds:
    """Resolve the thresholds that apply to one member.

    An active override replaces the server level outright; an expired one is
    ignored. ``reputation_score`` enables the trusted/untrusted adjustment and
    ``server_ai_floor`` (0-1, or 0-100 as stored by policy stores) keeps the
    AI confidence bar from dropping below the server's configured minimum.

    Raises:
        InvalidLevel: if ``server_level`` or the override level is outside 1-10.
    """
    config = config or EngineConfig()
    now = now or datetime.now(timezone.utc)
    if server_ai_floor is None:
        server_ai_floor = config.server_ai_floor

    level = effective_level(server_level, override, reputation_score=reputation_score, now=now)
    active = override if override is not None and override.is_active(now) else None

    thresholds = _thresholds_for_level(level, config)

    if server_ai_floor is not None:
        floor = _normalize_confidence(server_ai_floor)
        if floor > thresholds.ai_confidence_floor:
            logger.debug(
                "Raising AI confidence floor from %.2f to server minimum %.2f",
                thresholds.ai_confidence_floor,
                floor,
            )
            thresholds.ai_confidence_floor = floor

    if active is not None:
        thresholds.override_applied = True
        _apply_override_adjustments(thresholds, active)

    return thresholds


def effective_level(
    server_level: int,
    override: Optional[UserOverride] = None,
    *,
    reputation_score: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    """Pick the aggressiveness level that governs one member."""
    _check_level(server_level, "server_level")
    now = now or datetime.now(timezone.utc)

    if override is not None:
        if override.is_active(now):
            _check_level(override.level, "override.level")
            logger.debug("Override level %d applied (set by %s)", override.level, override.set_by or "unknown")
            return override.level
        logger.debug("Override expired at %s, using server level %d", override.expires_at, server_level)

    if reputation_score is None:
        return server_level

    adjustment = 0
    if reputation_score >= TRUSTED_REPUTATION:
        adjustment = -2
    elif reputation_score < UNTRUSTED_REPUTATION:
        adjustment = 1

    return max(MIN_LEVEL, min(MAX_LEVEL, server_level + adjustment))


def suspicion_threshold(level: int) -> int:
    """Score at which a member is flagged for the given effective level."""
    _check_level(level)
    if level >= 9:
        return 40
    if level >= 7:
        return 60
    if level >= 5:
        return 80
    return 100


def describe_level(level: int) -> LevelDescription:
    _check_level(level)
    label, summary = _LEVEL_DESCRIPTIONS[level]
    return LevelDescription(level=level, label=label, summary=summary)


def resolve_all(config: Optional[EngineConfig] = None) -> list[PolicyThresholds]:
    """Default thresholds for every level, weakest first."""
    config = config or EngineConfig()
    return [_thresholds_for_level(level, config) for level in range(MIN_LEVEL, MAX_LEVEL + 1)]


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _check_level(level: object, field_name: str = "level") -> None:
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidLevel(level, field_name)
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidLevel(level, field_name)


def _interpolate(anchor: tuple[float, float], level: int) -> float:
    low, high = anchor
    return low + (high - low) * (level - MIN_LEVEL) / (MAX_LEVEL - MIN_LEVEL)


def _round_half_up(value: float, places: str) -> Decimal:
    return Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def _thresholds_for_level(level: int, config: EngineConfig) -> PolicyThresholds:
    anchors = config.anchors

    def count(name: str) -> int:
        return int(_round_half_up(_interpolate(anchors[name], level), "1"))

    return PolicyThresholds(
        level=level,
        min_account_age_days=count("min_account_age_days"),
        max_joins_per_minute=count("max_joins_per_minute"),
        max_messages_per_minute=count("max_messages_per_minute"),
        max_duplicate_messages=count("max_duplicate_messages"),
        max_mentions_per_message=count("max_mentions_per_message"),
        max_links_per_message=count("max_links_per_message"),
        ai_confidence_floor=float(
            _round_half_up(_interpolate(anchors["ai_confidence_floor"], level), "0.01")
        ),
        auto_quarantine=level >= AUTO_QUARANTINE_LEVEL,
        auto_ban=level >= AUTO_BAN_LEVEL,
        suspicion_threshold=suspicion_threshold(level),
    )


def _normalize_confidence(value: float) -> float:
    # Policy stores keep percentages as integers.
    return value / 100 if value > 1 else value


def _apply_override_adjustments(thresholds: PolicyThresholds, override: UserOverride) -> None:
    if override.ai_threshold is not None:
        ai_threshold = _normalize_confidence(override.ai_threshold)
        if 0.1 <= ai_threshold <= 1.0:
            thresholds.ai_confidence_floor = round(ai_threshold, 2)
        else:
            logger.warning("Ignoring override ai_threshold %s: must be within 0.1-1.0", override.ai_threshold)

    for name, value in override.threshold_overrides.items():
        if name not in OVERRIDABLE_COUNTERS:
            logger.warning("Ignoring unknown threshold override %r", name)
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            logger.warning("Ignoring threshold override %s=%r: must be an integer >= 1", name, value)
            continue
        setattr(thresholds, name, value)
