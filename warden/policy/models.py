"""Data models for aggressiveness policy resolution."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from warden.utils.clock import ensure_aware, parse_timestamp

MIN_LEVEL = 1
MAX_LEVEL = 10

# (level 1, level 10) anchor pairs; intermediate levels are interpolated.
DEFAULT_ANCHORS: dict[str, tuple[float, float]] = {
    "min_account_age_days": (30, 7),
    "max_joins_per_minute": (8, 1),
    "max_messages_per_minute": (15, 3),
    "max_duplicate_messages": (5, 1),
    "max_mentions_per_message": (8, 2),
    "max_links_per_message": (5, 0),
    "ai_confidence_floor": (0.95, 0.55),
}

# Counters a per-user override may replace directly.
OVERRIDABLE_COUNTERS = (
    "max_messages_per_minute",
    "max_duplicate_messages",
    "max_mentions_per_message",
    "max_links_per_message",
)


@dataclass
class UserOverride:
    """A per-user aggressiveness level that replaces the server default."""

    level: int
    reason: str = ""
    set_by: str = ""
    expires_at: Optional[datetime] = None
    ai_threshold: Optional[float] = None
    threshold_overrides: dict[str, int] = field(default_factory=dict)

    def is_active(self, now: datetime) -> bool:
        return self.expires_at is None or ensure_aware(self.expires_at) > ensure_aware(now)

    @classmethod
    def from_dict(cls, data: dict) -> UserOverride:
        expires_at = data.get("expires_at")
        if expires_at is not None:
            expires_at = parse_timestamp(expires_at)
        return cls(
            level=data["level"],
            reason=data.get("reason", ""),
            set_by=data.get("set_by", ""),
            expires_at=expires_at,
            ai_threshold=data.get("ai_threshold"),
            threshold_overrides=dict(data.get("threshold_overrides") or {}),
        )


@dataclass
class PolicyThresholds:
    """Concrete enforcement thresholds for one effective aggressiveness level."""

    level: int
    min_account_age_days: int
    max_joins_per_minute: int
    max_messages_per_minute: int
    max_duplicate_messages: int
    max_mentions_per_message: int
    max_links_per_message: int
    ai_confidence_floor: float
    auto_quarantine: bool
    auto_ban: bool
    suspicion_threshold: int
    override_applied: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LevelDescription:
    """Human-facing label for an aggressiveness level."""

    level: int
    label: str
    summary: str
