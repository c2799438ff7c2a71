"""Normalized per-member signals consumed by the scorer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

NEUTRAL_REPUTATION = 100


@dataclass
class UserSignals:
    """Bounded, validated behavioural signals for one member.

    Produced fresh for every evaluation; see
    :func:`warden.signals.normalizer.normalize`.
    """

    user_id: str
    account_age_days: float
    join_age_days: float = 0.0
    reputation_score: int = NEUTRAL_REPUTATION
    has_reputation: bool = False
    recent_threat_count: int = 0
    username_anomaly_count: int = 0
    has_default_avatar: bool = False
    is_privileged: bool = False
    is_protected: bool = False
    is_bot: bool = False
    sources: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["sources"] = list(self.sources)
        return data
