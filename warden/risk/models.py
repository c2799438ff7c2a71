"""Models for the community-level risk report."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum

from warden.scoring.models import SuspicionResult


class RiskLevel(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass
class CommunitySnapshot:
    """Aggregate counts describing one community at a point in time."""

    member_count: int
    privileged_count: int = 0
    bot_count: int = 0
    new_account_count: int = 0
    recent_events_24h: int = 0
    recent_events_7d: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ServerRiskReport:
    """Security posture of a community, 0 (worst) to 100 (best)."""

    score: int
    level: RiskLevel
    vulnerabilities: list[str] = field(default_factory=list)
    flagged_users: list[SuspicionResult] = field(default_factory=list)

    @property
    def risk_tiers(self) -> dict[str, int]:
        """Flagged users bucketed as high (70+), moderate (50-69) and low (<50)."""
        tiers = {"high": 0, "moderate": 0, "low": 0}
        for result in self.flagged_users:
            if result.score >= 70:
                tiers["high"] += 1
            elif result.score >= 50:
                tiers["moderate"] += 1
            else:
                tiers["low"] += 1
        return tiers

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "level": self.level.value,
            "vulnerabilities": list(self.vulnerabilities),
            "risk_tiers": self.risk_tiers,
            "flagged_users": [r.to_dict() for r in self.flagged_users],
        }
