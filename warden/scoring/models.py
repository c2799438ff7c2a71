"""Models for member suspicion scoring.

Scores are additive and explainable: every rule that fires appends a
``ScoreReason`` carrying its contribution, so the final score is always the
sum of the listed weights.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RecommendedAction(Enum):
    """What the caller should do with a member. Ordered by severity."""

    NONE = "none"
    FLAG = "flag"
    QUARANTINE = "quarantine"
    BAN = "ban"


@dataclass(frozen=True)
class ScoringWeights:
    """Per-rule contributions and action-mapping constants."""

    account_under_1_day: float = 90
    account_under_3_days: float = 80
    account_under_7_days: float = 60
    account_under_14_days: float = 40
    reputation_under_20: float = 80
    reputation_under_50: float = 50
    reputation_under_80: float = 30
    per_recent_threat: float = 30
    username_anomalies_over_15: float = 60
    username_anomalies_over_8: float = 40
    default_avatar_new_account: float = 30
    just_joined: float = 50
    young_privileged_account: float = 40
    ai_confidence_multiplier: float = 50
    action_gap: float = 30
    ban_floor: float = 70


@dataclass(frozen=True)
class AISignal:
    """Verdict from an external classifier, injected by the caller."""

    confidence: float
    label: str


@dataclass
class ScoreReason:
    """One triggered rule and how much it added."""

    label: str
    weight: float


@dataclass
class SuspicionResult:
    """Outcome of scoring a single member."""

    user_id: str
    score: float
    recommended_action: RecommendedAction
    level: int
    reasons: list[ScoreReason] = field(default_factory=list)
    ai_applied: bool = False

    @property
    def is_flagged(self) -> bool:
        return self.recommended_action != RecommendedAction.NONE

    @property
    def summary(self) -> str:
        if not self.reasons:
            return "No suspicious signals"
        return ", ".join(r.label for r in self.reasons)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "score": self.score,
            "recommended_action": self.recommended_action.value,
            "level": self.level,
            "reasons": [{"label": r.label, "weight": r.weight} for r in self.reasons],
            "ai_applied": self.ai_applied,
        }
