"""Models for threat events and trend-based predictions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from warden.errors import InvalidSignal
from warden.utils.clock import parse_timestamp


class ThreatType(Enum):
    RAID = "raid"
    SPAM = "spam"
    NSFW = "nsfw"
    BYPASS = "bypass"
    CONFIG_CHANGE = "config-change"
    OTHER = "other"


class ThreatSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ThreatCategory(Enum):
    """Prediction categories; ``general`` covers every event type."""

    RAID = "raid"
    SPAM = "spam"
    GENERAL = "general"


class TrendDirection(Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class Timeframe(Enum):
    """Prediction horizon."""

    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"

    @property
    def days(self) -> int:
        return {"24h": 1, "7d": 7, "30d": 30}[self.value]

    @property
    def label(self) -> str:
        return {"24h": "Next 24 Hours", "7d": "Next 7 Days", "30d": "Next 30 Days"}[self.value]


@dataclass(frozen=True)
class ThreatEvent:
    """An immutable record of a past security incident."""

    type: ThreatType
    severity: ThreatSeverity
    server_id: str
    timestamp: datetime
    user_id: Optional[str] = None
    resolved: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> ThreatEvent:
        """Build an event from a provider payload.

        Raises:
            InvalidSignal: if a required key is missing or has an unknown value.
        """
        try:
            event_type = ThreatType(data["type"])
            severity = ThreatSeverity(data["severity"])
            timestamp = parse_timestamp(data["timestamp"])
            server_id = str(data["server_id"])
        except KeyError as e:
            raise InvalidSignal(f"threat event is missing {e.args[0]!r}", str(e.args[0])) from e
        except (ValueError, TypeError) as e:
            raise InvalidSignal(f"malformed threat event: {e}") from e

        user_id = data.get("user_id")
        return cls(
            type=event_type,
            severity=severity,
            server_id=server_id,
            timestamp=timestamp,
            user_id=None if user_id is None else str(user_id),
            resolved=bool(data.get("resolved", False)),
        )


@dataclass
class ThreatPrediction:
    """Probability that a category of threat recurs within the timeframe."""

    category: ThreatCategory
    probability: float  # 0 - 95
    trend_direction: TrendDirection
    timeframe: Timeframe
    trend: float = 0.0
    frequency: float = 0.0  # events/day over the analysis window
    window_count: int = 0
    recent_count: int = 0
    prior_count: int = 0
    indicators: list[str] = field(default_factory=list)
    mitigations: list[str] = field(default_factory=list)

    @property
    def risk_label(self) -> str:
        return probability_label(self.probability)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "probability": self.probability,
            "trend_direction": self.trend_direction.value,
            "timeframe": self.timeframe.value,
            "trend": self.trend,
            "frequency": self.frequency,
            "window_count": self.window_count,
            "recent_count": self.recent_count,
            "prior_count": self.prior_count,
            "risk_label": self.risk_label,
            "indicators": list(self.indicators),
            "mitigations": list(self.mitigations),
        }


@dataclass
class ThreatForecast:
    """Predictions for several categories with an overall assessment."""

    timeframe: Timeframe
    predictions: list[ThreatPrediction] = field(default_factory=list)

    @property
    def average_probability(self) -> float:
        if not self.predictions:
            return 0.0
        return sum(p.probability for p in self.predictions) / len(self.predictions)

    @property
    def highest(self) -> Optional[ThreatPrediction]:
        if not self.predictions:
            return None
        return max(self.predictions, key=lambda p: p.probability)

    @property
    def status(self) -> str:
        return probability_label(self.average_probability)

    @property
    def should_alert(self) -> bool:
        return self.average_probability > 70

    def to_dict(self) -> dict:
        highest = self.highest
        return {
            "timeframe": self.timeframe.value,
            "average_probability": self.average_probability,
            "status": self.status,
            "should_alert": self.should_alert,
            "highest": highest.category.value if highest else None,
            "predictions": [p.to_dict() for p in self.predictions],
        }


def probability_label(probability: float) -> str:
    if probability > 70:
        return "critical"
    if probability > 50:
        return "high"
    if probability > 30:
        return "moderate"
    return "low"
