"""Signal normalizer — validates raw member payloads and clamps them into range.

Structural problems (missing identity, missing account age, wrong types)
are rejected with :class:`~warden.errors.InvalidSignal`. Values that are
merely out of range are clamped: negative ages and counts become zero and
reputation is held at the configured floor so penalties cannot stack
without bound.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from warden.config import EngineConfig
from warden.errors import InvalidSignal
from warden.signals.models import NEUTRAL_REPUTATION, UserSignals
from warden.signals.schema import RawMemberSignals
from warden.trends.models import ThreatEvent
from warden.utils.clock import age_in_days, utcnow

RECENT_THREAT_WINDOW_DAYS = 7


def normalize(
    raw: Mapping,
    *,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> UserSignals:
    """Turn one raw member payload into bounded :class:`UserSignals`.

    Raises:
        InvalidSignal: if a required field is missing or a field has the
            wrong type.
    """
    config = config or EngineConfig()

    if not isinstance(raw, Mapping):
        raise InvalidSignal(f"member payload must be a mapping, got {type(raw).__name__}")

    try:
        payload = RawMemberSignals.model_validate(dict(raw))
    except ValidationError as e:
        raise _as_invalid_signal(e) from e

    now = now or utcnow()

    if payload.account_age_days is not None:
        account_age = payload.account_age_days
    else:
        account_age = age_in_days(payload.account_created_at, now)

    if payload.join_age_days is not None:
        join_age = payload.join_age_days
    elif payload.joined_at is not None:
        join_age = age_in_days(payload.joined_at, now)
    else:
        join_age = 0.0

    has_reputation = payload.reputation_score is not None
    reputation = payload.reputation_score if has_reputation else NEUTRAL_REPUTATION

    anomalies = payload.username_anomaly_count
    if anomalies is None:
        anomalies = count_username_anomalies(payload.username or "")

    return UserSignals(
        user_id=payload.user_id,
        account_age_days=max(0.0, float(account_age)),
        join_age_days=max(0.0, float(join_age)),
        reputation_score=max(config.reputation_floor, reputation),
        has_reputation=has_reputation,
        recent_threat_count=max(0, payload.recent_threat_count),
        username_anomaly_count=max(0, anomalies),
        has_default_avatar=payload.has_default_avatar,
        is_privileged=payload.is_privileged,
        is_protected=payload.is_protected,
        is_bot=payload.is_bot,
        sources=tuple(sorted({s.strip() for s in payload.sources if s.strip()})),
    )


def normalize_many(
    raws: Iterable[Mapping],
    *,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> list[UserSignals]:
    """Normalize a batch; the first invalid payload aborts the whole batch."""
    now = now or utcnow()
    return [normalize(raw, now=now, config=config) for raw in raws]


def count_username_anomalies(username: str) -> int:
    """Number of non-ASCII characters."""
    return sum(1 for ch in username if ord(ch) > 127)


def count_recent_threats(
    events: Iterable[ThreatEvent],
    user_id: str,
    *,
    now: Optional[datetime] = None,
    window_days: float = RECENT_THREAT_WINDOW_DAYS,
) -> int:
    """Unresolved events attributed to ``user_id`` within the last ``window_days``."""
    now = now or utcnow()
    return sum(
        1
        for event in events
        if event.user_id == user_id
        and not event.resolved
        and 0 <= age_in_days(event.timestamp, now) < window_days
    )


def _as_invalid_signal(error: ValidationError) -> InvalidSignal:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "payload"
    return InvalidSignal(f"{location}: {first.get('msg', 'invalid value')}", location)
