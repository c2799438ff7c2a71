"""Evaluation pipeline — normalize, resolve and score in one call.

Nothing here holds state: the aggressiveness level, overrides, AI verdicts
and the clock are all passed in, so batches can be fanned out freely by
the caller.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Optional

from warden.config import EngineConfig
from warden.errors import InvalidSignal
from warden.policy.models import UserOverride
from warden.policy.resolver import resolve
from warden.risk.aggregator import aggregate_snapshot
from warden.risk.models import CommunitySnapshot, ServerRiskReport
from warden.scoring.models import AISignal, SuspicionResult
from warden.scoring.scorer import score
from warden.signals.normalizer import normalize
from warden.utils.clock import utcnow


def evaluate_member(
    raw: Mapping,
    server_level: int,
    override: Optional[UserOverride] = None,
    ai_signal: Optional[AISignal] = None,
    *,
    config: Optional[EngineConfig] = None,
    now: Optional[datetime] = None,
) -> SuspicionResult:
    """Score one raw member payload under the server's aggressiveness level.

    Raises:
        InvalidLevel: if a level is outside 1-10.
        InvalidSignal: if the payload is structurally invalid.
    """
    config = config or EngineConfig()
    now = now or utcnow()

    signals = normalize(raw, now=now, config=config)
    # Only a reputation the provider actually reported moves the level.
    adjust = config.reputation_adjustment and signals.has_reputation
    thresholds = resolve(
        server_level,
        override,
        reputation_score=signals.reputation_score if adjust else None,
        now=now,
        config=config,
    )
    return score(signals, thresholds, ai_signal, weights=config.weights)


def evaluate_members(
    raws: Iterable[Mapping],
    server_level: int,
    overrides: Optional[Mapping[str, UserOverride]] = None,
    ai_signals: Optional[Mapping[str, AISignal]] = None,
    *,
    config: Optional[EngineConfig] = None,
    now: Optional[datetime] = None,
) -> list[SuspicionResult]:
    """Score a batch; overrides and AI verdicts are keyed by user id.

    Raises:
        InvalidSignal: if any member is not a mapping or is structurally invalid.
    """
    overrides = overrides or {}
    ai_signals = ai_signals or {}
    now = now or utcnow()

    results = []
    for raw in raws:
        if not isinstance(raw, Mapping):
            raise InvalidSignal(f"member payload must be a mapping, got {type(raw).__name__}")
        user_id = str(raw.get("user_id", raw.get("userId", "")))
        results.append(
            evaluate_member(
                raw,
                server_level,
                overrides.get(user_id),
                ai_signals.get(user_id),
                config=config,
                now=now,
            )
        )
    return results


def audit_community(
    snapshot: CommunitySnapshot,
    results: Iterable[SuspicionResult],
) -> ServerRiskReport:
    """Risk report listing only the members that were actually flagged."""
    return aggregate_snapshot(snapshot, [r for r in results if r.is_flagged])
