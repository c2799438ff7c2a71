"""Scorer — combines member signals and resolved policy into a suspicion score.

Each rule contributes independently and records a reason when it fires.
Protected members are exempt before any rule runs. The optional AI signal
is an enrichment only: when it is missing, malformed or below the policy's
confidence floor the rule is skipped and scoring carries on.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from warden.policy.models import PolicyThresholds
from warden.scoring.models import (
    AISignal,
    RecommendedAction,
    ScoreReason,
    ScoringWeights,
    SuspicionResult,
)
from warden.signals.models import UserSignals

logger = logging.getLogger(__name__)

JUST_JOINED_MIN_LEVEL = 9


def score(
    signals: UserSignals,
    thresholds: PolicyThresholds,
    ai_signal: Optional[AISignal] = None,
    *,
    weights: Optional[ScoringWeights] = None,
) -> SuspicionResult:
    """Score one member against the thresholds resolved for them."""
    weights = weights or ScoringWeights()

    if signals.is_protected:
        return SuspicionResult(
            user_id=signals.user_id,
            score=0,
            recommended_action=RecommendedAction.NONE,
            level=thresholds.level,
        )

    reasons: list[ScoreReason] = []

    _score_account_age(signals, thresholds, weights, reasons)
    _score_reputation(signals, weights, reasons)
    _score_recent_threats(signals, weights, reasons)
    _score_username(signals, weights, reasons)
    _score_default_avatar(signals, weights, reasons)
    _score_join_age(signals, thresholds, weights, reasons)
    _score_privilege(signals, weights, reasons)
    ai_applied = _score_ai_signal(signals, thresholds, weights, ai_signal, reasons)

    total = sum(r.weight for r in reasons)

    return SuspicionResult(
        user_id=signals.user_id,
        score=total,
        recommended_action=recommend_action(total, thresholds, weights),
        level=thresholds.level,
        reasons=reasons,
        ai_applied=ai_applied,
    )


def recommend_action(
    total: float,
    thresholds: PolicyThresholds,
    weights: Optional[ScoringWeights] = None,
) -> RecommendedAction:
    """Map a score onto an action using the flag bar and the higher act bar.

    Below the suspicion threshold nothing happens; within ``action_gap`` of
    it the member is flagged; above that they are quarantined when the
    policy automates it. Policies with automatic bans escalate any
    non-trivial verdict at or above ``ban_floor`` to a ban.
    """
    weights = weights or ScoringWeights()
    flag_bar = thresholds.suspicion_threshold
    act_bar = flag_bar + weights.action_gap

    if total < flag_bar:
        return RecommendedAction.NONE

    if total < act_bar:
        action = RecommendedAction.FLAG
    elif thresholds.auto_quarantine:
        action = RecommendedAction.QUARANTINE
    else:
        action = RecommendedAction.FLAG

    if thresholds.auto_ban and total >= weights.ban_floor:
        action = RecommendedAction.BAN

    return action


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _score_account_age(
    signals: UserSignals,
    thresholds: PolicyThresholds,
    weights: ScoringWeights,
    reasons: list[ScoreReason],
) -> None:
    age = signals.account_age_days

    if age < 1:
        reasons.append(ScoreReason("Account <1 day old (CRITICAL)", weights.account_under_1_day))
    elif age < 3:
        reasons.append(ScoreReason("Account <3 days old (SEVERE)", weights.account_under_3_days))
    elif age < 7:
        reasons.append(ScoreReason("Account <7 days old (HIGH)", weights.account_under_7_days))
    elif age < 14 and thresholds.min_account_age_days >= 14:
        reasons.append(ScoreReason("Account <14 days old (MODERATE)", weights.account_under_14_days))


def _score_reputation(signals: UserSignals, weights: ScoringWeights, reasons: list[ScoreReason]) -> None:
    reputation = signals.reputation_score

    # Only the most severe band applies.
    if reputation < 20:
        reasons.append(ScoreReason(f"Reputation: {reputation} (CRITICAL)", weights.reputation_under_20))
    elif reputation < 50:
        reasons.append(ScoreReason(f"Reputation: {reputation} (LOW)", weights.reputation_under_50))
    elif reputation < 80:
        reasons.append(ScoreReason(f"Reputation: {reputation} (SUSPICIOUS)", weights.reputation_under_80))


def _score_recent_threats(signals: UserSignals, weights: ScoringWeights, reasons: list[ScoreReason]) -> None:
    count = signals.recent_threat_count
    if count > 0:
        reasons.append(ScoreReason(f"{count} threat(s) detected (CRITICAL)", weights.per_recent_threat * count))


def _score_username(signals: UserSignals, weights: ScoringWeights, reasons: list[ScoreReason]) -> None:
    anomalies = signals.username_anomaly_count

    if anomalies > 15:
        reasons.append(
            ScoreReason(f"Username: {anomalies} non-standard chars (SUSPICIOUS)", weights.username_anomalies_over_15)
        )
    elif anomalies > 8:
        reasons.append(
            ScoreReason(f"Username: {anomalies} non-standard chars (MODERATE)", weights.username_anomalies_over_8)
        )


def _score_default_avatar(signals: UserSignals, weights: ScoringWeights, reasons: list[ScoreReason]) -> None:
    if signals.has_default_avatar and signals.account_age_days < 7:
        reasons.append(ScoreReason("Default avatar + new account (SUSPICIOUS)", weights.default_avatar_new_account))


def _score_join_age(
    signals: UserSignals,
    thresholds: PolicyThresholds,
    weights: ScoringWeights,
    reasons: list[ScoreReason],
) -> None:
    if thresholds.level >= JUST_JOINED_MIN_LEVEL and signals.join_age_days < 1:
        reasons.append(ScoreReason("Just joined server (ULTRA SUSPICIOUS)", weights.just_joined))


def _score_privilege(signals: UserSignals, weights: ScoringWeights, reasons: list[ScoreReason]) -> None:
    if signals.is_privileged and signals.account_age_days < 30:
        reasons.append(ScoreReason("Privileged account <30 days old", weights.young_privileged_account))


def _score_ai_signal(
    signals: UserSignals,
    thresholds: PolicyThresholds,
    weights: ScoringWeights,
    ai_signal: Optional[AISignal],
    reasons: list[ScoreReason],
) -> bool:
    if ai_signal is None:
        return False

    confidence = getattr(ai_signal, "confidence", None)
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not math.isfinite(confidence):
        logger.debug("Degraded scoring for %s: unusable AI confidence %r", signals.user_id, confidence)
        return False

    if not 0.0 <= confidence <= 1.0:
        logger.debug("Degraded scoring for %s: AI confidence %r outside 0-1", signals.user_id, confidence)
        return False

    if confidence < thresholds.ai_confidence_floor:
        logger.debug(
            "Degraded scoring for %s: AI confidence %.2f below floor %.2f",
            signals.user_id,
            confidence,
            thresholds.ai_confidence_floor,
        )
        return False

    label = str(getattr(ai_signal, "label", "") or "AI classifier verdict")
    reasons.append(ScoreReason(label, confidence * weights.ai_confidence_multiplier))
    return True
