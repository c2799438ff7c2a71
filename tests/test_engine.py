"""Tests for the end-to-end evaluation pipeline."""

from datetime import datetime, timedelta, timezone

import pytest

from warden.config import EngineConfig
from warden.engine import audit_community, evaluate_member, evaluate_members
from warden.errors import InvalidLevel, InvalidSignal
from warden.policy.models import UserOverride
from warden.risk.models import CommunitySnapshot
from warden.scoring.models import AISignal, RecommendedAction

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

HOSTILE = {
    "user_id": "666",
    "account_age_days": 0.5,
    "join_age_days": 0.01,
    "reputation_score": 15,
    "recent_threat_count": 2,
    "username_anomaly_count": 20,
    "has_default_avatar": True,
}

VETERAN = {
    "userId": "111",
    "accountCreatedAt": "2021-06-01T00:00:00Z",
    "joinedAt": "2022-01-01T00:00:00Z",
    "reputationScore": 100,
}

UNRATED = {"user_id": "1", "account_age_days": 0.5, "join_age_days": 5}


def test_hostile_member_at_maximum_level():
    result = evaluate_member(HOSTILE, 10, now=NOW)
    # 320 from the heuristics plus 50 for joining moments ago.
    assert result.score == 370
    assert result.recommended_action == RecommendedAction.BAN
    assert result.level == 10


def test_veteran_member_at_minimum_level():
    result = evaluate_member(VETERAN, 1, now=NOW)
    assert result.score == 0
    assert result.recommended_action == RecommendedAction.NONE


def test_server_level_is_used_by_default():
    assert evaluate_member(HOSTILE, 5, now=NOW).level == 5
    assert evaluate_member(VETERAN, 5, now=NOW).level == 5


def test_reputation_adjusts_effective_level_when_enabled():
    config = EngineConfig(reputation_adjustment=True)
    # Reputation 15 pushes level 5 up to 6; a trusted member drops from 5 to 3.
    assert evaluate_member(HOSTILE, 5, config=config, now=NOW).level == 6
    assert evaluate_member(VETERAN, 5, config=config, now=NOW).level == 3


def test_member_without_reputation_keeps_server_level():
    for config in (EngineConfig(), EngineConfig(reputation_adjustment=True)):
        result = evaluate_member(UNRATED, 8, config=config, now=NOW)
        assert result.level == 8
        # 90 clears the act bar (60 + 30) and the ban floor.
        assert result.score == 90
        assert result.recommended_action == RecommendedAction.BAN


def test_override_takes_precedence():
    override = UserOverride(level=1, reason="verified partner", expires_at=NOW + timedelta(days=30))
    result = evaluate_member(HOSTILE, 10, override, now=NOW)
    assert result.level == 1
    # Level 1 does not score the just-joined rule.
    assert result.score == 320


def test_ai_signal_is_applied():
    result = evaluate_member(VETERAN, 10, ai_signal=AISignal(confidence=0.8, label="Scam link"), now=NOW)
    # Level 10 confidence floor is 0.55.
    assert result.ai_applied is True
    assert result.score == pytest.approx(40)


def test_invalid_level_propagates():
    with pytest.raises(InvalidLevel):
        evaluate_member(VETERAN, 0, now=NOW)


def test_invalid_payload_propagates():
    with pytest.raises(InvalidSignal):
        evaluate_member({"user_id": "x"}, 5, now=NOW)


def test_evaluate_members_keys_inputs_by_user_id():
    results = evaluate_members(
        [HOSTILE, VETERAN],
        9,
        overrides={"666": UserOverride(level=2)},
        ai_signals={"111": AISignal(confidence=0.99, label="Impersonation")},
        now=NOW,
    )
    assert [r.user_id for r in results] == ["666", "111"]
    assert results[0].level == 2
    assert results[1].ai_applied is True


def test_audit_community_lists_only_flagged_members():
    results = evaluate_members([HOSTILE, VETERAN], 10, now=NOW)
    snapshot = CommunitySnapshot(member_count=100, privileged_count=2)
    report = audit_community(snapshot, results)
    assert [r.user_id for r in report.flagged_users] == ["666"]
    assert report.score == 100


@pytest.mark.parametrize("member", ["not-a-member", 42, None, ["111", 1500]])
def test_evaluate_members_rejects_non_mapping_members(member):
    with pytest.raises(InvalidSignal):
        evaluate_members([VETERAN, member], 5, now=NOW)
