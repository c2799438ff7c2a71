"""Tests for aggressiveness policy resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from warden.errors import InvalidLevel
from warden.policy.models import UserOverride
from warden.policy.resolver import (
    describe_level,
    effective_level,
    resolve,
    resolve_all,
    suspicion_threshold,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

NUMERIC_THRESHOLDS = [
    "min_account_age_days",
    "max_joins_per_minute",
    "max_messages_per_minute",
    "max_duplicate_messages",
    "max_mentions_per_message",
    "max_links_per_message",
    "ai_confidence_floor",
    "suspicion_threshold",
]


# --- Anchors & interpolation ---


def test_level_one_matches_permissive_anchors():
    t = resolve(1, now=NOW)
    assert t.level == 1
    assert t.min_account_age_days == 30
    assert t.max_joins_per_minute == 8
    assert t.max_messages_per_minute == 15
    assert t.max_duplicate_messages == 5
    assert t.max_mentions_per_message == 8
    assert t.max_links_per_message == 5
    assert t.ai_confidence_floor == 0.95
    assert t.auto_quarantine is False
    assert t.auto_ban is False
    assert t.suspicion_threshold == 100


def test_level_ten_matches_maximum_anchors():
    t = resolve(10, now=NOW)
    assert t.min_account_age_days == 7
    assert t.max_joins_per_minute == 1
    assert t.max_messages_per_minute == 3
    assert t.max_duplicate_messages == 1
    assert t.max_mentions_per_message == 2
    assert t.max_links_per_message == 0
    assert t.ai_confidence_floor == 0.55
    assert t.auto_quarantine is True
    assert t.auto_ban is True
    assert t.suspicion_threshold == 40


def test_midpoint_is_interpolated_and_rounded():
    t = resolve(5, now=NOW)
    assert t.min_account_age_days == 20  # 19.78
    assert t.max_joins_per_minute == 5  # 4.89
    assert t.max_links_per_message == 3  # 2.78
    assert t.ai_confidence_floor == 0.77  # 0.7722
    assert t.auto_quarantine is True
    assert t.auto_ban is False
    assert t.suspicion_threshold == 80


def test_thresholds_tighten_monotonically():
    profiles = resolve_all()
    assert [p.level for p in profiles] == list(range(1, 11))

    for weaker, stricter in zip(profiles, profiles[1:]):
        for name in NUMERIC_THRESHOLDS:
            assert getattr(stricter, name) <= getattr(weaker, name), name
        assert stricter.auto_quarantine >= weaker.auto_quarantine
        assert stricter.auto_ban >= weaker.auto_ban


def test_automation_steps():
    assert [resolve(level, now=NOW).auto_quarantine for level in range(1, 11)] == [False] * 4 + [True] * 6
    assert [resolve(level, now=NOW).auto_ban for level in range(1, 11)] == [False] * 7 + [True] * 3


def test_suspicion_threshold_steps():
    assert [suspicion_threshold(level) for level in range(1, 11)] == [
        100, 100, 100, 100, 80, 80, 60, 60, 40, 40,
    ]


def test_resolve_is_idempotent():
    assert resolve(7, now=NOW) == resolve(7, now=NOW)


# --- Validation ---


@pytest.mark.parametrize("level", [0, 11, -3, 5.5, True, "5", None])
def test_invalid_server_level(level):
    with pytest.raises(InvalidLevel):
        resolve(level, now=NOW)


def test_invalid_level_is_a_value_error():
    with pytest.raises(ValueError):
        resolve(42, now=NOW)


def test_active_override_with_invalid_level_raises():
    with pytest.raises(InvalidLevel):
        resolve(5, UserOverride(level=12), now=NOW)


def test_expired_override_with_invalid_level_is_ignored():
    override = UserOverride(level=12, expires_at=NOW - timedelta(days=1))
    assert resolve(5, override, now=NOW).level == 5


# --- Overrides ---


def test_override_replaces_server_level():
    override = UserOverride(level=9, reason="repeat offender", set_by="admin")
    t = resolve(2, override, now=NOW)
    assert t.level == 9
    assert t.override_applied is True
    assert t == resolve(9, UserOverride(level=9), now=NOW)


def test_override_is_not_blended_with_reputation():
    override = UserOverride(level=3)
    assert effective_level(8, override, reputation_score=0, now=NOW) == 3


def test_unexpired_override_applies():
    override = UserOverride(level=1, expires_at=NOW + timedelta(hours=1))
    assert resolve(10, override, now=NOW).level == 1


def test_expired_override_falls_back_to_server_level():
    override = UserOverride(level=1, expires_at=NOW - timedelta(seconds=1))
    t = resolve(10, override, now=NOW)
    assert t.level == 10
    assert t.override_applied is False


def test_naive_expiry_is_treated_as_utc():
    override = UserOverride(level=1, expires_at=datetime(2026, 3, 1, 13, 0))
    assert resolve(10, override, now=NOW).level == 1


def test_override_ai_threshold_and_counters():
    override = UserOverride(
        level=6,
        ai_threshold=90,
        threshold_overrides={"max_messages_per_minute": 20, "max_links_per_message": 4},
    )
    t = resolve(6, override, now=NOW)
    assert t.ai_confidence_floor == 0.9
    assert t.max_messages_per_minute == 20
    assert t.max_links_per_message == 4


def test_invalid_override_adjustments_are_ignored():
    override = UserOverride(
        level=6,
        ai_threshold=0.05,
        threshold_overrides={"max_messages_per_minute": 0, "max_joins_per_minute": 50, "unknown": 3},
    )
    baseline = resolve(6, now=NOW)
    t = resolve(6, override, now=NOW)
    assert t.ai_confidence_floor == baseline.ai_confidence_floor
    assert t.max_messages_per_minute == baseline.max_messages_per_minute
    assert t.max_joins_per_minute == baseline.max_joins_per_minute


def test_override_from_dict():
    override = UserOverride.from_dict(
        {"level": 4, "reason": "trusted helper", "set_by": "owner", "expires_at": "2026-03-02T00:00:00Z"}
    )
    assert override.level == 4
    assert override.expires_at == datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert override.is_active(NOW)


# --- Reputation adjustment & server AI floor ---


def test_trusted_reputation_lowers_level():
    assert effective_level(5, reputation_score=85, now=NOW) == 3


def test_untrusted_reputation_raises_level():
    assert effective_level(5, reputation_score=10, now=NOW) == 6


def test_reputation_adjustment_is_clamped():
    assert effective_level(1, reputation_score=100, now=NOW) == 1
    assert effective_level(10, reputation_score=-500, now=NOW) == 10


def test_neutral_band_reputation_keeps_level():
    assert effective_level(5, reputation_score=50, now=NOW) == 5


def test_server_ai_floor_raises_confidence_bar():
    assert resolve(10, server_ai_floor=80, now=NOW).ai_confidence_floor == 0.8
    assert resolve(10, server_ai_floor=0.6, now=NOW).ai_confidence_floor == 0.6


def test_server_ai_floor_never_lowers_confidence_bar():
    assert resolve(1, server_ai_floor=0.5, now=NOW).ai_confidence_floor == 0.95


# --- Descriptions ---


def test_describe_level():
    assert describe_level(1).label == "MINIMAL"
    assert describe_level(5).label == "BALANCED"
    assert describe_level(10).label == "MAXIMUM"
    with pytest.raises(InvalidLevel):
        describe_level(0)
