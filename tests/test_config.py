"""Tests for engine configuration loading."""

import tempfile

import pytest
import yaml

from warden.config import EngineConfig, config_from_dict, load_config
from warden.errors import InvalidSignal
from warden.policy.resolver import resolve
from warden.scoring.models import ScoringWeights


def _write_yaml(data) -> str:
    """Write data to a temporary YAML file and return the path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    yaml.dump(data, f)
    f.close()
    return f.name


def test_empty_config_keeps_defaults():
    assert config_from_dict({}) == EngineConfig()
    assert EngineConfig().reputation_adjustment is False
    assert config_from_dict({"reputation_adjustment": True}).reputation_adjustment is True


def test_load_config_from_yaml():
    path = _write_yaml(
        {
            "anchors": {"min_account_age_days": [40, 10]},
            "weights": {"account_under_1_day": 120, "action_gap": 20},
            "reputation_floor": -500,
            "server_ai_floor": 0.7,
        }
    )
    config = load_config(path)

    assert config.anchors["min_account_age_days"] == (40, 10)
    assert config.anchors["max_joins_per_minute"] == (8, 1)
    assert config.weights.account_under_1_day == 120
    assert config.weights.action_gap == 20
    assert config.weights.per_recent_threat == ScoringWeights().per_recent_threat
    assert config.reputation_floor == -500
    assert config.server_ai_floor == 0.7


def test_loaded_anchors_drive_resolution():
    config = config_from_dict({"anchors": {"min_account_age_days": [40, 10]}})
    assert resolve(1, config=config).min_account_age_days == 40
    assert resolve(10, config=config).min_account_age_days == 10


def test_config_server_ai_floor_is_used_by_resolver():
    config = config_from_dict({"server_ai_floor": 0.9})
    assert resolve(10, config=config).ai_confidence_floor == 0.9


def test_unknown_keys_are_ignored():
    config = config_from_dict({"anchors": {"nonsense": [1, 2]}, "weights": {"nonsense": 5}})
    assert config == EngineConfig()


def test_anchor_that_loosens_with_level_is_rejected():
    with pytest.raises(InvalidSignal):
        config_from_dict({"anchors": {"max_joins_per_minute": [1, 8]}})


def test_malformed_anchor_is_rejected():
    with pytest.raises(InvalidSignal):
        config_from_dict({"anchors": {"max_joins_per_minute": [8]}})


def test_negative_weight_is_rejected():
    with pytest.raises(InvalidSignal):
        config_from_dict({"weights": {"per_recent_threat": -1}})


def test_non_numeric_weight_is_rejected():
    with pytest.raises(InvalidSignal):
        config_from_dict({"weights": {"per_recent_threat": "thirty"}})


def test_non_mapping_file_is_rejected():
    with pytest.raises(InvalidSignal):
        load_config(_write_yaml([1, 2, 3]))
