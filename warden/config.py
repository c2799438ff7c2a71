"""Engine configuration — anchor tables, scoring weights and reputation bounds.

Defaults reproduce the constants the engine has always used. A YAML file
can override any subset of them::

    anchors:
      min_account_age_days: [30, 7]
    weights:
      account_under_1_day: 90
      action_gap: 30
    reputation_floor: -1000
    server_ai_floor: 0.7
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml

from warden.errors import InvalidSignal
from warden.policy.models import DEFAULT_ANCHORS
from warden.scoring.models import ScoringWeights

DEFAULT_REPUTATION_FLOOR = -1000


@dataclass
class EngineConfig:
    """Tunable constants shared by the resolver, normalizer and scorer."""

    anchors: dict[str, tuple[float, float]] = field(default_factory=lambda: dict(DEFAULT_ANCHORS))
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    reputation_floor: int = DEFAULT_REPUTATION_FLOOR
    reputation_adjustment: bool = False
    server_ai_floor: Optional[float] = None


def load_config(path: str | Path) -> EngineConfig:
    """Load an engine configuration from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise InvalidSignal(f"{path}: expected a mapping at the top level")

    return config_from_dict(data)


def config_from_dict(data: dict) -> EngineConfig:
    """Build an :class:`EngineConfig` from parsed YAML/JSON data."""
    config = EngineConfig()

    anchors = dict(config.anchors)
    for name, pair in (data.get("anchors") or {}).items():
        if name not in anchors:
            continue
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise InvalidSignal(f"anchors.{name}: expected [level_1, level_10]", name)
        low, high = (_number(v, f"anchors.{name}") for v in pair)
        if high > low:
            raise InvalidSignal(
                f"anchors.{name}: level-10 value {high} must not exceed level-1 value {low}", name
            )
        anchors[name] = (low, high)

    known = {f.name for f in fields(ScoringWeights)}
    overrides = {}
    for name, value in (data.get("weights") or {}).items():
        if name not in known:
            continue
        value = _number(value, f"weights.{name}")
        if value < 0:
            raise InvalidSignal(f"weights.{name}: must be non-negative, got {value}", name)
        overrides[name] = value

    floor = data.get("reputation_floor", config.reputation_floor)
    server_ai_floor = data.get("server_ai_floor", config.server_ai_floor)

    return EngineConfig(
        anchors=anchors,
        weights=replace(config.weights, **overrides),
        reputation_floor=int(_number(floor, "reputation_floor")),
        reputation_adjustment=bool(data.get("reputation_adjustment", config.reputation_adjustment)),
        server_ai_floor=None if server_ai_floor is None else _number(server_ai_floor, "server_ai_floor"),
    )


def _number(value: object, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSignal(f"{name}: expected a number, got {value!r}", name)
    return value
