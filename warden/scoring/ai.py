"""Failure isolation for the optional AI classifier.

The classifier is an external collaborator that may be slow, rate limited or
simply down. :func:`safe_ai_signal` wraps whatever callable the caller uses
to reach it so that any failure degrades to heuristic-only scoring instead
of propagating.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional

from warden.scoring.models import AISignal

logger = logging.getLogger(__name__)


def safe_ai_signal(fetch: Callable[..., Any], *args: Any, **kwargs: Any) -> Optional[AISignal]:
    """Call ``fetch`` and coerce its result into an :class:`AISignal`.

    ``fetch`` may return an ``AISignal``, a mapping with ``confidence`` and
    ``label`` keys, or a ``(confidence, label)`` pair. Exceptions raised by
    ``fetch`` and results that cannot be coerced both yield ``None``.
    """
    try:
        raw = fetch(*args, **kwargs)
    except Exception as e:  # noqa: BLE001 -- any classifier failure degrades scoring
        logger.warning("AI classifier unavailable, scoring without it: %s", e)
        return None

    signal = coerce_ai_signal(raw)
    if signal is None and raw is not None:
        logger.warning("AI classifier returned an unusable verdict: %r", raw)
    return signal


def coerce_ai_signal(raw: Any) -> Optional[AISignal]:
    if raw is None:
        return None

    if isinstance(raw, AISignal):
        confidence, label = raw.confidence, raw.label
    elif isinstance(raw, dict):
        confidence, label = raw.get("confidence"), raw.get("label", "")
    elif isinstance(raw, (tuple, list)) and len(raw) == 2:
        confidence, label = raw
    else:
        return None

    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return None
    if not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
        return None

    return AISignal(confidence=float(confidence), label=str(label or ""))
