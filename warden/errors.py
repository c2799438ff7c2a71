"""Error taxonomy for the evaluation engine.

Both errors subclass ``ValueError`` so callers that already guard input
handling with ``except ValueError`` keep working.
"""

from __future__ import annotations


class WardenError(Exception):
    """Base class for every error raised by the engine."""


class InvalidLevel(WardenError, ValueError):
    """An aggressiveness level outside 1-10."""

    def __init__(self, level: object, field_name: str = "level") -> None:
        self.level = level
        self.field_name = field_name
        super().__init__(f"{field_name} must be an integer between 1 and 10, got {level!r}")


class InvalidSignal(WardenError, ValueError):
    """A required input field is missing or malformed."""

    def __init__(self, message: str, field_name: str = "") -> None:
        self.field_name = field_name
        super().__init__(message)
