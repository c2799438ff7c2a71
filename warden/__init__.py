"""Warden — adaptive threat scoring and policy resolution for community moderation."""

__version__ = "0.1.0"
