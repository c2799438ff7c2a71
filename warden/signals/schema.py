"""Pydantic model for raw member payloads supplied by the member provider.

Mirrors :class:`warden.signals.models.UserSignals` but accepts the looser
shapes providers actually send: camelCase keys, timestamps instead of ages,
a raw username instead of an anomaly count, snowflake IDs as integers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RawMemberSignals(BaseModel):
    """Structural contract for one member snapshot."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    user_id: str = Field(..., min_length=1, alias="userId")
    account_age_days: Optional[float] = Field(None, alias="accountAgeDays")
    account_created_at: Optional[datetime] = Field(None, alias="accountCreatedAt")
    join_age_days: Optional[float] = Field(None, alias="joinAgeDays")
    joined_at: Optional[datetime] = Field(None, alias="joinedAt")
    reputation_score: Optional[int] = Field(None, alias="reputationScore")
    recent_threat_count: int = Field(0, alias="recentThreatCount")
    username: Optional[str] = None
    username_anomaly_count: Optional[int] = Field(None, alias="usernameAnomalyCount")
    has_default_avatar: bool = Field(False, alias="hasDefaultAvatar")
    is_privileged: bool = Field(False, alias="isPrivileged")
    is_protected: bool = Field(False, alias="isProtected")
    is_bot: bool = Field(False, alias="isBot")
    sources: list[str] = Field(default_factory=list)

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_snowflake(cls, value: Any) -> Any:
        # Platform IDs are frequently serialized as integers.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="after")
    def _require_account_age(self) -> RawMemberSignals:
        if self.account_age_days is None and self.account_created_at is None:
            raise ValueError("one of account_age_days or account_created_at is required")
        return self
