"""Risk aggregator — rolls community signals into a single security score.

The score starts at 100 and loses points for each structural weakness
(too many privileged members or bots, a surge of new accounts, recent
incident volume), gains a little for a lean privileged set and a quiet
week, and is clamped to 0-100.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from warden.errors import InvalidSignal
from warden.risk.models import CommunitySnapshot, RiskLevel, ServerRiskReport
from warden.scoring.models import SuspicionResult
from warden.trends.models import ThreatEvent
from warden.utils.clock import age_in_days, utcnow

NO_VULNERABILITIES = "No critical vulnerabilities detected"


def aggregate(
    member_count: int,
    privileged_count: int,
    bot_count: int,
    new_account_count: int,
    recent_events_24h: int,
    recent_events_7d: int,
    flagged: Iterable[SuspicionResult] = (),
) -> ServerRiskReport:
    """Compute the server risk report.

    Raises:
        InvalidSignal: if any count is negative or not an integer.
    """
    counts = {
        "member_count": member_count,
        "privileged_count": privileged_count,
        "bot_count": bot_count,
        "new_account_count": new_account_count,
        "recent_events_24h": recent_events_24h,
        "recent_events_7d": recent_events_7d,
    }
    for name, value in counts.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSignal(f"{name} must be an integer, got {value!r}", name)
        if value < 0:
            raise InvalidSignal(f"{name} must not be negative, got {value}", name)

    score = 100
    vulnerabilities: list[str] = []

    if privileged_count > 5:
        score -= 15
        vulnerabilities.append(f"Too many privileged members ({privileged_count}) - reduce privileges")
    if bot_count > 10:
        score -= 10
        vulnerabilities.append(f"Many bots ({bot_count}) - verify all are authorized")
    if new_account_count > 0.2 * member_count:
        score -= 20
        vulnerabilities.append(
            f"High percentage of new accounts ({new_account_count}/{member_count}) - potential raid prep"
        )
    if recent_events_7d > 10:
        score -= 15
        vulnerabilities.append(f"Sustained threat activity: {recent_events_7d} incidents in last 7 days")
    if recent_events_24h > 5:
        score -= 10
        vulnerabilities.append(f"Elevated threat activity: {recent_events_24h} incidents in last 24h")

    if privileged_count <= 3:
        score += 5
    if recent_events_7d == 0:
        score += 10

    score = max(0, min(100, score))

    if not vulnerabilities:
        vulnerabilities.append(NO_VULNERABILITIES)

    return ServerRiskReport(
        score=score,
        level=risk_level(score),
        vulnerabilities=vulnerabilities,
        flagged_users=sorted(flagged, key=lambda r: r.score, reverse=True),
    )


def risk_level(score: int) -> RiskLevel:
    if score >= 90:
        return RiskLevel.EXCELLENT
    if score >= 75:
        return RiskLevel.GOOD
    if score >= 50:
        return RiskLevel.FAIR
    return RiskLevel.POOR


def aggregate_snapshot(
    snapshot: CommunitySnapshot,
    flagged: Iterable[SuspicionResult] = (),
) -> ServerRiskReport:
    return aggregate(
        snapshot.member_count,
        snapshot.privileged_count,
        snapshot.bot_count,
        snapshot.new_account_count,
        snapshot.recent_events_24h,
        snapshot.recent_events_7d,
        flagged,
    )


def snapshot_from_events(
    events: Iterable[ThreatEvent],
    *,
    member_count: int,
    privileged_count: int = 0,
    bot_count: int = 0,
    new_account_count: int = 0,
    now: Optional[datetime] = None,
) -> CommunitySnapshot:
    """Build a snapshot, counting events from the last 24 hours and 7 days."""
    now = now or utcnow()
    ages = [age_in_days(e.timestamp, now) for e in events]

    return CommunitySnapshot(
        member_count=member_count,
        privileged_count=privileged_count,
        bot_count=bot_count,
        new_account_count=new_account_count,
        recent_events_24h=sum(1 for age in ages if 0 <= age < 1),
        recent_events_7d=sum(1 for age in ages if 0 <= age < 7),
    )
