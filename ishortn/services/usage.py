"""
Monthly analytics-event metering per owner.

The counter update is read-then-write: concurrent clicks for the same owner
may overshoot the cap slightly. Exact enforcement would need an atomic
increment-and-compare in redis, reconciled into the users table.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..extensions import db
from ..utils.plan_checker import get_user_plan_context, normalize_monthly_event_count
from ..utils.plan_limits import EVENT_ALERT_THRESHOLDS

logger = logging.getLogger(__name__)


@dataclass
class EventUsageResult:
    allowed: bool
    cap_reached: bool
    current_count: int
    limit: Optional[int] = None
    plan: Optional[str] = None
    alert_level_triggered: Optional[int] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None


def next_alert_level(limit: int, new_count: int, previous_level: int) -> Optional[int]:
    """Lowest threshold reached by new_count that has not fired this period."""
    percentage = (new_count * 100) // limit
    for level in EVENT_ALERT_THRESHOLDS:
        if percentage >= level and previous_level < level:
            return level
    return None


def register_event_usage(owner_id) -> EventUsageResult:
    ctx = get_user_plan_context(owner_id)
    if ctx is None:
        logger.warning(f"Usage check for unknown owner {owner_id}; event not recorded")
        return EventUsageResult(allowed=False, cap_reached=True, current_count=0)

    user = ctx.user
    limit = ctx.caps["events"]
    current = normalize_monthly_event_count(ctx)

    # Unlimited plans are never counted
    if limit is None:
        return EventUsageResult(
            allowed=True,
            cap_reached=False,
            current_count=current,
            limit=None,
            plan=ctx.plan,
            user_email=user.email,
            user_name=user.name,
        )

    previous_level = user.event_usage_alert_level or 0

    if current >= limit:
        alert_level = None
        if previous_level < 100:
            alert_level = 100
            user.event_usage_alert_level = 100
            db.session.commit()

        return EventUsageResult(
            allowed=False,
            cap_reached=True,
            current_count=current,
            limit=limit,
            plan=ctx.plan,
            alert_level_triggered=alert_level,
            user_email=user.email,
            user_name=user.name,
        )

    new_count = current + 1
    alert_level = next_alert_level(limit, new_count, previous_level)

    user.monthly_event_count = new_count
    if alert_level and alert_level > previous_level:
        user.event_usage_alert_level = alert_level
    db.session.commit()

    return EventUsageResult(
        allowed=True,
        cap_reached=False,
        current_count=new_count,
        limit=limit,
        plan=ctx.plan,
        alert_level_triggered=alert_level,
        user_email=user.email,
        user_name=user.name,
    )
