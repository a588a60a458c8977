# utils/plan_checker.py
import datetime
from dataclasses import dataclass
from typing import Optional

import pytz
from flask import current_app

from ..errors import PlanRestrictionError, WorkspaceLimitError
from ..extensions import db
from ..models.subscription import Subscription
from ..models.user import User
from .plan_limits import (
    PLAN_CAPS,
    PRO_PRODUCT_IDS,
    PRO_VARIANT_IDS,
    ULTRA_PRODUCT_IDS,
    ULTRA_VARIANT_IDS,
)


@dataclass
class UserPlanContext:
    user: User
    subscription: Optional[Subscription]
    plan: str
    caps: dict


def get_plan_from_ids(variant_id=None, product_id=None) -> Optional[str]:
    if variant_id and variant_id in ULTRA_VARIANT_IDS:
        return "ultra"
    if product_id and product_id in ULTRA_PRODUCT_IDS:
        return "ultra"
    if variant_id and variant_id in PRO_VARIANT_IDS:
        return "pro"
    if product_id and product_id in PRO_PRODUCT_IDS:
        return "pro"
    return None


def resolve_plan(subscription: Optional[Subscription]) -> str:
    """
    No subscription, or one that is not active => free.
    Active subscriptions map through the billing ids first, then the stored plan;
    an active subscription with an unrecognised plan is treated as pro.
    """
    if subscription is None or subscription.status != "active":
        return "free"

    mapped = get_plan_from_ids(subscription.variant_id, subscription.product_id) or subscription.plan
    if mapped in ("pro", "ultra"):
        return mapped

    return "pro"


def get_plan_caps(plan: str) -> dict:
    return PLAN_CAPS.get(plan, PLAN_CAPS["free"])


def is_paid_plan(plan: str) -> bool:
    return plan != "free"


def get_user_plan_context(user_id) -> Optional[UserPlanContext]:
    user = db.session.get(User, user_id) if user_id is not None else None
    if user is None:
        return None

    plan = resolve_plan(user.subscription)
    return UserPlanContext(user=user, subscription=user.subscription, plan=plan, caps=get_plan_caps(plan))


# ------------------------------------------------
# Monthly usage periods
# ------------------------------------------------
def _usage_timezone() -> str:
    try:
        return current_app.config.get("USAGE_TIMEZONE", "UTC")
    except RuntimeError:
        return "UTC"


def get_month_start(tz_name: Optional[str] = None, now: Optional[datetime.datetime] = None) -> datetime.datetime:
    """Start of the current month in tz_name, as a naive UTC datetime (the DB convention)."""
    tz = pytz.timezone(tz_name or _usage_timezone())
    if now is None:
        now = datetime.datetime.now(pytz.utc)
    elif now.tzinfo is None:
        now = pytz.utc.localize(now)

    local_now = now.astimezone(tz)
    start_local = tz.localize(datetime.datetime(local_now.year, local_now.month, 1))
    return start_local.astimezone(pytz.utc).replace(tzinfo=None)


def normalize_monthly_event_count(ctx: UserPlanContext, now: Optional[datetime.datetime] = None) -> int:
    """Reset the owner's event counter when the stored one belongs to an earlier month."""
    user = ctx.user
    last_reset = user.last_event_count_reset or user.created_at or datetime.datetime.utcnow()

    if last_reset < get_month_start(now=now):
        user.monthly_event_count = 0
        user.event_usage_alert_level = 0
        user.last_event_count_reset = datetime.datetime.utcnow()
        db.session.commit()
        return 0

    return user.monthly_event_count or 0


def normalize_monthly_link_count(user: User, now: Optional[datetime.datetime] = None) -> int:
    last_reset = user.last_link_count_reset or user.created_at or datetime.datetime.utcnow()

    if last_reset < get_month_start(now=now):
        user.monthly_link_count = 0
        user.last_link_count_reset = datetime.datetime.utcnow()
        db.session.commit()
        return 0

    return user.monthly_link_count or 0


# ------------------------------------------------
# Management-path gates
# ------------------------------------------------
def check_workspace_link_limit(workspace):
    """Returns (plan, current_count, limit); raises when the monthly link cap is hit."""
    ctx = get_user_plan_context(workspace.billing_user_id)
    if ctx is None:
        raise WorkspaceLimitError("Workspace owner not found.")

    plan = workspace.plan
    limit = get_plan_caps(plan)["links"]
    current = normalize_monthly_link_count(ctx.user)

    if limit is not None and current >= limit:
        raise WorkspaceLimitError(
            f"You have reached your monthly limit of {limit} links. Upgrade your plan to create more."
        )

    return plan, current, limit


def increment_workspace_link_count(workspace):
    user = db.session.get(User, workspace.billing_user_id)
    if user is None:
        return
    user.monthly_link_count = (user.monthly_link_count or 0) + 1
    db.session.commit()


def _has_values(mapping) -> bool:
    return any(v not in (None, "") for v in (mapping or {}).values())


def check_link_feature_access(plan: str, password=None, metadata=None, utm_params=None):
    if password and not is_paid_plan(plan):
        raise PlanRestrictionError("You need to upgrade to a pro plan to use password protection")

    if _has_values(metadata) and not is_paid_plan(plan):
        raise PlanRestrictionError("You need to upgrade to a pro plan to use custom social media previews")

    if _has_values(utm_params) and plan != "ultra":
        raise PlanRestrictionError(
            "UTM parameters are only available on the Ultra plan. Please upgrade to use this feature."
        )


def check_workspace_folder_limit(workspace, current_count: int):
    limit = get_plan_caps(workspace.plan)["folders"]
    if limit is not None and current_count >= limit:
        if limit == 0:
            raise PlanRestrictionError("You need to upgrade to a pro plan to create folders")
        raise WorkspaceLimitError(f"You have reached the limit of {limit} folders on your plan.")
