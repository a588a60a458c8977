from flask import Blueprint

from ..utils.plan_checker import (
    get_plan_caps,
    get_user_plan_context,
    normalize_monthly_event_count,
    normalize_monthly_link_count,
)
from ..utils.response import api_response
from .auth_routes import workspace_required

subscription_bp = Blueprint("subscription", __name__)


@subscription_bp.route("/status", methods=["GET"])
@workspace_required
def subscription_status(workspace):
    ctx = get_user_plan_context(workspace.billing_user_id)
    if ctx is None:
        return api_response(False, "Workspace owner not found.", None)

    subscription = ctx.subscription
    return api_response(True, "Subscription status fetched", {
        "plan": workspace.plan,
        "workspace": workspace.type,
        "is_active": bool(subscription and subscription.status == "active"),
        "renews_at": subscription.renews_at.isoformat() if subscription and subscription.renews_at else None,
        "events": {
            "used": normalize_monthly_event_count(ctx),
            "limit": ctx.caps["events"],
            "alert_level": ctx.user.event_usage_alert_level or 0,
        },
        "links": {
            "used": normalize_monthly_link_count(ctx.user),
            "limit": get_plan_caps(workspace.plan)["links"],
        },
    })
