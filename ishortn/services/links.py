"""
Workspace-scoped link management.

Every mutation that can change how a link resolves drops the link's cache
key; the next resolution repopulates it from the store.
"""
import datetime
import logging
import random
import re
import string
from collections import Counter
from typing import Optional

import pytz
from flask import current_app

from ..errors import (
    AliasUnavailableError,
    InvalidAliasError,
    LinkNotFoundError,
    LinkServiceError,
    UnsafeUrlError,
)
from ..extensions import db, get_link_cache
from ..models.folder import Folder, Tag
from ..models.link import Link
from ..models.link_visit import LinkVisit, UniqueLinkVisit
from ..models.user import User
from ..repositories.link_repository import alias_taken
from ..utils.passwords import hash_password
from ..utils.plan_checker import (
    check_link_feature_access,
    check_workspace_folder_limit,
    check_workspace_link_limit,
    get_plan_caps,
    increment_workspace_link_count,
    is_paid_plan,
    resolve_plan,
)
from ..utils.security import is_unsafe_url, normalize_destination_url
from ..utils.workspace import workspace_filter, workspace_ownership
from .cache import construct_cache_key

logger = logging.getLogger(__name__)

ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
GENERATED_ALIAS_LENGTH = 7

# Paths the service itself answers on
RESERVED_ALIASES = {
    "api", "analytics", "dashboard", "health", "links", "login", "signups", "token",
    "subscription", "verify-password", "static",
}

UPDATABLE_FIELDS = (
    "url", "alias", "domain", "name", "note",
    "disable_link_after_clicks", "disable_link_after_date",
    "metadata", "utm_params", "tags", "folder_id",
)


def _default_domain() -> str:
    return current_app.config.get("DEFAULT_DOMAIN", "ishortn.ink")


def _invalidate(domain: str, alias: str):
    get_link_cache().delete(construct_cache_key(domain, alias))


def get_workspace_link(workspace, link_id: int) -> Link:
    link = workspace_filter(Link.query, workspace).filter(Link.id == link_id).first()
    if link is None:
        raise LinkNotFoundError()
    return link


# ------------------------------------------------
# Aliases
# ------------------------------------------------
def generate_alias(domain: str) -> str:
    chars = string.ascii_letters + string.digits
    while True:
        candidate = ''.join(random.choices(chars, k=GENERATED_ALIAS_LENGTH))
        if not alias_taken(domain, candidate):
            return candidate


def validate_alias(alias: str, domain: str, exclude_id: Optional[int] = None):
    if not ALIAS_PATTERN.match(alias or ""):
        raise InvalidAliasError(
            "Alias must be 1-64 characters of letters, digits, '-' or '_'."
        )
    if alias.lower() in RESERVED_ALIASES:
        raise InvalidAliasError(f"'{alias}' is reserved and cannot be used as an alias.")
    if alias_taken(domain, alias, exclude_id=exclude_id):
        raise AliasUnavailableError(f"The alias '{alias}' is already in use on {domain}.")


def check_alias_availability(alias: str, domain: Optional[str] = None) -> bool:
    domain = domain or _default_domain()
    if not ALIAS_PATTERN.match(alias or "") or alias.lower() in RESERVED_ALIASES:
        return False
    return not alias_taken(domain, alias)


# ------------------------------------------------
# Field parsing
# ------------------------------------------------
def _parse_expiry_date(value) -> Optional[datetime.datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        parsed = value
    else:
        try:
            parsed = datetime.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise LinkServiceError("disable_link_after_date must be an ISO-8601 datetime.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(pytz.utc).replace(tzinfo=None)
    return parsed


def _parse_click_limit(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise LinkServiceError("disable_link_after_clicks must be a positive integer.")
    if limit <= 0:
        raise LinkServiceError("disable_link_after_clicks must be a positive integer.")
    return limit


def _checked_url(raw_url) -> str:
    url = normalize_destination_url(raw_url)
    if not url:
        raise LinkServiceError("url is required")
    unsafe, reason = is_unsafe_url(url)
    if unsafe:
        raise UnsafeUrlError(reason)
    return url


def _mapping_field(data: dict, key: str) -> dict:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise LinkServiceError(f"{key} must be an object")
    return value


def _password_field(data: dict) -> Optional[str]:
    value = data.get("password") or None
    if value is not None and not isinstance(value, str):
        raise LinkServiceError("password must be a string")
    return value


def _workspace_folder(workspace, folder_id) -> Optional[int]:
    if folder_id in (None, ""):
        return None
    folder = workspace_filter(Folder.query, workspace, model=Folder).filter(Folder.id == folder_id).first()
    if folder is None:
        raise LinkServiceError("Folder not found in this workspace.")
    return folder.id


def associate_tags(workspace, link: Link, tag_names):
    names = sorted({name.strip().lower() for name in (tag_names or []) if name and name.strip()})
    ownership = workspace_ownership(workspace)

    tags = []
    for name in names:
        tag = workspace_filter(Tag.query, workspace, model=Tag).filter(Tag.name == name).first()
        if tag is None:
            tag = Tag(name=name, **ownership)
            db.session.add(tag)
        tags.append(tag)

    link.tags = tags


# ------------------------------------------------
# CRUD
# ------------------------------------------------
def create_link(workspace, data: dict) -> Link:
    url = _checked_url(data.get("url"))
    plan, _, _ = check_workspace_link_limit(workspace)

    domain = (data.get("domain") or _default_domain()).strip().lower()
    alias = (data.get("alias") or "").strip()
    if alias:
        validate_alias(alias, domain)
    else:
        alias = generate_alias(domain)

    password = _password_field(data)
    metadata = _mapping_field(data, "metadata")
    utm_params = _mapping_field(data, "utm_params")
    check_link_feature_access(plan, password=password, metadata=metadata, utm_params=utm_params)

    link = Link(
        url=url,
        alias=alias,
        domain=domain,
        name=(data.get("name") or "").strip() or metadata.get("title") or "Untitled Link",
        note=data.get("note"),
        password_hash=hash_password(password) if password else None,
        disable_link_after_clicks=_parse_click_limit(data.get("disable_link_after_clicks")),
        disable_link_after_date=_parse_expiry_date(data.get("disable_link_after_date")),
        folder_id=_workspace_folder(workspace, data.get("folder_id")),
        meta={
            "title": metadata.get("title"),
            "description": metadata.get("description"),
            "image": metadata.get("image"),
        },
        utm_params=utm_params,
        created_by_user_id=workspace.user_id,
        **workspace_ownership(workspace),
    )
    db.session.add(link)
    associate_tags(workspace, link, data.get("tags"))
    db.session.commit()

    increment_workspace_link_count(workspace)
    logger.info(f"Link {link.domain}:{link.alias} created in workspace {workspace.type}:{workspace.team_id or workspace.user_id}")

    return link


def update_link(workspace, link_id: int, data: dict) -> Link:
    link = get_workspace_link(workspace, link_id)
    old_domain, old_alias = link.domain, link.alias
    changes = {k: data[k] for k in UPDATABLE_FIELDS if k in data}

    new_domain = (changes.get("domain") or link.domain).strip().lower()
    new_alias = (changes.get("alias") or link.alias).strip()
    if new_domain != link.domain or new_alias.lower() != link.alias.lower():
        validate_alias(new_alias, new_domain, exclude_id=link.id)
    elif new_alias != link.alias:
        # case-only rename of its own alias
        if not ALIAS_PATTERN.match(new_alias):
            raise InvalidAliasError("Alias must be 1-64 characters of letters, digits, '-' or '_'.")

    for key in ("metadata", "utm_params"):
        if key in changes:
            changes[key] = _mapping_field(changes, key)

    check_link_feature_access(
        workspace.plan,
        metadata=changes.get("metadata"),
        utm_params=changes.get("utm_params"),
    )

    if "url" in changes:
        link.url = _checked_url(changes["url"])
    link.domain = new_domain
    link.alias = new_alias
    if "name" in changes:
        link.name = changes["name"]
    if "note" in changes:
        link.note = changes["note"]
    if "disable_link_after_clicks" in changes:
        link.disable_link_after_clicks = _parse_click_limit(changes["disable_link_after_clicks"])
    if "disable_link_after_date" in changes:
        link.disable_link_after_date = _parse_expiry_date(changes["disable_link_after_date"])
    if "metadata" in changes:
        link.meta = dict(link.meta or {}, **(changes["metadata"] or {}))
    if "utm_params" in changes:
        link.utm_params = changes["utm_params"] or {}
    if "folder_id" in changes:
        link.folder_id = _workspace_folder(workspace, changes["folder_id"])
    if "tags" in changes:
        associate_tags(workspace, link, changes["tags"])

    db.session.commit()

    # New key fills lazily on the next resolution
    _invalidate(old_domain, old_alias)
    _invalidate(link.domain, link.alias)

    return link


def delete_link(workspace, link_id: int):
    link = get_workspace_link(workspace, link_id)
    domain, alias = link.domain, link.alias

    # visits, unique visits and tag rows go with it
    db.session.delete(link)
    db.session.commit()

    _invalidate(domain, alias)


def _toggle(workspace, link_id: int, field: str) -> Link:
    link = get_workspace_link(workspace, link_id)
    setattr(link, field, not getattr(link, field))
    db.session.commit()
    _invalidate(link.domain, link.alias)
    return link


def toggle_link_status(workspace, link_id: int) -> Link:
    return _toggle(workspace, link_id, "disabled")


def toggle_archive(workspace, link_id: int) -> Link:
    return _toggle(workspace, link_id, "archived")


def toggle_public_stats(workspace, link_id: int) -> Link:
    return _toggle(workspace, link_id, "public_stats")


# ------------------------------------------------
# Analytics (management side)
# ------------------------------------------------
def reset_link_statistics(workspace, link_id: int) -> Link:
    link = get_workspace_link(workspace, link_id)
    LinkVisit.query.filter_by(link_id=link.id).delete(synchronize_session=False)
    UniqueLinkVisit.query.filter_by(link_id=link.id).delete(synchronize_session=False)
    db.session.commit()
    return link


def _month_start(dt: datetime.datetime) -> datetime.datetime:
    return datetime.datetime(dt.year, dt.month, 1)


def get_date_range_from_filter(range_name: str, paid_plan: bool, now: Optional[datetime.datetime] = None):
    """(start, end) for a named range; free plans only get 24h and 7d."""
    now = now or datetime.datetime.utcnow()
    if not paid_plan and range_name not in ("24h", "7d"):
        range_name = "7d"

    days = {"24h": 1, "7d": 7, "30d": 30, "90d": 90}
    if range_name in days:
        return now - datetime.timedelta(days=days[range_name]), now
    if range_name == "this_month":
        return _month_start(now), now
    if range_name == "last_month":
        end = _month_start(now)
        return _month_start(end - datetime.timedelta(days=1)), end
    if range_name == "this_year":
        return datetime.datetime(now.year, 1, 1), now
    if range_name == "last_year":
        return datetime.datetime(now.year - 1, 1, 1), datetime.datetime(now.year, 1, 1)
    if range_name == "all":
        return datetime.datetime(1970, 1, 1), now

    return now - datetime.timedelta(days=7), now


def _top(counter: Counter) -> str:
    return counter.most_common(1)[0][0] if counter else "N/A"


def get_link_visits(workspace, alias: str, domain: Optional[str] = None, range_name: str = "7d") -> dict:
    paid = is_paid_plan(workspace.plan)
    domain = domain or _default_domain()
    link = workspace_filter(Link.query, workspace).filter(Link.alias == alias, Link.domain == domain).first()

    empty = {
        "total_visits": 0,
        "unique_visits": 0,
        "visits": [],
        "top_country": "N/A",
        "referers": {},
        "top_referrer": "N/A",
        "is_pro_plan": paid,
    }
    if link is None:
        return empty

    start, end = get_date_range_from_filter(range_name, paid)
    visits = LinkVisit.query.filter(
        LinkVisit.link_id == link.id,
        LinkVisit.created_at >= start,
        LinkVisit.created_at <= end,
    ).order_by(LinkVisit.created_at.desc()).all()
    unique_count = UniqueLinkVisit.query.filter(
        UniqueLinkVisit.link_id == link.id,
        UniqueLinkVisit.created_at >= start,
        UniqueLinkVisit.created_at <= end,
    ).count()

    if not visits:
        return dict(empty, unique_visits=unique_count)

    countries = Counter(v.country for v in visits)
    referers = Counter(v.referer if v.referer is not None else "null" for v in visits)
    top_referrer = _top(referers)

    return {
        "total_visits": len(visits),
        "unique_visits": unique_count,
        "visits": [
            {
                "device": v.device,
                "browser": v.browser,
                "os": v.os,
                "model": v.model,
                "referer": v.referer,
                "country": v.country,
                "city": v.city,
                "continent": v.continent,
                "created_at": v.created_at.isoformat(),
            }
            for v in visits
        ],
        "top_country": _top(countries),
        "referers": dict(referers),
        "top_referrer": "Direct" if top_referrer == "null" else top_referrer,
        "is_pro_plan": paid,
    }


def cleanup_analytics_data(now: Optional[datetime.datetime] = None) -> dict:
    """Apply per-plan analytics retention to personal-workspace links."""
    now = now or datetime.datetime.utcnow()
    result = {"link_visits_deleted": 0, "unique_link_visits_deleted": 0, "users_processed": 0}

    for user in User.query.all():
        retention_days = get_plan_caps(resolve_plan(user.subscription))["retention_days"]
        if retention_days is None:
            continue

        link_ids = [
            link_id for (link_id,) in
            db.session.query(Link.id).filter(Link.user_id == user.id, Link.team_id.is_(None)).all()
        ]
        result["users_processed"] += 1
        if not link_ids:
            continue

        cutoff = now - datetime.timedelta(days=retention_days)
        result["link_visits_deleted"] += LinkVisit.query.filter(
            LinkVisit.link_id.in_(link_ids), LinkVisit.created_at < cutoff
        ).delete(synchronize_session=False)
        result["unique_link_visits_deleted"] += UniqueLinkVisit.query.filter(
            UniqueLinkVisit.link_id.in_(link_ids), UniqueLinkVisit.created_at < cutoff
        ).delete(synchronize_session=False)
        db.session.commit()

    logger.info(f"Analytics cleanup finished: {result}")
    return result


# ------------------------------------------------
# Folders
# ------------------------------------------------
def create_folder(workspace, name: str) -> Folder:
    name = (name or "").strip()
    if not name:
        raise LinkServiceError("Folder name is required")

    existing = workspace_filter(Folder.query, workspace, model=Folder).count()
    check_workspace_folder_limit(workspace, existing)

    folder = Folder(name=name, **workspace_ownership(workspace))
    db.session.add(folder)
    db.session.commit()
    return folder
