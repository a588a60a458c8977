"""
Hot-path link resolution.

cache lookup -> (miss) store lookup + cache fill -> liveness -> detached
click recording. Protected links are returned without analytics; the
password gate records the click once the password checks out.
"""
import datetime
import logging
from typing import Optional

from ..repositories.link_repository import count_link_visits, get_link_by_alias
from ..schemas.link_schema import serialize_link
from .cache import construct_cache_key
from .device import normalize_headers

logger = logging.getLogger(__name__)

ACTIVE = "active"
DISABLED = "disabled"
EXPIRED = "expired"
CLICK_LIMIT_REACHED = "click_limit_reached"

REDIRECT_CONTEXT = "redirect"
METADATA_CONTEXT = "metadata"


def link_status(record: dict, now: Optional[datetime.datetime] = None, click_count: Optional[int] = None) -> str:
    if record.get("disabled"):
        return DISABLED

    expires_at = record.get("disable_link_after_date")
    if expires_at is not None and expires_at <= (now or datetime.datetime.utcnow()):
        return EXPIRED

    max_clicks = record.get("disable_link_after_clicks")
    if max_clicks is not None:
        if click_count is None:
            click_count = count_link_visits(record["id"])
        if click_count >= max_clicks:
            return CLICK_LIMIT_REACHED

    return ACTIVE


class LinkResolver:
    def __init__(self, cache, recorder, dispatcher):
        self.cache = cache
        self.recorder = recorder
        self.dispatcher = dispatcher

    def lookup(self, alias: str, domain: str) -> Optional[dict]:
        key = construct_cache_key(domain, alias)

        record = self.cache.get(key)
        if record is not None:
            return record

        link = get_link_by_alias(domain, alias)
        if link is None:
            return None

        record = serialize_link(link)
        self.cache.set(key, record)
        return record

    def resolve(self, alias: str, domain: str, headers=None, context: str = REDIRECT_CONTEXT) -> Optional[dict]:
        """Returns the link record plus its ``status``, or None when nothing matches.

        Inactive links are returned too; the caller decides what to render.
        """
        record = self.lookup(alias, domain)
        if record is None:
            return None

        if record.get("password_hash"):
            return dict(record, status=link_status(record))

        status = link_status(record)
        if context == REDIRECT_CONTEXT and status == ACTIVE:
            self.record_click(record, headers)

        return dict(record, status=status)

    def record_click(self, record: dict, headers, password_verified: bool = False):
        # Headers are copied now; the request is gone by the time a worker runs
        return self.dispatcher.submit(
            self.recorder.record_click,
            record,
            normalize_headers(headers),
            password_verified=password_verified,
        )
