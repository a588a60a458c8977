"""
Side cache for resolved links.

Keys are ``"<domain>:<lower-cased alias>"`` and values the JSON-serialised link record
(password hash included, so protected links can be detected on a hit).
The relational store stays authoritative: every failure here degrades to a
cache miss and is logged, never raised.
"""
import json
import logging
import threading
from typing import Optional

from ..schemas.link_schema import dump_link_record, load_link_record

logger = logging.getLogger(__name__)


def construct_cache_key(domain: str, alias: str) -> str:
    # Aliases match case-insensitively, so one canonical key exists per link.
    # Keys are not the literal "<domain>:<alias>"; a case-preserving key would
    # leave other-case entries behind on invalidation.
    return f"{domain}:{alias.lower()}"


class LinkCache:
    def __init__(self, client, ttl: int = 300):
        self.client = client
        self.ttl = ttl
        self.hits = 0
        self.misses = 0
        self._lock = threading.Lock()

    def _count(self, hit: bool):
        with self._lock:
            if hit:
                self.hits += 1
            else:
                self.misses += 1

    def get(self, key: str) -> Optional[dict]:
        if self.client is None:
            self._count(False)
            return None

        try:
            raw = self.client.get(key)
        except Exception as e:
            logger.warning(f"Link cache GET failed for {key}: {e}")
            self._count(False)
            return None

        if not raw:
            self._count(False)
            return None

        try:
            record = load_link_record(json.loads(raw))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            self.delete(key)
            self._count(False)
            return None

        self._count(True)
        return record

    def set(self, key: str, record: dict, ttl: Optional[int] = None) -> bool:
        if self.client is None:
            return False

        try:
            self.client.setex(key, int(ttl or self.ttl), json.dumps(dump_link_record(record)))
            return True
        except Exception as e:
            logger.warning(f"Link cache SET failed for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        if self.client is None:
            return False

        try:
            self.client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Link cache DELETE failed for {key}: {e}")
            return False
