import hashlib
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models.link_visit import LinkVisit, UniqueLinkVisit

logger = logging.getLogger(__name__)


def hash_ip(forwarded_for: Optional[str]) -> str:
    """sha256 of the raw X-Forwarded-For value ("" when absent)."""
    return hashlib.sha256((forwarded_for or "").encode("utf-8")).hexdigest()


def log_visit(link_id: int, fingerprint) -> LinkVisit:
    visit = LinkVisit(link_id=link_id, **fingerprint.as_dict())
    db.session.add(visit)
    db.session.commit()
    return visit


def record_unique_visit(link_id: int, ip_hash: str) -> bool:
    """Insert-if-absent. Returns True when this (link, ip_hash) pair is new."""
    existing = UniqueLinkVisit.query.filter_by(link_id=link_id, ip_hash=ip_hash).first()
    if existing:
        return False

    db.session.add(UniqueLinkVisit(link_id=link_id, ip_hash=ip_hash))
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent click from the same visitor won the insert
        db.session.rollback()
        logger.debug(f"Unique visit for link {link_id} already recorded concurrently")
        return False

    return True
