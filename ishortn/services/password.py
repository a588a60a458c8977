import logging
from typing import Optional

from ..errors import LinkServiceError
from ..extensions import db, get_link_cache
from ..repositories.link_repository import get_link_by_id
from ..schemas.link_schema import serialize_link
from ..utils.passwords import hash_password, verify_password
from ..utils.plan_checker import check_link_feature_access
from .cache import construct_cache_key
from .links import get_workspace_link
from .resolver import ACTIVE, link_status

logger = logging.getLogger(__name__)


def verify_link_password(resolver, link_id: int, password: str, headers=None) -> Optional[dict]:
    """Reveal a protected link when the password matches.

    A successful entry is the click, so it goes through the same recording
    pipeline as a redirect. Failed attempts write nothing.
    """
    link = get_link_by_id(link_id)
    if link is None or not link.password_hash:
        return None

    if not verify_password(link.password_hash, password):
        logger.info(f"Wrong password submitted for link {link_id}")
        return None

    record = serialize_link(link)
    status = link_status(record)
    if status == ACTIVE:
        resolver.record_click(record, headers, password_verified=True)

    return dict(record, status=status)


def change_link_password(workspace, link_id: int, password: Optional[str]):
    """Set or replace a link's password; an empty password removes protection."""
    if password is not None and not isinstance(password, str):
        raise LinkServiceError("password must be a string")

    link = get_workspace_link(workspace, link_id)

    if password:
        check_link_feature_access(workspace.plan, password=password)
        link.password_hash = hash_password(password)
    else:
        link.password_hash = None

    db.session.commit()
    get_link_cache().delete(construct_cache_key(link.domain, link.alias))
    return link
