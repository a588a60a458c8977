from typing import Optional

from sqlalchemy import func

from ..extensions import db
from ..models.link import Link
from ..models.link_visit import LinkVisit


def get_link_by_alias(domain: str, alias: str) -> Optional[Link]:
    """Exact domain, case-insensitive alias."""
    return Link.query.filter(
        Link.domain == domain,
        func.lower(Link.alias) == alias.lower(),
    ).first()


def get_link_by_id(link_id: int) -> Optional[Link]:
    return db.session.get(Link, link_id)


def alias_taken(domain: str, alias: str, exclude_id: Optional[int] = None) -> bool:
    query = Link.query.filter(
        Link.domain == domain,
        func.lower(Link.alias) == alias.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Link.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def count_link_visits(link_id: int) -> int:
    return LinkVisit.query.filter_by(link_id=link_id).count()
