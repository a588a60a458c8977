from typing import Optional

from ..extensions import db
from ..models.team import Team, TeamMember
from ..models.user import User


def get_user_by_email(email: str) -> Optional[User]:
    return User.query.filter_by(email=email).first()


def get_user_by_id(user_id: int) -> Optional[User]:
    return db.session.get(User, user_id)


def get_team_membership(team_id: int, user_id: int) -> Optional[tuple[Team, TeamMember]]:
    member = TeamMember.query.filter_by(team_id=team_id, user_id=user_id).first()
    if member is None:
        return None
    return member.team, member
