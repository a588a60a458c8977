from typing import Optional

from ..extensions import db
from ..models.user import User
from ..repositories.user_repository import get_user_by_email
from ..utils.passwords import hash_password, verify_password


def create_user(name: str, email: str, password: str) -> Optional[User]:
    """Returns None when the email is already registered."""
    if get_user_by_email(email):
        return None

    user = User(name=name, email=email, password=hash_password(password))
    db.session.add(user)
    db.session.commit()
    return user


def authenticate_user(email: str, password: str) -> Optional[User]:
    user = get_user_by_email(email)
    if user is None or not verify_password(user.password, password):
        return None
    return user
