from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(raw_password: str) -> str:
    """Salted adaptive hash (werkzeug's default scrypt)."""
    return generate_password_hash(raw_password)


def verify_password(stored_hash: Optional[str], provided_password: Optional[str]) -> bool:
    """Check a candidate against a stored hash.

    A missing hash, a missing candidate, or a stored value that is not a valid
    werkzeug hash all count as a mismatch.
    """
    if not stored_hash or provided_password is None:
        return False

    try:
        return check_password_hash(stored_hash, provided_password)
    except ValueError:
        # Stored string is not a valid werkzeug hash
        return False
