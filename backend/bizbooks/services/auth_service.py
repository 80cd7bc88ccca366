# Overview: Password hashing, account creation and credential checks for record owners.

"""
Authentication Service

WHY: Records are scoped per owning user, so every request must resolve to
exactly one account. Passwords are hashed with bcrypt and must meet a
minimum strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper + lower case, digit and special char
- Session tokens are handled separately (see session_service.py)
"""

import logging
import re

import bcrypt

from ..extensions import db
from ..models import User
from ..time_utils import utcnow


logger = logging.getLogger(__name__)


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class AuthError(Exception):
    """Raised when an account cannot be created or used."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Raises PasswordValidationError unless the password has at least
    8 characters, one uppercase, one lowercase, one digit and one special
    character.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost factor 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; a malformed hash never matches."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, email: str, password: str) -> User:
    """
    Create an account.

    Raises:
        AuthError: username or email already taken
        PasswordValidationError: password too weak
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email:
        raise AuthError("username and email are required")

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise AuthError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
    )

    db.session.add(user)
    db.session.commit()
    logger.info("Created user %s (id=%s)", user.username, user.id)
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """
    Look up an active user by username or email and check the password.

    Returns the User (with last_login_at bumped) or None.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == (identifier or "").lower()),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    logger.warning("Failed login for %s", identifier)
    return None


def get_user_by_username(username: str) -> User | None:
    return db.session.query(User).filter_by(username=username).first()
