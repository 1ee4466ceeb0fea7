"""Authentication service: account creation and password checks.

Passwords are hashed with bcrypt via passlib and never stored or logged in
plaintext.
"""

import logging

from passlib.hash import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError, ValidationError
from ..models.user import ROLE_ADMIN, ROLE_USER, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def create_user(db: Session, username: str, password: str, role: str = ROLE_USER) -> User:
    """Create an active account.

    Raises ValidationError if the username is taken or the inputs are invalid.
    """
    username = username.strip().lower()
    if not username or "@" not in username:
        raise ValidationError("The username should be a valid email address.", field="username")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"The password should be at least {MIN_PASSWORD_LENGTH} characters.", field="password"
        )
    if role not in (ROLE_ADMIN, ROLE_USER):
        raise ValidationError(f"Invalid role: {role}.", field="role")

    existing = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if existing is not None:
        raise ValidationError("The username is already in use.", field="username")

    user = User(username=username, password_hash=bcrypt.hash(password), role=role, active=True)
    db.add(user)
    db.commit()
    logger.info("User created", extra={"user_id": user.id, "role": role})
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    """Validate credentials and return the user.

    Raises AuthenticationError on unknown user, wrong password, or inactive account.
    """
    username = username.strip().lower()
    user = db.execute(
        select(User).where(User.username == username, User.deleted.is_(False))
    ).scalar_one_or_none()

    if user is None or user.password_hash is None:
        raise AuthenticationError("The username or password is incorrect.")

    if not bcrypt.verify(password, user.password_hash):
        raise AuthenticationError("The username or password is incorrect.")

    if not user.active:
        raise AuthenticationError("The user is not active.")

    return user
