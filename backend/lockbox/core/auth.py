"""Authentication module: FastAPI dependencies resolving the acting user.

Public interface:
    ``require_auth``  returns a UserAccessControl or raises 401.
    ``require_admin`` returns a UserAccessControl, raises 403 if not admin.

When ``settings.auth_enabled`` is False, the first active administrator acts
for every request so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class UserAccessControl:
    """Identity and role of the user performing an operation.

    Services receive this instead of a request so they can be reused from the
    CLI and from tests.
    """

    user_id: str
    role: str
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def assert_is_admin(self) -> None:
        if not self.is_admin:
            raise ForbiddenError("Access restricted to administrators.")


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> UserAccessControl:
    """Require a valid JWT and return the caller's UserAccessControl."""
    if not settings.auth_enabled:
        return _first_active_admin(db)

    if credentials is None:
        raise AuthenticationError()

    payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        raise AuthenticationError("The authentication token is invalid or expired.")

    return _load_access_control(payload.sub, db)


def require_admin(uac: UserAccessControl = Depends(require_auth)) -> UserAccessControl:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    uac.assert_is_admin()
    return uac


def _load_access_control(user_id: str, db: Session) -> UserAccessControl:
    from ..models.user import User

    user = db.get(User, user_id)
    if user is None or user.deleted:
        raise AuthenticationError("The user does not exist.")
    if not user.active:
        raise AuthenticationError("The user is not active.")
    return UserAccessControl(user_id=user.id, role=user.role, username=user.username)


def _first_active_admin(db: Session) -> UserAccessControl:
    from ..models.user import ROLE_ADMIN, User

    admin = db.execute(
        select(User)
        .where(User.role == ROLE_ADMIN, User.active.is_(True), User.deleted.is_(False))
        .order_by(User.created)
        .limit(1)
    ).scalar_one_or_none()
    if admin is None:
        raise AuthenticationError("No active administrator is available.")
    return UserAccessControl(user_id=admin.id, role=admin.role, username=admin.username)
