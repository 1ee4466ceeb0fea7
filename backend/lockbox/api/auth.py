"""Authentication endpoints: login and current user."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..core import response
from ..core.auth import UserAccessControl, require_auth
from ..core.config import settings
from ..core.token_factory import create_token
from ..database import get_db
from ..repositories.user_repository import UserRepository
from ..schemas.auth import LoginRequest, TokenResponse, UserResponse
from ..services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login.json")
def login(request: Request, data: LoginRequest, db: Session = Depends(get_db)):
    """Exchange credentials for a bearer token."""
    user = auth_service.authenticate(db, data.username, data.password)
    token = create_token(
        user.id,
        user.role,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.jwt_expires_hours,
    )
    logger.info("User logged in", extra={"user_id": user.id})
    body = TokenResponse(access_token=token, user_id=user.id, role=user.role)
    return response.success(request, body.model_dump())


@router.get("/me.json")
def me(request: Request, db: Session = Depends(get_db), uac: UserAccessControl = Depends(require_auth)):
    user = UserRepository(db).get_by_id(uac.user_id)
    return response.success(request, UserResponse.model_validate(user).model_dump())
