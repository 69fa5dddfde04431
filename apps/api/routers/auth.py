"""
Authentication API endpoints.

Provides:
- User registration and login (token pair issuance)
- Refresh token rotation
- Logout (refresh token revocation)
- Current user profile and avatar
"""
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from core.exceptions import BadRequestError
from models import User
from schemas import (
    AuthResponse,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    UserEnvelope,
    UserResponse,
)
from services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])

AVATAR_TYPE_ERROR = "avatarUrl must be a string or null"


def _auth_response(user: User, access_token: str, refresh_token: str) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account with empty preferences and sign the user in."""
    user, access_token, refresh_token = auth_service.register(
        db, payload.name, payload.email, payload.password
    )
    return _auth_response(user, access_token, refresh_token)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, access_token, refresh_token = auth_service.login(db, payload.email, payload.password)
    return _auth_response(user, access_token, refresh_token)


@router.post("/refresh", response_model=AuthResponse)
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    """Rotate: the presented refresh token is revoked and a new pair issued."""
    user, access_token, refresh_token = auth_service.refresh(db, payload.refresh_token)
    return _auth_response(user, access_token, refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(payload: Optional[LogoutRequest] = None, db: Session = Depends(get_db)):
    """Revoke the refresh token. Always succeeds."""
    auth_service.revoke(db, payload.refresh_token if payload else None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserResponse.model_validate(current_user))


@router.patch("/me/avatar", response_model=UserEnvelope)
def update_avatar(
    payload: Any = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set or clear (null) the avatar URL."""
    if not isinstance(payload, dict) or "avatarUrl" not in payload:
        raise BadRequestError(AVATAR_TYPE_ERROR)
    avatar_url = payload["avatarUrl"]
    if avatar_url is not None and not isinstance(avatar_url, str):
        raise BadRequestError(AVATAR_TYPE_ERROR)

    user = auth_service.update_avatar(db, current_user, avatar_url)
    return UserEnvelope(user=UserResponse.model_validate(user))
