"""
Credential and token service.

Accounts, password checks, and the access/refresh token lifecycle:
- every successful register/login/refresh issues a fresh pair
- refresh tokens are persisted only as a SHA-256 digest
- a refresh token is single use; refreshing revokes it (rotation)
- logout revokes and never fails
"""
from datetime import datetime, timezone
from typing import Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import ConflictError, NotFoundError, UnauthorizedError
from core.security import (
    create_access_token,
    generate_refresh_token,
    get_password_hash,
    hash_token,
    parse_ttl,
    verify_password,
)
from models import RefreshToken, User, UserPreferences

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH = "Invalid or expired refresh token"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def issue_tokens(db: Session, user: User) -> Tuple[str, str]:
    """
    Sign an access token and store the digest of a new refresh token.

    The caller owns the commit so the token row lands in the same unit
    of work as whatever triggered it.
    """
    access_token = create_access_token(str(user.id))
    refresh_token = generate_refresh_token()
    db.add(RefreshToken(
        user_id=user.id,
        token_hash=hash_token(refresh_token),
        expires_at=datetime.now(timezone.utc) + parse_ttl(settings.REFRESH_TOKEN_TTL),
    ))
    return access_token, refresh_token


def register(db: Session, name: str, email: str, password: str) -> Tuple[User, str, str]:
    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already registered")

    user = User(name=name.strip(), email=email, password_hash=get_password_hash(password))
    user.preferences = UserPreferences(goals=[], training_types=[])
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # Another registration took the email after the check above
        db.rollback()
        raise ConflictError("Email already registered")

    access_token, refresh_token = issue_tokens(db, user)
    db.commit()
    db.refresh(user)

    logger.info(
        f"User registered: {user.id}",
        extra={"extra_fields": {"event": "user_registered", "user_id": str(user.id)}},
    )
    return user, access_token, refresh_token


def login(db: Session, email: str, password: str) -> Tuple[User, str, str]:
    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()

    # Same error for unknown email and wrong password
    if not user or not verify_password(password, user.password_hash):
        logger.warning(
            "Failed login attempt",
            extra={"extra_fields": {"event": "login_failed", "email": email}},
        )
        raise UnauthorizedError(INVALID_CREDENTIALS)

    access_token, refresh_token = issue_tokens(db, user)
    db.commit()

    logger.info(
        f"User logged in: {user.id}",
        extra={"extra_fields": {"event": "user_login", "user_id": str(user.id)}},
    )
    return user, access_token, refresh_token


def refresh(db: Session, refresh_token: str) -> Tuple[User, str, str]:
    """Exchange a live refresh token for a new pair, retiring the old one."""
    now = datetime.now(timezone.utc)
    stored = (
        db.query(RefreshToken)
        .filter(
            RefreshToken.token_hash == hash_token(refresh_token),
            RefreshToken.revoked_at.is_(None),
            RefreshToken.expires_at > now,
        )
        .first()
    )
    if not stored:
        raise UnauthorizedError(INVALID_REFRESH)

    user = db.query(User).filter(User.id == stored.user_id).first()
    if not user:
        raise UnauthorizedError(INVALID_REFRESH)

    access_token, new_refresh_token = issue_tokens(db, user)

    # Conditional retire: only one caller can win a given token
    retired = (
        db.query(RefreshToken)
        .filter(RefreshToken.id == stored.id, RefreshToken.revoked_at.is_(None))
        .update({RefreshToken.revoked_at: now}, synchronize_session=False)
    )
    if retired != 1:
        logger.warning(
            "Refresh token reused concurrently",
            extra={"extra_fields": {"event": "refresh_reused", "user_id": str(user.id)}},
        )
        db.rollback()
        raise UnauthorizedError(INVALID_REFRESH)
    db.commit()

    logger.info(
        f"Refresh token rotated for user {user.id}",
        extra={"extra_fields": {"event": "token_refreshed", "user_id": str(user.id)}},
    )
    return user, access_token, new_refresh_token


def revoke(db: Session, refresh_token: Optional[str]) -> int:
    """Revoke every live row matching the token. Returns how many were revoked."""
    if not refresh_token:
        return 0

    revoked = (
        db.query(RefreshToken)
        .filter(
            RefreshToken.token_hash == hash_token(refresh_token),
            RefreshToken.revoked_at.is_(None),
        )
        .update({RefreshToken.revoked_at: datetime.now(timezone.utc)}, synchronize_session=False)
    )
    db.commit()

    if revoked:
        logger.info("Refresh token revoked", extra={"extra_fields": {"event": "logout"}})
    return revoked


def get_user(db: Session, user_id) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User")
    return user


def update_avatar(db: Session, user: User, avatar_url: Optional[str]) -> User:
    """Set the avatar URL; None clears it."""
    user.avatar_url = avatar_url
    db.commit()
    db.refresh(user)
    return user
