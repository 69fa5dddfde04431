"""
Authentication dependencies.

Provides FastAPI dependencies for:
- Resolving the caller's user id from a Bearer access token
- Loading the current authenticated user
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from core.database import get_db
from core.exceptions import UnauthorizedError
from core.security import decode_access_token
from models import User

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)

MISSING_TOKEN = "Missing access token"
INVALID_TOKEN = "Invalid or expired token"


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UUID:
    """
    Validate the Bearer token and return the subject user id.

    Raises UnauthorizedError if the header is missing or the token is
    malformed, expired, tampered with, or signed with another secret.
    """
    if not credentials or not credentials.credentials:
        raise UnauthorizedError(MISSING_TOKEN)

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise UnauthorizedError(INVALID_TOKEN)

    try:
        return UUID(payload["sub"])
    except ValueError:
        raise UnauthorizedError(INVALID_TOKEN)


def get_current_user(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    """Load the authenticated user; a token for a deleted account is rejected."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthorizedError(INVALID_TOKEN)
    return user
