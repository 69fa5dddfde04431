"""
Security utilities for authentication.

Provides:
- Password hashing (bcrypt)
- Access token (JWT) generation and validation
- Opaque refresh token generation and hashing
- TTL string parsing ("15m", "7d")

SECURITY REQUIREMENTS:
- JWT_ACCESS_SECRET must be set via environment variable
- JWT_ACCESS_SECRET must be cryptographically secure (32+ characters)
- Refresh tokens are never persisted in cleartext, only their SHA-256 digest
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
import hashlib
import logging
import re
import uuid

from jose import JWTError, jwt
import bcrypt
from core.config import settings

logger = logging.getLogger(__name__)

# JWT settings - JWT_ACCESS_SECRET is required by config.py, will fail at startup if not set
SECRET_KEY = settings.JWT_ACCESS_SECRET

# Validate SECRET_KEY strength at module load
if len(SECRET_KEY) < 32:
    raise ValueError(
        "JWT_ACCESS_SECRET must be at least 32 characters. "
        "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
    )

ALGORITHM = settings.JWT_ALGORITHM

_TTL_PATTERN = re.compile(r"^(\d+)([smhd])$")
_TTL_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}
DEFAULT_TTL = timedelta(hours=1)


def parse_ttl(ttl: str) -> timedelta:
    """
    Convert a TTL string like "15m" or "7d" into a timedelta.

    Unknown formats fall back to one hour.
    """
    match = _TTL_PATTERN.match((ttl or "").strip())
    if not match:
        logger.warning(f"Unrecognized TTL '{ttl}', falling back to {DEFAULT_TTL}")
        return DEFAULT_TTL
    value, unit = int(match.group(1)), match.group(2)
    return timedelta(**{_TTL_UNITS[unit]: value})


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a short-lived access token whose subject is the user id."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else parse_ttl(settings.ACCESS_TOKEN_TTL))
    to_encode = {"sub": str(user_id), "iat": now, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate a JWT access token (signature and expiry)."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if payload.get("type", "access") != "access":
        return None
    return payload


def get_user_id_from_token(token: str) -> Optional[str]:
    """Extract user ID from JWT token."""
    payload = decode_access_token(token)
    if payload:
        return payload.get("sub")  # Standard JWT claim for subject (user ID)
    return None


def generate_refresh_token() -> str:
    """Random opaque refresh token handed to the client."""
    return str(uuid.uuid4())


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store and look up refresh tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
