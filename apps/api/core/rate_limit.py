"""
Rate Limiting Middleware

Fixed-window request counters in Redis, keyed per caller and path.
Callers are identified by the access token subject when one is present,
otherwise by client IP. If Redis is down the request is let through.
"""
import time
import logging
from typing import Tuple
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from redis.exceptions import RedisError
from core.config import settings
from core.cache import get_redis_client
from core.security import get_user_id_from_token

logger = logging.getLogger(__name__)

# Paths never counted
EXEMPT_PATHS = {"/health", "/ping", "/docs", "/openapi.json", "/redoc"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-caller, per-path request limits."""

    def __init__(self, app, default_limit: int = 100, window: int = 60):
        super().__init__(app)
        self.default_limit = default_limit
        self.window = window

        # Credential endpoints get a tighter budget (requests per window)
        self.endpoint_limits = {
            "/api/v1/auth/login": 10,
            "/api/v1/auth/register": 10,
            "/api/v1/auth/refresh": 30,
        }

    async def dispatch(self, request: Request, call_next):
        if not settings.RATE_LIMIT_ENABLED or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        caller = self._get_caller(request)
        limit = self._get_endpoint_limit(request.url.path)
        allowed, remaining, reset_time = self._check_rate_limit(caller, request.url.path, limit)

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {caller} on {request.url.path}",
                extra={"extra_fields": {"caller": caller, "path": request.url.path}},
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": "Too many requests", "error_code": "RATE_LIMITED"},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_time),
                    "Retry-After": str(max(0, reset_time - int(time.time()))),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)
        return response

    def _get_caller(self, request: Request) -> str:
        """User id from a valid Bearer token, else the client IP."""
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            user_id = get_user_id_from_token(auth_header[len("Bearer "):])
            if user_id:
                return f"user:{user_id}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _get_endpoint_limit(self, path: str) -> int:
        return self.endpoint_limits.get(path, self.default_limit)

    def _check_rate_limit(self, caller: str, path: str, limit: int) -> Tuple[bool, int, int]:
        """
        Count this request against the current window.

        Returns:
            (allowed, remaining, reset_time)
        """
        now = int(time.time())
        redis_client = get_redis_client()
        if not redis_client:
            return True, limit, now + self.window

        key = f"rate_limit:{caller}:{path}"
        try:
            count = redis_client.incr(key)
            if count == 1:
                redis_client.expire(key, self.window)
            ttl = redis_client.ttl(key)
        except RedisError as e:
            logger.error(f"Rate limit check error: {e}")
            return True, limit, now + self.window

        reset_time = now + (ttl if ttl and ttl > 0 else self.window)
        if count > limit:
            return False, 0, reset_time
        return True, max(0, limit - count), reset_time
