"""
Design Gallery - Security Utilities
====================================
Password hashing, JWT tokens, bearer extraction, and rate limiting.

NOTE: Tokens are self-contained (HS256). Nothing is stored server-side;
expiry is the only revocation mechanism at the token level.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import bcrypt
from fastapi import Request, Response
from jose import jwt, JWTError

from config.settings import (
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_SECONDS, BCRYPT_ROUNDS,
    RATE_LIMIT_ENABLED, RATE_LIMITS,
)
from common.exceptions import AuthenticationError, RateLimitedError
from common.helpers import now_utc, get_real_ip

logger = logging.getLogger("gallery.security")

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
_BCRYPT_MAX_BYTES = 72

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


# ==========================================
# Passwords
# ==========================================

def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """One-way salted bcrypt hash."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


# ==========================================
# JWT Tokens
# ==========================================

@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    is_admin: bool
    is_approved: bool
    iat: int = 0
    exp: int = 0


def create_token(
    claims: dict,
    ttl_seconds: int = ACCESS_TOKEN_EXPIRE_SECONDS,
    now: Optional[datetime] = None,
) -> str:
    """Sign `claims` with issued-at and expiry (`iat + ttl_seconds`)."""
    issued_at = int((now or now_utc()).timestamp())
    to_encode = dict(claims)
    to_encode["sub"] = str(claims["user_id"])
    to_encode["iat"] = issued_at
    to_encode["exp"] = issued_at + int(ttl_seconds)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str, now: Optional[datetime] = None) -> TokenClaims:
    """
    Verify signature and expiry and return the claims.
    Every failure raises the same AuthenticationError; the reason is only logged.
    """
    if not token:
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)
    try:
        payload = jwt.decode(
            token, SECRET_KEY, algorithms=[ALGORITHM],
            options={"verify_exp": False, "verify_iat": False},
        )
    except JWTError as e:
        logger.debug("Token rejected: %s", e)
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)

    exp = payload.get("exp")
    current = (now or now_utc()).timestamp()
    if not isinstance(exp, (int, float)) or current >= exp:
        logger.debug("Token rejected: expired")
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)

    try:
        return TokenClaims(
            user_id=int(payload["user_id"]),
            username=str(payload["username"]),
            is_admin=bool(payload.get("is_admin", False)),
            is_approved=bool(payload.get("is_approved", False)),
            iat=int(payload.get("iat", 0)),
            exp=int(exp),
        )
    except (KeyError, TypeError, ValueError):
        logger.debug("Token rejected: missing claims")
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header, else None."""
    if not authorization:
        return None
    parts = authorization.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


# ==========================================
# Rate Limiting (fixed window)
# ==========================================

@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int


class FixedWindowRateLimiter:
    """
    Per-key counters over fixed windows. A window opens on the first hit and
    closes exactly at window_start + window_seconds.
    Safe to share between threads. State lives only in this instance.
    """

    _PRUNE_THRESHOLD = 10_000

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[int, float]] = {}

    def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            if len(self._windows) > self._PRUNE_THRESHOLD:
                self._prune(now)

            count, started = self._windows.get(key, (0, now))
            if now >= started + self.window_seconds:
                count, started = 0, now

            reset_at = started + self.window_seconds
            if count >= self.max_requests:
                retry_after = max(1, math.ceil(reset_at - now))
                return RateLimitResult(False, self.max_requests, 0, reset_at, retry_after)

            count += 1
            self._windows[key] = (count, started)
            return RateLimitResult(True, self.max_requests, self.max_requests - count, reset_at, 0)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        expired = [k for k, (_, started) in self._windows.items() if now >= started + self.window_seconds]
        for k in expired:
            del self._windows[k]


def build_rate_limiters(enabled: bool = RATE_LIMIT_ENABLED) -> dict:
    """One limiter per scope from settings. Empty when rate limiting is disabled."""
    if not enabled:
        return {}
    return {
        scope: FixedWindowRateLimiter(max_requests, window)
        for scope, (max_requests, window) in RATE_LIMITS.items()
    }


def rate_limit(scope: str):
    """
    Factory: returns a dependency that counts the request against the
    `scope` limiter on app.state.rate_limiters, keyed by client IP.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit("auth"))])
    """
    def dependency(request: Request, response: Response):
        limiters = getattr(request.app.state, "rate_limiters", None) or {}
        limiter = limiters.get(scope)
        if limiter is None:
            return

        client = get_real_ip(request)
        result = limiter.hit(f"{scope}:{client}")
        if not result.allowed:
            logger.warning("Rate limit exceeded: scope=%s client=%s", scope, client)
            raise RateLimitedError(result.retry_after, limit=result.limit)

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)

    return dependency
