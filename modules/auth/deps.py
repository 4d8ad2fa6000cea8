"""
Auth Module - Dependencies
===========================
FastAPI dependencies for bearer-token authentication and authorization.
These are injected into route handlers via Depends().

NOTE: The token proves identity; role and approval flags are read from the
users table on every request, so revoking approval or admin rights takes
effect immediately instead of at token expiry.
"""

import logging
from typing import Optional

from fastapi import Request, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import AuthenticationError, AuthorizationError
from common.security import decode_token, extract_bearer_token, INVALID_TOKEN_MESSAGE
from modules.user.models import User

logger = logging.getLogger("gallery.auth")


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    Identify the caller if a valid bearer token is present.
    Returns User or None; never raises.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        return None
    try:
        claims = decode_token(token)
    except AuthenticationError:
        return None

    user = db.query(User).filter(User.id == claims.user_id).first()
    if not user or not user.can_login:
        return None
    request.state.user = user
    return user


def require_auth(request: Request, db: Session = Depends(get_db)) -> User:
    """Require a valid bearer token for an existing user. Raises 401 otherwise."""
    header = request.headers.get("Authorization")
    if not header:
        raise AuthenticationError("Access token required")
    token = extract_bearer_token(header)
    if not token:
        raise AuthenticationError("Invalid authorization header format")

    claims = decode_token(token)
    user = db.query(User).filter(User.id == claims.user_id).first()
    if not user:
        logger.info("Token for missing user id=%s rejected", claims.user_id)
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)

    request.state.user = user
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    """Only allow admin users. 401 if unauthenticated, 403 if not admin."""
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


def require_approved(user: User = Depends(require_auth)) -> User:
    """Admins always pass; other users need is_approved. Raises 403 otherwise."""
    if not user.can_login:
        raise AuthorizationError("Account pending approval")
    return user
