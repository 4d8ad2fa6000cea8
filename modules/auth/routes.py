"""
Auth Module - Routes
=====================
Stateless bearer-token authentication.

Endpoints:
  POST /api/auth/register - Create a pending account (no token)
  POST /api/auth/login    - Exchange credentials for a token
  GET  /api/auth/me       - Current user profile
  POST /api/auth/logout   - Client-side logout acknowledgement
  GET  /api/auth/check    - Whether the caller's token is valid
  POST /api/auth/refresh  - Reissue a token from current account state
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from common.responses import success_response
from common.security import rate_limit
from modules.auth.deps import require_auth, get_optional_user
from modules.auth.service import auth_service
from modules.user.models import User

logger = logging.getLogger("gallery.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


# ==========================================
# Schemas
# ==========================================

class CredentialsRequest(BaseModel):
    username: str
    password: str


def _token_payload(user: User, token: str, expires_in: int) -> dict:
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": expires_in,
        "user": user.to_dict(),
    }


# ==========================================
# Register / Login
# ==========================================

@router.post("/register", status_code=201, dependencies=[Depends(rate_limit("auth"))])
def register(body: CredentialsRequest, db: Session = Depends(get_db)):
    user = auth_service.register(db, body.username, body.password)
    db.commit()
    return success_response(
        {"user": user.to_dict()},
        "Registration successful. Your account is pending admin approval.",
    )


@router.post("/login", dependencies=[Depends(rate_limit("auth"))])
def login(body: CredentialsRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, body.username, body.password)
    token, expires_in = auth_service.issue_token(user)
    logger.info("User %s logged in", user.username)
    return success_response(_token_payload(user, token, expires_in), "Login successful")


# ==========================================
# Session
# ==========================================

@router.get("/me")
async def me(user: User = Depends(require_auth)):
    return success_response(user.to_dict(), "User profile retrieved")


@router.post("/logout")
async def logout(user: User = Depends(require_auth)):
    """Tokens are stateless: the client discards its copy."""
    logger.info("User %s logged out", user.username)
    return success_response(message="Logged out successfully")


@router.get("/check")
async def check(user: Optional[User] = Depends(get_optional_user)):
    return success_response({
        "authenticated": user is not None,
        "user": user.to_dict() if user else None,
    }, "Authentication status")


@router.post("/refresh")
async def refresh(user: User = Depends(require_auth), db: Session = Depends(get_db)):
    user, token, expires_in = auth_service.refresh(db, user.id)
    return success_response(_token_payload(user, token, expires_in), "Token refreshed")
