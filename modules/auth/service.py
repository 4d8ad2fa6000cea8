"""
Auth Module - Service Layer
=============================
Business logic for registration, credential checks, and token issuance.
"""

import logging
import re
from typing import Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.security import hash_password, verify_password, create_token
from common.exceptions import AuthenticationError, ConflictError, ValidationError
from config.settings import (
    ACCESS_TOKEN_EXPIRE_SECONDS,
    USERNAME_MIN_LENGTH, USERNAME_MAX_LENGTH,
    PASSWORD_MIN_LENGTH, PASSWORD_MAX_LENGTH,
)
from modules.user.models import User

logger = logging.getLogger("gallery.auth")

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class AuthService:
    """Handles registration, login checks, and token creation."""

    _dummy_hash: Optional[str] = None

    def validate_credentials(self, username: str, password: str) -> str:
        """Normalize username and enforce length / charset rules. Returns cleaned username."""
        username = (username or "").strip()
        if not (USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH):
            raise ValidationError(
                f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        if not USERNAME_PATTERN.match(username):
            raise ValidationError("Username may only contain letters, digits, '_', '.' and '-'")
        if not (PASSWORD_MIN_LENGTH <= len(password or "") <= PASSWORD_MAX_LENGTH):
            raise ValidationError(
                f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
            )
        return username

    def register(self, db: Session, username: str, password: str) -> User:
        """Create a pending (unapproved, non-admin) account."""
        username = self.validate_credentials(username, password)

        if db.query(User.id).filter(User.username == username).first():
            raise ConflictError("Username already exists")

        user = User(
            username=username,
            password_hash=hash_password(password),
            is_admin=False,
            is_approved=False,
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Username already exists")

        logger.info("Registered user %s (pending approval)", username)
        return user

    def authenticate(self, db: Session, username: str, password: str) -> User:
        """
        Check credentials. Unknown usernames still pay for one bcrypt check
        so response time does not reveal which usernames exist.
        """
        user = db.query(User).filter(User.username == (username or "").strip()).first()
        if not user:
            verify_password(password or "", self._get_dummy_hash())
            raise AuthenticationError("Invalid username or password")

        if not verify_password(password or "", user.password_hash):
            logger.info("Failed login for %s", user.username)
            raise AuthenticationError("Invalid username or password")

        if not user.can_login:
            raise AuthenticationError("Account pending admin approval")

        return user

    def issue_token(self, user: User) -> Tuple[str, int]:
        """Returns (access_token, expires_in_seconds)."""
        claims = {
            "user_id": user.id,
            "username": user.username,
            "is_admin": bool(user.is_admin),
            "is_approved": bool(user.is_approved),
        }
        return create_token(claims, ACCESS_TOKEN_EXPIRE_SECONDS), ACCESS_TOKEN_EXPIRE_SECONDS

    def refresh(self, db: Session, user_id: int) -> Tuple[User, str, int]:
        """Reissue a token from the current database state of the user."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user or not user.can_login:
            raise AuthenticationError("Invalid or expired token")
        token, expires_in = self.issue_token(user)
        return user, token, expires_in

    @classmethod
    def _get_dummy_hash(cls) -> str:
        if cls._dummy_hash is None:
            cls._dummy_hash = hash_password("not-a-real-password")
        return cls._dummy_hash


auth_service = AuthService()
