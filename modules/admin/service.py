"""
Admin Module - Service Layer
==============================
User moderation (approve / reject / admin flag), application settings,
and aggregated dashboard statistics.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy import func as sa_func, select

from common.exceptions import ValidationError, NotFoundError, ConflictError
from common.helpers import now_utc
from modules.admin.models import AppSetting
from modules.catalog.models import Design, DesignStatus
from modules.favorite.models import UserFavorite
from modules.user.models import User

logger = logging.getLogger("gallery.admin")

USER_STATUSES = ("approved", "pending", "all")


# ==========================================
# Settings helpers (usable from any module)
# ==========================================

def get_setting(db: Session, key: str, default: str = "") -> str:
    """Fetch an app setting using an existing DB session."""
    setting = db.query(AppSetting).filter(AppSetting.key == key).first()
    return setting.value if setting and setting.value is not None else default


def parse_int_setting(db: Session, key: str, default: int = 0) -> int:
    """Fetch an app setting and parse it as integer."""
    val = get_setting(db, key, str(default))
    try:
        return int(str(val).strip())
    except (ValueError, TypeError):
        return default


class AdminService:

    # ------------------------------------------
    # Users
    # ------------------------------------------

    def list_users(
        self, db: Session, page: int = 1, per_page: int = 20, status: str = "all",
    ) -> Tuple[List[User], int]:
        q = db.query(User)
        if status == "approved":
            q = q.filter(User.is_approved == True)  # noqa: E712
        elif status == "pending":
            q = q.filter(User.is_approved == False)  # noqa: E712

        total = q.count()
        users = (
            q.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return users, total

    def list_pending(self, db: Session) -> List[User]:
        return db.query(User).filter(
            User.is_approved == False,  # noqa: E712
            User.is_admin == False,  # noqa: E712
        ).order_by(User.created_at.asc(), User.id.asc()).all()

    def _get_user(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def approve_user(self, db: Session, user_id: int, acting: User) -> User:
        user = self._get_user(db, user_id)
        if user.is_approved:
            raise ValidationError("User is already approved")
        user.is_approved = True
        db.flush()
        logger.info("User %s approved by %s", user.username, acting.username)
        return user

    def reject_user(self, db: Session, user_id: int, acting: User) -> str:
        """Rejecting a pending registration removes the account. Returns the username."""
        user = self._get_user(db, user_id)
        if user.id == acting.id:
            raise ValidationError("You cannot reject your own account")
        if user.is_approved or user.is_admin:
            raise ValidationError("Only pending users can be rejected")
        username = user.username
        db.delete(user)
        db.flush()
        logger.info("User %s rejected by %s", username, acting.username)
        return username

    def toggle_admin(self, db: Session, user_id: int, acting: User) -> User:
        user = self._get_user(db, user_id)
        if user.id == acting.id:
            raise ValidationError("You cannot change your own admin status")
        user.is_admin = not user.is_admin
        db.flush()
        logger.info(
            "Admin flag for %s set to %s by %s", user.username, user.is_admin, acting.username,
        )
        return user

    def delete_user(self, db: Session, user_id: int, acting: User) -> str:
        user = self._get_user(db, user_id)
        if user.id == acting.id:
            raise ValidationError("You cannot delete your own account")
        username = user.username
        liked = [
            design_id for (design_id,) in
            db.query(UserFavorite.design_id).filter(UserFavorite.user_id == user.id).all()
        ]
        db.delete(user)
        db.flush()
        if liked:
            # the FK cascade removed their favorites
            recount = (
                select(sa_func.count(UserFavorite.id))
                .where(UserFavorite.design_id == Design.id)
                .scalar_subquery()
            )
            db.query(Design).filter(Design.id.in_(liked)).update(
                {Design.like_count: recount}, synchronize_session=False,
            )
            db.flush()
        logger.info("User %s deleted by %s", username, acting.username)
        return username

    def bulk_approve(self, db: Session, user_ids: List[int], acting: User) -> Dict[str, Any]:
        ids = sorted(set(user_ids))
        if not ids:
            raise ValidationError("user_ids must not be empty")
        users = db.query(User).filter(User.id.in_(ids)).all()
        found = {u.id for u in users}
        approved = []
        for user in users:
            if not user.is_approved:
                user.is_approved = True
                approved.append(user.id)
        db.flush()
        logger.info("Bulk approval by %s: %d users", acting.username, len(approved))
        return {
            "approved_count": len(approved),
            "approved_ids": approved,
            "not_found_ids": [i for i in ids if i not in found],
        }

    # ------------------------------------------
    # Settings
    # ------------------------------------------

    def list_settings(self, db: Session) -> List[AppSetting]:
        return db.query(AppSetting).order_by(AppSetting.key).all()

    def create_setting(self, db: Session, key: str, value: str, description: Optional[str] = None) -> AppSetting:
        key = (key or "").strip()
        if not key:
            raise ValidationError("Setting key is required")
        if db.query(AppSetting).filter(AppSetting.key == key).first():
            raise ConflictError("Setting already exists")
        setting = AppSetting(key=key, value=value, description=description)
        db.add(setting)
        db.flush()
        return setting

    def update_setting(
        self, db: Session, key: str, value: Optional[str] = None, description: Optional[str] = None,
    ) -> AppSetting:
        setting = db.query(AppSetting).filter(AppSetting.key == key).first()
        if not setting:
            raise NotFoundError("Setting not found")
        if value is None and description is None:
            raise ValidationError("No fields to update")
        if value is not None:
            setting.value = value
        if description is not None:
            setting.description = description
        db.flush()
        return setting

    def delete_setting(self, db: Session, key: str) -> None:
        setting = db.query(AppSetting).filter(AppSetting.key == key).first()
        if not setting:
            raise NotFoundError("Setting not found")
        db.delete(setting)
        db.flush()

    # ------------------------------------------
    # Statistics
    # ------------------------------------------

    def get_stats(self, db: Session) -> Dict[str, Any]:
        """Counts, engagement totals, top designs, and a 7-day creation series."""
        total_users = db.query(sa_func.count(User.id)).scalar() or 0
        approved_users = db.query(sa_func.count(User.id)).filter(User.is_approved == True).scalar() or 0  # noqa: E712
        admins = db.query(sa_func.count(User.id)).filter(User.is_admin == True).scalar() or 0  # noqa: E712

        by_status = dict(
            db.query(Design.status, sa_func.count(Design.id)).group_by(Design.status).all()
        )
        featured = db.query(sa_func.count(Design.id)).filter(Design.featured == True).scalar() or 0  # noqa: E712

        total_views, total_likes = db.query(
            sa_func.coalesce(sa_func.sum(Design.view_count), 0),
            sa_func.coalesce(sa_func.sum(Design.like_count), 0),
        ).one()
        total_favorites = db.query(sa_func.count(UserFavorite.id)).scalar() or 0

        return {
            "users": {
                "total": total_users,
                "approved": approved_users,
                "pending": total_users - approved_users,
                "admins": admins,
            },
            "designs": {
                "total": sum(by_status.values()),
                "active": by_status.get(DesignStatus.ACTIVE.value, 0),
                "inactive": by_status.get(DesignStatus.INACTIVE.value, 0),
                "draft": by_status.get(DesignStatus.DRAFT.value, 0),
                "featured": featured,
            },
            "engagement": {
                "total_views": int(total_views),
                "total_likes": int(total_likes),
                "total_favorites": total_favorites,
            },
            "top_designs": {
                "by_views": self._top_designs(db, Design.view_count),
                "by_likes": self._top_designs(db, Design.like_count),
            },
            "recent_activity": self._recent_activity(db),
        }

    def _top_designs(self, db: Session, column, limit: int = 5) -> List[Dict[str, Any]]:
        rows = (
            db.query(Design)
            .filter(Design.status == DesignStatus.ACTIVE.value)
            .order_by(column.desc(), Design.id.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": d.id,
                "title": d.title,
                "design_number": d.design_number,
                "view_count": d.view_count,
                "like_count": d.like_count,
            }
            for d in rows
        ]

    def _recent_activity(self, db: Session, days: int = 7) -> List[Dict[str, Any]]:
        since = now_utc() - timedelta(days=days)
        day = sa_func.date(Design.created_at)
        rows = (
            db.query(day.label("date"), sa_func.count(Design.id))
            .filter(Design.created_at >= since)
            .group_by(day)
            .order_by(day.desc())
            .all()
        )
        return [{"date": str(d), "designs_created": count} for d, count in rows]


admin_service = AdminService()
