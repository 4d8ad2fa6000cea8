"""
Admin Module - Routes
======================
User approval, role management, application settings, and statistics.
Every endpoint requires an admin token.

Endpoints:
  GET    /api/admin/users                   - Paginated users (?status=all|approved|pending)
  GET    /api/admin/users/pending           - Users awaiting approval
  POST   /api/admin/users/{id}/approve      - Approve a user
  POST   /api/admin/users/{id}/reject       - Remove a pending registration
  POST   /api/admin/users/{id}/toggle-admin - Grant / revoke admin
  DELETE /api/admin/users/{id}              - Delete a user
  POST   /api/admin/users/bulk-approve      - Approve many users
  GET    /api/admin/stats                   - Dashboard statistics
  GET    /api/admin/settings                - List settings
  POST   /api/admin/settings                - Create setting
  PUT    /api/admin/settings/{key}          - Update setting
  DELETE /api/admin/settings/{key}          - Delete setting
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from common.responses import success_response, paginated_response
from modules.admin.service import admin_service
from modules.auth.deps import require_admin
from modules.user.models import User

router = APIRouter(prefix="/admin", tags=["admin"])


# ==========================================
# Schemas
# ==========================================

class BulkApproveRequest(BaseModel):
    user_ids: List[int] = Field(..., min_length=1, max_length=500)


class SettingCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: str
    description: Optional[str] = Field(None, max_length=500)


class SettingUpdate(BaseModel):
    value: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)


# ==========================================
# 👥 Users
# ==========================================

@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: str = Query("all", pattern="^(all|approved|pending)$"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    users, total = admin_service.list_users(db, page, per_page, status)
    return paginated_response(
        {"users": [u.to_dict() for u in users], "total": total},
        page=page, limit=per_page, total=total,
        message="Users retrieved successfully",
    )


@router.get("/users/pending")
async def pending_users(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    users = admin_service.list_pending(db)
    return success_response(
        {"users": [u.to_dict() for u in users], "count": len(users)},
        "Pending users retrieved successfully",
    )


@router.post("/users/bulk-approve")
async def bulk_approve(
    body: BulkApproveRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    result = admin_service.bulk_approve(db, body.user_ids, admin)
    db.commit()
    return success_response(result, f"{result['approved_count']} user(s) approved")


@router.post("/users/{user_id}/approve")
async def approve_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = admin_service.approve_user(db, user_id, admin)
    db.commit()
    return success_response({"user": user.to_dict()}, f"User {user.username} approved")


@router.post("/users/{user_id}/reject")
async def reject_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    username = admin_service.reject_user(db, user_id, admin)
    db.commit()
    return success_response({"user_id": user_id}, f"User {username} rejected")


@router.post("/users/{user_id}/toggle-admin")
async def toggle_admin(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = admin_service.toggle_admin(db, user_id, admin)
    db.commit()
    state = "granted" if user.is_admin else "revoked"
    return success_response({"user": user.to_dict()}, f"Admin access {state} for {user.username}")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    username = admin_service.delete_user(db, user_id, admin)
    db.commit()
    return success_response({"user_id": user_id}, f"User {username} deleted")


# ==========================================
# 📊 Statistics
# ==========================================

@router.get("/stats")
async def stats(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return success_response(admin_service.get_stats(db), "Statistics retrieved successfully")


# ==========================================
# ⚙️ Settings
# ==========================================

@router.get("/settings")
async def list_settings(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    settings = admin_service.list_settings(db)
    return success_response([s.to_dict() for s in settings], "Settings retrieved successfully")


@router.post("/settings", status_code=201)
async def create_setting(
    body: SettingCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    setting = admin_service.create_setting(db, body.key, body.value, body.description)
    db.commit()
    return success_response(setting.to_dict(), "Setting created successfully")


@router.put("/settings/{key}")
async def update_setting(
    key: str,
    body: SettingUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    setting = admin_service.update_setting(db, key, body.value, body.description)
    db.commit()
    return success_response(setting.to_dict(), "Setting updated successfully")


@router.delete("/settings/{key}")
async def delete_setting(
    key: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    admin_service.delete_setting(db, key)
    db.commit()
    return success_response(message="Setting deleted successfully")
