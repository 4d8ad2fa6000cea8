"""
Favorite Module - Routes
=========================
Endpoints:
  POST   /api/designs/{id}/favorite        - Add to favorites (400 if already there)
  DELETE /api/designs/{id}/favorite        - Remove from favorites (400 if absent)
  POST   /api/designs/{id}/favorite/toggle - Flip favorite state
  GET    /api/designs/user/favorites       - Paginated favorites, newest first
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.responses import success_response, paginated_response
from common.storage import LocalObjectStore, get_storage
from modules.auth.deps import require_approved
from modules.catalog.query import build_design_query
from modules.catalog.service import design_to_dict
from modules.favorite.service import favorite_service
from modules.user.models import User

router = APIRouter(prefix="/designs", tags=["favorites"])


@router.get("/user/favorites")
async def list_favorites(
    page: int = 1,
    per_page: Optional[int] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: User = Depends(require_approved),
):
    # favorites only ever show active designs, even to admins
    dq = build_design_query({}, page=page, per_page=per_page if per_page is not None else limit)
    designs, total = favorite_service.list_favorites(db, me.id, dq)
    return paginated_response(
        {
            "designs": [design_to_dict(d, storage, is_favorited=True) for d in designs],
            "total": total,
            "page": dq.page,
            "per_page": dq.limit,
            "total_pages": math.ceil(total / dq.limit),
        },
        page=dq.page, limit=dq.limit, total=total,
        message="Favorites retrieved successfully",
    )


@router.post("/{design_id}/favorite")
async def add_favorite(
    design_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_approved),
):
    like_count = favorite_service.add_favorite(db, me.id, design_id)
    db.commit()
    return success_response(
        {"design_id": design_id, "is_favorited": True, "like_count": like_count},
        "Added to favorites",
    )


@router.delete("/{design_id}/favorite")
async def remove_favorite(
    design_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_approved),
):
    like_count = favorite_service.remove_favorite(db, me.id, design_id)
    db.commit()
    return success_response(
        {"design_id": design_id, "is_favorited": False, "like_count": like_count},
        "Removed from favorites",
    )


@router.post("/{design_id}/favorite/toggle")
async def toggle_favorite(
    design_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_approved),
):
    favorited, like_count = favorite_service.toggle_favorite(db, me.id, design_id)
    db.commit()
    return success_response(
        {"design_id": design_id, "is_favorited": favorited, "like_count": like_count},
        "Added to favorites" if favorited else "Removed from favorites",
    )
