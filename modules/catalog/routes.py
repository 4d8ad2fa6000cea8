"""
Catalog Module - Routes
========================
Design browsing for approved users; design and image management for admins.

Endpoints:
  GET    /api/designs                               - Filtered, sorted, paginated list
  GET    /api/designs/featured                      - Featured designs
  GET    /api/designs/{id}                          - Detail (+ images), counts a view
  POST   /api/designs                               - Create (admin)
  PUT    /api/designs/{id}                          - Update allow-listed fields (admin)
  DELETE /api/designs/{id}                          - Delete with cascade (admin)
  GET    /api/designs/{id}/images                   - Ordered image set
  POST   /api/designs/{id}/images                   - Attach a stored object (admin)
  PUT    /api/designs/{id}/images/reorder           - Bulk reorder (admin)
  PUT    /api/designs/{id}/images/{image_id}        - Update image (admin)
  POST   /api/designs/{id}/images/{image_id}/set-primary - Make primary (admin)
  DELETE /api/designs/{id}/images/{image_id}        - Remove image (admin)
"""

import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, AliasChoices
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import MAX_FEATURED_LIMIT
from common.responses import success_response, paginated_response
from common.storage import LocalObjectStore, get_storage
from modules.auth.deps import require_admin, require_approved, get_optional_user
from modules.catalog.query import build_design_query
from modules.catalog.service import design_service, image_service, design_to_dict, image_to_dict
from modules.favorite.service import favorite_service
from modules.user.models import User

router = APIRouter(prefix="/designs", tags=["designs"])


# ==========================================
# Schemas
# ==========================================

class DesignCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    object_key: str = Field(..., min_length=1, validation_alias=AliasChoices("object_key", "r2_object_key"))
    design_number: Optional[str] = Field(None, max_length=20)
    filename: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    long_description: Optional[str] = None
    style: Optional[str] = None
    colour: Optional[str] = None
    fabric: Optional[str] = None
    occasion: Optional[str] = None
    size_available: Optional[str] = None
    price_range: Optional[str] = None
    tags: Optional[str] = None
    featured: bool = False
    designer_name: Optional[str] = None
    collection_name: Optional[str] = None
    season: Optional[str] = None


class DesignUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    long_description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    style: Optional[str] = None
    colour: Optional[str] = None
    fabric: Optional[str] = None
    occasion: Optional[str] = None
    size_available: Optional[str] = None
    price_range: Optional[str] = None
    tags: Optional[str] = None
    featured: Optional[bool] = None
    status: Optional[str] = None
    designer_name: Optional[str] = None
    collection_name: Optional[str] = None
    season: Optional[str] = None


class ImageCreate(BaseModel):
    object_key: str = Field(..., min_length=1, validation_alias=AliasChoices("object_key", "r2_object_key"))
    image_order: Optional[int] = Field(None, ge=0)
    is_primary: bool = False
    alt_text: Optional[str] = Field(None, max_length=255)
    caption: Optional[str] = Field(None, max_length=500)
    image_type: Optional[str] = Field(None, max_length=50)
    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)


class ImageUpdate(BaseModel):
    image_order: Optional[int] = Field(None, ge=0)
    is_primary: Optional[bool] = None
    alt_text: Optional[str] = Field(None, max_length=255)
    caption: Optional[str] = Field(None, max_length=500)
    image_type: Optional[str] = Field(None, max_length=50)


class ImageOrder(BaseModel):
    image_id: int
    order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    image_orders: List[ImageOrder] = Field(..., min_length=1)


# ==========================================
# 👗 Designs
# ==========================================

@router.get("")
async def list_designs(
    page: int = 1,
    per_page: Optional[int] = None,
    limit: Optional[int] = None,
    q: Optional[str] = None,
    category: Optional[str] = None,
    style: Optional[str] = None,
    colour: Optional[str] = None,
    fabric: Optional[str] = None,
    occasion: Optional[str] = None,
    designer: Optional[str] = None,
    collection: Optional[str] = None,
    season: Optional[str] = None,
    design_number: Optional[str] = None,
    featured: Optional[str] = None,
    status: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: User = Depends(require_approved),
):
    filters = {
        "q": q, "category": category, "style": style, "colour": colour,
        "fabric": fabric, "occasion": occasion, "designer": designer,
        "collection": collection, "season": season, "design_number": design_number,
        "featured": featured, "status": status,
    }
    dq = build_design_query(
        filters,
        page=page,
        per_page=per_page if per_page is not None else limit,
        sort_by=sort_by,
        sort_order=sort_order,
        is_admin=me.is_admin,
    )
    designs, total = design_service.list_designs(db, dq)
    liked = favorite_service.favorited_ids(db, me.id, [d.id for d in designs])

    pages = math.ceil(total / dq.limit)
    return paginated_response(
        {
            "designs": [design_to_dict(d, storage, is_favorited=d.id in liked) for d in designs],
            "total": total,
            "page": dq.page,
            "per_page": dq.limit,
            "total_pages": pages,
        },
        page=dq.page, limit=dq.limit, total=total,
        message="Designs retrieved successfully",
    )


@router.get("/featured")
async def featured_designs(
    limit: int = Query(10, ge=1, le=MAX_FEATURED_LIMIT),
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: Optional[User] = Depends(get_optional_user),
):
    designs = design_service.list_featured(db, limit)
    liked = favorite_service.favorited_ids(db, me.id, [d.id for d in designs]) if me else set()
    return success_response(
        [design_to_dict(d, storage, is_favorited=(d.id in liked) if me else None) for d in designs],
        "Featured designs retrieved successfully",
    )


@router.get("/{design_id}")
async def get_design(
    design_id: int,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: User = Depends(require_approved),
):
    design = design_service.get_by_id(db, design_id, is_admin=me.is_admin)
    design_service.record_view(db, design)
    liked = favorite_service.is_favorited(db, me.id, design.id)
    return success_response(
        design_to_dict(design, storage, is_favorited=liked, with_images=True),
        "Design retrieved successfully",
    )


@router.post("", status_code=201)
async def create_design(
    body: DesignCreate,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    data = body.model_dump(exclude={"object_key", "design_number", "filename"}, exclude_none=True)
    design = design_service.create_design(
        db, storage, data,
        object_key=body.object_key,
        design_number=body.design_number,
        filename=body.filename,
    )
    db.commit()
    return success_response(design_to_dict(design, storage), "Design created successfully")


@router.put("/{design_id}")
async def update_design(
    design_id: int,
    body: DesignUpdate,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    design = design_service.update_design(db, design_id, body.model_dump(exclude_unset=True))
    db.commit()
    return success_response(design_to_dict(design, storage), "Design updated successfully")


@router.delete("/{design_id}")
async def delete_design(
    design_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    design_service.delete_design(db, design_id)
    db.commit()
    return success_response(message="Design deleted successfully")


# ==========================================
# 🖼️ Design Images
# ==========================================

@router.get("/{design_id}/images")
async def list_images(
    design_id: int,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: User = Depends(require_approved),
):
    images = image_service.list_images(db, design_id, is_admin=me.is_admin)
    return success_response(
        [image_to_dict(img, storage) for img in images],
        "Design images retrieved successfully",
    )


@router.post("/{design_id}/images", status_code=201)
async def add_image(
    design_id: int,
    body: ImageCreate,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    image = image_service.add_image(
        db, storage, design_id, body.object_key,
        uploaded_by=admin.username,
        is_primary=body.is_primary,
        image_order=body.image_order,
        alt_text=body.alt_text,
        caption=body.caption,
        image_type=body.image_type,
        width=body.width,
        height=body.height,
    )
    db.commit()
    return success_response(image_to_dict(image, storage), "Image added successfully")


@router.put("/{design_id}/images/reorder")
async def reorder_images(
    design_id: int,
    body: ReorderRequest,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    images = image_service.reorder(db, design_id, [(o.image_id, o.order) for o in body.image_orders])
    db.commit()
    return success_response(
        [image_to_dict(img, storage) for img in images],
        "Images reordered successfully",
    )


@router.put("/{design_id}/images/{image_id}")
async def update_image(
    design_id: int,
    image_id: int,
    body: ImageUpdate,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    image = image_service.update_image(db, design_id, image_id, body.model_dump(exclude_unset=True))
    db.commit()
    return success_response(image_to_dict(image, storage), "Image updated successfully")


@router.post("/{design_id}/images/{image_id}/set-primary")
async def set_primary_image(
    design_id: int,
    image_id: int,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    image = image_service.set_primary(db, design_id, image_id)
    db.commit()
    return success_response(image_to_dict(image, storage), "Primary image updated")


@router.delete("/{design_id}/images/{image_id}")
async def delete_image(
    design_id: int,
    image_id: int,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    orphan_key = image_service.delete_image(db, design_id, image_id)
    db.commit()
    image_service.discard_object(storage, orphan_key)
    return success_response(message="Image deleted successfully")
