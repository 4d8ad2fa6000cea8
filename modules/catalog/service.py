"""
Catalog Module - Service Layer
================================
Design CRUD, listing through the query builder, and ordered image sets.

Services flush; routes commit.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from config.settings import MAX_IMAGES_PER_DESIGN, MAX_FEATURED_LIMIT
from common.exceptions import ValidationError, NotFoundError, ConflictError
from common.helpers import clamp
from common.storage import LocalObjectStore
from modules.catalog.models import Design, DesignImage, DesignStatus
from modules.catalog.numbering import (
    generate_design_number, is_valid_design_number, normalize_design_number,
)
from modules.admin.service import parse_int_setting
from modules.catalog.query import DesignQuery

logger = logging.getLogger("gallery.catalog")

# Fields an admin may patch with updateDesign (column attribute names)
UPDATABLE_FIELDS = frozenset({
    "title", "description", "short_description", "long_description",
    "category", "style", "colour", "fabric", "occasion", "size_available",
    "price_range", "tags", "featured", "status",
    "designer_name", "collection_name", "season",
})

# Create accepts the same attributes (status and counters are fixed on create)
CREATABLE_FIELDS = UPDATABLE_FIELDS - {"status"}

_NOT_NULL_FIELDS = frozenset({"title", "category", "featured", "status"})

IMAGE_UPDATABLE_FIELDS = frozenset({"image_order", "is_primary", "alt_text", "caption", "image_type"})

_STATUSES = {s.value for s in DesignStatus}


# ==========================================
# Serialization
# ==========================================

def image_to_dict(image: DesignImage, storage: LocalObjectStore) -> dict:
    return {
        "id": image.id,
        "design_id": image.design_id,
        "object_key": image.object_key,
        "image_url": storage.public_url(image.object_key),
        "image_order": image.image_order,
        "is_primary": image.is_primary,
        "alt_text": image.alt_text,
        "caption": image.caption,
        "image_type": image.image_type,
        "file_size": image.file_size,
        "width": image.width,
        "height": image.height,
        "content_type": image.content_type,
        "uploaded_by": image.uploaded_by,
        "created_at": image.created_at,
        "updated_at": image.updated_at,
    }


def design_to_dict(
    design: Design,
    storage: LocalObjectStore,
    is_favorited: Optional[bool] = None,
    with_images: bool = False,
) -> dict:
    data = {
        "id": design.id,
        "title": design.title,
        "description": design.description,
        "short_description": design.short_description,
        "long_description": design.long_description,
        "object_key": design.object_key,
        "image_url": storage.public_url(design.object_key),
        "design_number": design.design_number,
        "category": design.category,
        "style": design.style,
        "colour": design.colour,
        "fabric": design.fabric,
        "occasion": design.occasion,
        "size_available": design.size_available,
        "price_range": design.price_range,
        "tags": design.tags,
        "featured": design.featured,
        "status": design.status,
        "view_count": design.view_count,
        "like_count": design.like_count,
        "designer_name": design.designer_name,
        "collection_name": design.collection_name,
        "season": design.season,
        "created_at": design.created_at,
        "updated_at": design.updated_at,
    }
    if is_favorited is not None:
        data["is_favorited"] = is_favorited
    if with_images:
        data["images"] = [image_to_dict(img, storage) for img in design.images]
    return data


# ==========================================
# Design Service
# ==========================================

class DesignService:

    def get_by_id(self, db: Session, design_id: int, is_admin: bool = False) -> Design:
        """Fetch a design visible to the caller. Hidden and missing designs give the same 404."""
        design = db.query(Design).filter(Design.id == design_id).first()
        if not design or (not is_admin and design.status != DesignStatus.ACTIVE.value):
            raise NotFoundError("Design not found")
        return design

    def list_designs(self, db: Session, dq: DesignQuery) -> Tuple[List[Design], int]:
        """Returns: (designs_page, total_matching)"""
        total = dq.filtered(db.query(func.count(Design.id))).scalar() or 0
        designs = dq.apply(db.query(Design)).all()
        return designs, total

    def list_featured(self, db: Session, limit: int = 10) -> List[Design]:
        limit = clamp(limit, 1, MAX_FEATURED_LIMIT)
        return db.query(Design).filter(
            Design.status == DesignStatus.ACTIVE.value,
            Design.featured == True,  # noqa: E712
        ).order_by(Design.created_at.desc(), Design.id.desc()).limit(limit).all()

    def record_view(self, db: Session, design: Design) -> None:
        """
        Increment view_count and commit. Best-effort: a failure is logged
        and rolled back, never raised to the reader.
        """
        try:
            db.query(Design).filter(Design.id == design.id).update(
                {Design.view_count: Design.view_count + 1}, synchronize_session=False,
            )
            db.commit()
            db.refresh(design)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("View count update failed for design %s: %s", design.id, e)

    def create_design(
        self, db: Session, storage: LocalObjectStore, data: dict,
        object_key: str, design_number: Optional[str] = None, filename: Optional[str] = None,
    ) -> Design:
        """
        Create an active design backed by an already-uploaded object.
        A missing design number is derived from `filename` (or the object key) and the category.
        """
        if not object_key or not storage.exists(object_key):
            raise ValidationError("Referenced image does not exist in storage")

        fields = {k: v for k, v in data.items() if k in CREATABLE_FIELDS}
        if not (fields.get("title") or "").strip():
            raise ValidationError("Title is required")
        if not (fields.get("category") or "").strip():
            raise ValidationError("Category is required")

        number = normalize_design_number(design_number)
        if number is None:
            number = generate_design_number(filename or object_key.rsplit("/", 1)[-1], fields["category"])
        if not is_valid_design_number(number):
            raise ValidationError("Invalid design number format. Expected format: XXX-### (e.g. SAR-001)")
        if db.query(Design.id).filter(Design.design_number == number).first():
            raise ConflictError(f"Design number {number} already exists")

        design = Design(
            **fields,
            object_key=object_key,
            design_number=number,
            status=DesignStatus.ACTIVE.value,
            view_count=0,
            like_count=0,
        )
        db.add(design)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Design number {number} already exists")

        logger.info("Created design %s (%s)", design.id, number)
        return design

    def update_design(self, db: Session, design_id: int, changes: dict) -> Design:
        """Patch allow-listed fields; everything else is ignored. An empty patch is rejected."""
        design = self.get_by_id(db, design_id, is_admin=True)

        updates = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if not updates:
            raise ValidationError("No valid fields to update")

        for key, value in updates.items():
            if key in _NOT_NULL_FIELDS and value is None:
                raise ValidationError(f"{key} cannot be null")
        if "status" in updates and updates["status"] not in _STATUSES:
            raise ValidationError("Status must be one of: active, inactive, draft")

        for key, value in updates.items():
            setattr(design, key, value)
        db.flush()
        return design

    def delete_design(self, db: Session, design_id: int) -> None:
        """Delete a design; images, favorites and cart items go with it."""
        design = self.get_by_id(db, design_id, is_admin=True)
        db.delete(design)
        db.flush()
        logger.info("Deleted design %s", design_id)


# ==========================================
# Image Service
# ==========================================

class ImageService:

    def image_cap(self, db: Session) -> int:
        configured = parse_int_setting(db, "max_images_per_design", MAX_IMAGES_PER_DESIGN)
        return clamp(configured, 1, MAX_IMAGES_PER_DESIGN)

    def list_images(self, db: Session, design_id: int, is_admin: bool = False) -> List[DesignImage]:
        design = design_service.get_by_id(db, design_id, is_admin=is_admin)
        return list(design.images)

    def get_image(self, db: Session, design_id: int, image_id: int) -> DesignImage:
        image = db.query(DesignImage).filter(
            DesignImage.id == image_id,
            DesignImage.design_id == design_id,
        ).first()
        if not image:
            raise NotFoundError("Image not found")
        return image

    def count_images(self, db: Session, design_id: int) -> int:
        return db.query(func.count(DesignImage.id)).filter(DesignImage.design_id == design_id).scalar() or 0

    def _next_order(self, db: Session, design_id: int) -> int:
        current = db.query(func.max(DesignImage.image_order)).filter(
            DesignImage.design_id == design_id,
        ).scalar()
        return 0 if current is None else current + 1

    def _clear_primary(self, db: Session, design_id: int) -> None:
        db.query(DesignImage).filter(
            DesignImage.design_id == design_id,
            DesignImage.is_primary == True,  # noqa: E712
        ).update({"is_primary": False}, synchronize_session="evaluate")

    def add_image(
        self, db: Session, storage: LocalObjectStore, design_id: int, object_key: str,
        uploaded_by: Optional[str] = None, is_primary: bool = False,
        image_order: Optional[int] = None, alt_text: Optional[str] = None,
        caption: Optional[str] = None, image_type: Optional[str] = None,
        width: Optional[int] = None, height: Optional[int] = None,
    ) -> DesignImage:
        """
        Attach a stored object to a design. The object must exist, the per-design
        cap holds, and a requested primary clears the siblings first.
        """
        design_service.get_by_id(db, design_id, is_admin=True)

        stored = storage.head(object_key) if object_key else None
        if not stored:
            raise ValidationError("Referenced image does not exist in storage")

        cap = self.image_cap(db)
        if self.count_images(db, design_id) >= cap:
            raise ValidationError(f"Maximum {cap} images allowed per design")

        if is_primary:
            self._clear_primary(db, design_id)

        image = DesignImage(
            design_id=design_id,
            object_key=object_key,
            image_order=self._next_order(db, design_id) if image_order is None else image_order,
            is_primary=bool(is_primary),
            alt_text=alt_text,
            caption=caption,
            image_type=image_type or "standard",
            file_size=stored.size,
            width=width,
            height=height,
            content_type=stored.content_type,
            uploaded_by=uploaded_by,
        )
        db.add(image)
        db.flush()
        return image

    def update_image(self, db: Session, design_id: int, image_id: int, changes: dict) -> DesignImage:
        image = self.get_image(db, design_id, image_id)

        updates = {k: v for k, v in changes.items() if k in IMAGE_UPDATABLE_FIELDS}
        if not updates:
            raise ValidationError("No valid fields to update")

        if updates.get("is_primary") is True and not image.is_primary:
            self._clear_primary(db, design_id)
        for key, value in updates.items():
            if key in ("image_order", "is_primary", "image_type") and value is None:
                raise ValidationError(f"{key} cannot be null")
            setattr(image, key, value)
        db.flush()
        return image

    def set_primary(self, db: Session, design_id: int, image_id: int) -> DesignImage:
        """Clear-then-set: afterwards exactly this image is primary."""
        image = self.get_image(db, design_id, image_id)
        self._clear_primary(db, design_id)
        image.is_primary = True
        db.flush()
        return image

    def reorder(self, db: Session, design_id: int, orders: Iterable[Tuple[int, int]]) -> List[DesignImage]:
        """Apply (image_id, order) pairs. Every id must belong to the design."""
        design_service.get_by_id(db, design_id, is_admin=True)
        orders = list(orders)
        if not orders:
            raise ValidationError("image_orders must not be empty")

        ids = [image_id for image_id, _ in orders]
        images = {
            img.id: img for img in db.query(DesignImage).filter(
                DesignImage.design_id == design_id,
                DesignImage.id.in_(ids),
            ).all()
        }
        missing = [i for i in ids if i not in images]
        if missing:
            raise ValidationError(f"Images not found for this design: {', '.join(map(str, missing))}")

        for image_id, order in orders:
            images[image_id].image_order = order
        db.flush()
        return self.list_images(db, design_id, is_admin=True)

    def delete_image(self, db: Session, design_id: int, image_id: int) -> Optional[str]:
        """
        Delete an image row. If it was primary, the next image in order is promoted.
        Returns the object key when nothing else references it (caller removes it
        from storage after commit), else None.
        """
        image = self.get_image(db, design_id, image_id)
        key = image.object_key
        was_primary = image.is_primary
        db.delete(image)
        db.flush()

        if was_primary:
            successor = db.query(DesignImage).filter(
                DesignImage.design_id == design_id,
            ).order_by(DesignImage.image_order, DesignImage.created_at, DesignImage.id).first()
            if successor:
                successor.is_primary = True
                db.flush()

        if self.is_referenced(db, key):
            return None
        return key

    def is_referenced(self, db: Session, object_key: str) -> bool:
        in_images = db.query(DesignImage.id).filter(DesignImage.object_key == object_key).first()
        in_designs = db.query(Design.id).filter(Design.object_key == object_key).first()
        return bool(in_images or in_designs)

    def discard_object(self, storage: LocalObjectStore, object_key: Optional[str]) -> None:
        """Best-effort removal of an unreferenced object."""
        if not object_key:
            return
        try:
            storage.delete(object_key)
        except OSError as e:
            logger.warning("Could not delete object %s: %s", object_key, e)


# Singletons
design_service = DesignService()
image_service = ImageService()
