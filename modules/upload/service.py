"""
Upload Module - Service Layer
===============================
Validates and stores uploaded images, and attaches uploads to designs.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from config.settings import MAX_BATCH_FILES
from common.exceptions import AppError, ValidationError, NotFoundError, ConflictError
from common.storage import (
    LocalObjectStore, StoredObject, ImageInfo, validate_image, generate_object_key,
)
from modules.catalog.models import DesignImage
from modules.catalog.service import design_service, image_service

logger = logging.getLogger("gallery.upload")


@dataclass
class IncomingFile:
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


class UploadService:

    def store_image(
        self, storage: LocalObjectStore, upload: IncomingFile, category: Optional[str],
    ) -> Tuple[StoredObject, ImageInfo]:
        info = validate_image(upload.filename, upload.content_type, upload.data)
        key = generate_object_key(category, info.extension)
        stored = storage.put(key, upload.data, info.content_type)
        return stored, info

    def upload_to_dict(self, stored: StoredObject, info: ImageInfo, upload: IncomingFile) -> dict:
        data = stored.to_dict()
        data.update({
            "original_filename": upload.filename,
            "width": info.width,
            "height": info.height,
        })
        return data

    def store_batch(self, storage: LocalObjectStore, uploads: List[IncomingFile], category: Optional[str]) -> dict:
        """Store each file independently; one bad file does not stop the rest."""
        if not uploads:
            raise ValidationError("No files provided")
        if len(uploads) > MAX_BATCH_FILES:
            raise ValidationError(f"Maximum {MAX_BATCH_FILES} files allowed per batch")

        uploaded, failed = [], []
        for upload in uploads:
            try:
                stored, info = self.store_image(storage, upload, category)
                uploaded.append(self.upload_to_dict(stored, info, upload))
            except AppError as e:
                failed.append({"filename": upload.filename, "error": e.message})
        logger.info("Batch upload: %d stored, %d failed", len(uploaded), len(failed))
        return {
            "uploaded": uploaded,
            "failed": failed,
            "total_uploaded": len(uploaded),
            "total_failed": len(failed),
        }

    def attach_to_design(
        self, db: Session, storage: LocalObjectStore, design_id: int,
        uploads: List[IncomingFile], uploaded_by: str, written: List[str],
    ) -> List[DesignImage]:
        """
        Store files and create their image rows. Every stored key is appended to
        `written` so the caller can remove the objects if the transaction fails.
        The first upload becomes primary when the design has no primary yet.
        """
        if not uploads:
            raise ValidationError("No files provided")
        if len(uploads) > MAX_BATCH_FILES:
            raise ValidationError(f"Maximum {MAX_BATCH_FILES} files allowed per batch")

        design = design_service.get_by_id(db, design_id, is_admin=True)
        cap = image_service.image_cap(db)
        existing = image_service.count_images(db, design_id)
        if existing + len(uploads) > cap:
            raise ValidationError(
                f"Maximum {cap} images allowed per design ({existing} already attached)"
            )

        checked = [(upload, validate_image(upload.filename, upload.content_type, upload.data)) for upload in uploads]
        has_primary = any(img.is_primary for img in design.images)

        images = []
        for index, (upload, info) in enumerate(checked):
            key = generate_object_key(design.category, info.extension)
            storage.put(key, upload.data, info.content_type)
            written.append(key)
            images.append(image_service.add_image(
                db, storage, design_id, key,
                uploaded_by=uploaded_by,
                is_primary=not has_primary and index == 0,
                alt_text=design.title,
                width=info.width,
                height=info.height,
            ))
        return images

    def delete_object(self, db: Session, storage: LocalObjectStore, key: str) -> None:
        if not storage.exists(key):
            raise NotFoundError("Image not found")
        if image_service.is_referenced(db, key):
            raise ConflictError("Image is still used by a design")
        storage.delete(key)


upload_service = UploadService()
