"""
Upload Module - Routes
=======================
Admin-only image uploads into the object store (multipart form data).

Endpoints:
  POST   /api/upload/image                 - Upload one image
  POST   /api/upload/batch                 - Upload up to 5 images
  POST   /api/upload/design/{id}/images    - Upload and attach images to a design
  DELETE /api/upload/image/{key}           - Delete an unreferenced object
  GET    /api/upload/images                - List objects by prefix
  GET    /api/upload/image/{key}/info      - Object metadata
  GET    /api/upload/presigned-url         - Public URL for an existing object
  GET    /api/upload/health                - Storage reachability
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import MAX_FILE_SIZE, MAX_LIST_OBJECTS
from common.exceptions import NotFoundError
from common.responses import success_response, error_response
from common.security import rate_limit
from common.storage import LocalObjectStore, get_storage, compensating_writes
from modules.auth.deps import require_admin
from modules.catalog.service import image_to_dict
from modules.upload.service import upload_service, IncomingFile
from modules.user.models import User

logger = logging.getLogger("gallery.upload")

router = APIRouter(prefix="/upload", tags=["upload"])


async def _read(upload: UploadFile) -> IncomingFile:
    # one byte past the limit is enough to reject oversize files
    data = await upload.read(MAX_FILE_SIZE + 1)
    return IncomingFile(filename=upload.filename, content_type=upload.content_type, data=data)


# ==========================================
# 📤 Uploads
# ==========================================

@router.post("/image", status_code=201, dependencies=[Depends(rate_limit("upload"))])
async def upload_image(
    file: UploadFile = File(...),
    category: str = Form("designs"),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    incoming = await _read(file)
    stored, info = upload_service.store_image(storage, incoming, category)
    logger.info("Image %s uploaded by %s", stored.key, admin.username)
    return success_response(upload_service.upload_to_dict(stored, info, incoming), "Image uploaded successfully")


@router.post("/batch", dependencies=[Depends(rate_limit("upload"))])
async def upload_batch(
    files: List[UploadFile] = File(...),
    category: str = Form("designs"),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    incoming = [await _read(f) for f in files]
    result = upload_service.store_batch(storage, incoming, category)
    message = f"Uploaded {result['total_uploaded']} of {len(incoming)} images"
    return success_response(result, message)


@router.post("/design/{design_id}/images", status_code=201, dependencies=[Depends(rate_limit("upload"))])
async def upload_design_images(
    design_id: int,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    incoming = [await _read(f) for f in files]
    with compensating_writes(storage) as written:
        images = upload_service.attach_to_design(db, storage, design_id, incoming, admin.username, written)
        db.commit()
    return success_response(
        [image_to_dict(img, storage) for img in images],
        f"{len(images)} image(s) uploaded successfully",
    )


# ==========================================
# 🗂️ Objects
# ==========================================

@router.get("/images")
async def list_objects(
    prefix: str = "",
    limit: int = Query(50, ge=1, le=MAX_LIST_OBJECTS),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    objects, truncated = storage.list(prefix, limit)
    return success_response({
        "objects": [o.to_dict() for o in objects],
        "count": len(objects),
        "truncated": truncated,
    }, "Images listed successfully")


@router.get("/image/{key:path}/info")
async def object_info(
    key: str,
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    stored = storage.head(key)
    if not stored:
        raise NotFoundError("Image not found")
    return success_response(stored.to_dict(), "Image info retrieved")


@router.delete("/image/{key:path}")
async def delete_object(
    key: str,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    upload_service.delete_object(db, storage, key)
    logger.info("Object %s deleted by %s", key, admin.username)
    return success_response(message="Image deleted successfully")


@router.get("/presigned-url")
async def presigned_url(
    key: str,
    expires_in: int = Query(3600, ge=60, le=7 * 24 * 3600),
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    """Local storage serves objects publicly; the URL is returned unsigned."""
    if not storage.exists(key):
        raise NotFoundError("Image not found")
    return success_response({
        "key": key,
        "url": storage.public_url(key),
        "method": "GET",
        "expires_in": expires_in,
    }, "URL generated")


@router.get("/health")
async def storage_health(
    storage: LocalObjectStore = Depends(get_storage),
    admin: User = Depends(require_admin),
):
    try:
        writable = storage.ping()
    except OSError as e:
        logger.error("Storage health check failed: %s", e)
        writable = False
    if not writable:
        return error_response(503, "Storage is not available", "STORAGE_UNAVAILABLE")
    return success_response({"status": "healthy", "storage": "local"}, "Storage is healthy")
