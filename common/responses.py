"""
Design Gallery - Response Envelope
===================================
Every JSON body shares the shape {success, message, data?, error?}.
List endpoints add a pagination block.
"""

import math
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def pagination_meta(page: int, limit: int, total: int) -> dict:
    """Pagination block for list responses."""
    pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1,
    }


def success_response(data: Any = None, message: str = "Success") -> dict:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def paginated_response(data: Any, page: int, limit: int, total: int, message: str = "Success") -> dict:
    body = success_response(data, message)
    body["pagination"] = pagination_meta(page, limit, total)
    return body


def error_response(
    status_code: int,
    message: str,
    error: Optional[str] = None,
    headers: Optional[dict] = None,
    **extra,
) -> JSONResponse:
    """Build the failure envelope as a ready JSONResponse."""
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    body.update(extra)
    return JSONResponse(jsonable_encoder(body), status_code=status_code, headers=headers)
