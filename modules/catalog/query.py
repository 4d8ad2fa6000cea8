"""
Catalog Module - Design Query Builder
======================================
Turns optional filter / sort / pagination parameters into bounded,
parameterized SQLAlchemy criteria over the designs table.

Field names never come from the caller: filters, search columns and sort
keys are looked up in the fixed mappings below, and only caller values
reach the query (as bound parameters).
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from sqlalchemy import and_, or_, true
from sqlalchemy.orm import Query

from config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from common.helpers import clamp, safe_int
from modules.catalog.models import Design, DesignStatus


# ==========================================
# Allow-lists
# ==========================================

# request parameter -> column (equality match)
EQUALITY_FILTERS = {
    "category": Design.category,
    "style": Design.style,
    "colour": Design.colour,
    "fabric": Design.fabric,
    "occasion": Design.occasion,
    "designer": Design.designer_name,
    "collection": Design.collection_name,
    "season": Design.season,
    "design_number": Design.design_number,
}

SEARCH_COLUMNS = (
    Design.title,
    Design.description,
    Design.short_description,
    Design.long_description,
    Design.tags,
    Design.designer_name,
    Design.collection_name,
    Design.design_number,
)

SORT_COLUMNS = {
    "created_at": Design.created_at,
    "title": Design.title,
    "view_count": Design.view_count,
    "like_count": Design.like_count,
    "design_number": Design.design_number,
    "category": Design.category,
    "style": Design.style,
    "price_range": Design.price_range,
}

DEFAULT_SORT = "created_at"
DEFAULT_ORDER = "desc"

_STATUSES = {s.value for s in DesignStatus}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class DesignQuery:
    conditions: List[Any] = field(default_factory=list)
    order_by: List[Any] = field(default_factory=list)
    sort_by: str = DEFAULT_SORT
    sort_order: str = DEFAULT_ORDER
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def whereclause(self):
        if not self.conditions:
            return true()
        return and_(*self.conditions)

    def filtered(self, query: Query) -> Query:
        """WHERE only (used for the count query)."""
        return query.filter(self.whereclause)

    def apply(self, query: Query) -> Query:
        return self.filtered(query).order_by(*self.order_by).limit(self.limit).offset(self.offset)


def parse_bool(value: Any) -> Optional[bool]:
    """Tri-state flag: True / False, or None when absent or unrecognised."""
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def normalize_page(page: Any, per_page: Any, max_page_size: int = MAX_PAGE_SIZE) -> tuple:
    """Clamp page to >= 1 and per_page to [1, max_page_size]."""
    page_num = safe_int(page)
    size = safe_int(per_page)
    page_num = page_num if page_num and page_num > 0 else 1
    size = DEFAULT_PAGE_SIZE if size is None else clamp(size, 1, max_page_size)
    return page_num, size


def build_design_query(
    filters: Optional[Mapping[str, Any]] = None,
    page: Any = 1,
    per_page: Any = DEFAULT_PAGE_SIZE,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    is_admin: bool = False,
    max_page_size: int = MAX_PAGE_SIZE,
) -> DesignQuery:
    """
    Build criteria for listing designs.

    - Every allow-listed filter with a non-empty value becomes an equality predicate.
    - `q` becomes a case-insensitive substring match OR-ed over SEARCH_COLUMNS.
    - `featured` is applied only when it parses as a boolean.
    - Non-admin callers always get `status = 'active'`; admins see every status
      unless they pass a valid `status` filter.
    - Unknown sort keys fall back to created_at, unknown orders to desc.
    """
    filters = filters or {}
    conditions = []

    if is_admin:
        status = str(filters.get("status") or "").strip().lower()
        if status in _STATUSES:
            conditions.append(Design.status == status)
    else:
        conditions.append(Design.status == DesignStatus.ACTIVE.value)

    for name, column in EQUALITY_FILTERS.items():
        value = filters.get(name)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            conditions.append(column == value)

    featured = parse_bool(filters.get("featured"))
    if featured is not None:
        conditions.append(Design.featured == featured)

    q = str(filters.get("q") or "").strip()
    if q:
        pattern = f"%{_escape_like(q)}%"
        conditions.append(or_(*(col.ilike(pattern, escape="\\") for col in SEARCH_COLUMNS)))

    key = sort_by if sort_by in SORT_COLUMNS else DEFAULT_SORT
    direction = str(sort_order or "").lower()
    direction = direction if direction in ("asc", "desc") else DEFAULT_ORDER
    column = SORT_COLUMNS[key]
    if direction == "asc":
        order_by = [column.asc(), Design.id.asc()]
    else:
        order_by = [column.desc(), Design.id.desc()]

    page_num, size = normalize_page(page, per_page, max_page_size)

    return DesignQuery(
        conditions=conditions,
        order_by=order_by,
        sort_by=key,
        sort_order=direction,
        page=page_num,
        limit=size,
    )
