# core/utils.py

import math
from datetime import datetime, timezone
from typing import Optional, Tuple

from core.config import settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def envelope(**payload) -> dict:
    """Success body: the entity/entities plus a server timestamp."""
    return {**payload, "timestamp": utc_now_iso()}


def sanitize(data: dict) -> dict:
    """
    Sanitize dictionary data before it is written:
    - Empty strings → None
    - Preserve booleans, None values
    - Strip string whitespace
    - Enum members → their wire value
    """
    clean = {}

    for k, v in data.items():
        # Preserve None
        if v is None:
            clean[k] = None
            continue

        # Preserve booleans
        if isinstance(v, bool):
            clean[k] = v
            continue

        # Enums (str subclasses) → plain value
        if isinstance(v, str) and hasattr(v, "value"):
            clean[k] = v.value
            continue

        # Empty string → None
        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped if stripped else None
            continue

        # date / datetime → ISO strings for PostgREST
        if hasattr(v, "isoformat"):
            clean[k] = v.isoformat()
            continue

        # For other types, keep as-is
        clean[k] = v

    return clean


# -----------------------------------------------------
# Pagination
# -----------------------------------------------------
def page_window(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int, int]:
    """
    Clamp page/limit and return (page, limit, start, end) for .range(start, end).
    """
    page = max(page or 1, 1)
    limit = limit or settings.DEFAULT_PAGE_SIZE
    limit = max(1, min(limit, settings.MAX_PAGE_SIZE))
    start = (page - 1) * limit
    return page, limit, start, start + limit - 1


def build_pagination(page: int, limit: int, total: Optional[int]) -> dict:
    total = total or 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
