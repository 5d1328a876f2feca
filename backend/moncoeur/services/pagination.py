# Overview: Page/limit pagination shared by list endpoints.

from __future__ import annotations

DEFAULT_LIMIT = 20
MAX_LIMIT = 500


def paginate(query, page: int | None, limit: int | None) -> tuple[list, dict]:
    """
    Apply offset/limit to a query.

    Returns (items, {"page", "limit", "total", "totalPages"}).
    """
    limit = min(max(limit or DEFAULT_LIMIT, 1), MAX_LIMIT)
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    total_pages = (total + limit - 1) // limit

    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
    }
