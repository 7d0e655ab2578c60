from __future__ import annotations

import math
from typing import Any, Mapping

from printvault.domain.models.category import is_category
from printvault.domain.models.query import SORT_NEWEST, SORT_ORDERS, ResourceFilter, ResourceQuery

DEFAULT_PAGE_LIMIT = 12
MAX_PAGE_LIMIT = 100
# Largest OFFSET sqlite can bind (signed 64-bit).
MAX_SKIP = 2**63 - 1

_TRUE_VALUES = {"true", "1", "yes", "on"}


def coerce_int(value: Any, default: int) -> int:
    """Best-effort integer coercion; anything unparseable yields ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def coerce_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    return text in _TRUE_VALUES


def clamp_limit(value: Any, *, default: int, maximum: int) -> int:
    return min(max(1, coerce_int(value, default)), maximum)


def clamp_page(value: Any, limit: int) -> int:
    """Keep ``(page - 1) * limit`` inside the range sqlite can bind."""
    return min(max(1, coerce_int(value, 1)), MAX_SKIP // max(1, limit))


def _opt_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_resource_query(
    params: Mapping[str, Any],
    *,
    default_limit: int = DEFAULT_PAGE_LIMIT,
    max_limit: int = MAX_PAGE_LIMIT,
) -> ResourceQuery:
    """Normalise untrusted listing parameters into a bounded query.

    Never raises: malformed values fall back to defaults or are clamped,
    so the public listing always returns some valid page.
    """
    limit = clamp_limit(params.get("limit"), default=default_limit, maximum=max_limit)
    page = clamp_page(params.get("page"), limit)

    category = _opt_text(params.get("category"))
    if not is_category(category):
        category = None

    tag = _opt_text(params.get("tag"))
    sort = _opt_text(params.get("sort")) or SORT_NEWEST
    if sort not in SORT_ORDERS:
        sort = SORT_NEWEST

    return ResourceQuery(
        page=page,
        limit=limit,
        filter=ResourceFilter(
            category=category,
            tag=tag.lower() if tag else None,
            featured=coerce_bool(params.get("featured")),
            text=_opt_text(params.get("q")),
        ),
        sort=sort,
    )


def resolve_admin_query(
    params: Mapping[str, Any],
    *,
    default_limit: int = 20,
    max_limit: int = MAX_PAGE_LIMIT,
) -> ResourceQuery:
    limit = clamp_limit(params.get("limit"), default=default_limit, maximum=max_limit)
    page = clamp_page(params.get("page"), limit)
    category = _opt_text(params.get("category"))
    return ResourceQuery(
        page=page,
        limit=limit,
        filter=ResourceFilter(
            category=category if is_category(category) else None,
            search=_opt_text(params.get("q")),
        ),
        sort=SORT_NEWEST,
    )
