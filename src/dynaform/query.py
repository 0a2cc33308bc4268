from __future__ import annotations

from typing import Any, Mapping

SORT_ORDERS = ("asc", "desc")
DEFAULT_SORT_ORDER = "desc"


def parse_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def normalize_sort_order(value: Any) -> str:
    order = str(value or "").strip().lower()
    return order if order in SORT_ORDERS else DEFAULT_SORT_ORDER


def parse_page_params(
    query_params: Mapping[str, Any],
    default_limit: int = 5,
    max_limit: int = 100,
) -> tuple[int, int, str]:
    """Read ``page``, ``limit`` and ``sortOrder`` from raw query parameters.

    Anything missing or non-numeric falls back to page 1 and the default
    limit. The page is not range-checked here; the store clamps it against
    the current number of pages.
    """
    page = parse_int(query_params.get("page"))
    if page is None:
        page = 1
    limit = parse_int(query_params.get("limit"))
    if limit is None or limit < 1:
        limit = default_limit
    limit = min(limit, max_limit)
    sort_order = normalize_sort_order(query_params.get("sortOrder"))
    return page, limit, sort_order
