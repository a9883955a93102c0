import math


def page_params(query_params, default_size=10, max_size=100):
    """Read ``page`` / ``pageSize`` from query params, clamping bad values."""
    try:
        page = int(query_params.get("page", 1))
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(query_params.get("pageSize", query_params.get("page_size", default_size)))
    except (TypeError, ValueError):
        page_size = default_size
    page = max(page, 1)
    page_size = min(max(page_size, 1), max_size)
    return page, page_size


def page_slice(queryset, page, page_size):
    """Offset slice of an ordered queryset; skip = (page - 1) * page_size."""
    start = (page - 1) * page_size
    return queryset[start:start + page_size]


def pagination_envelope(total_items, page, page_size):
    return {
        "currentPage": page,
        "pageSize": page_size,
        "totalItems": total_items,
        "totalPages": math.ceil(total_items / page_size) if page_size else 0,
    }
