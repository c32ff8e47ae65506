import math

from sipit.exceptions import ValidationFailed

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def paginate(qs, page: int = 1, limit: int = DEFAULT_LIMIT):
    """ページ番号ベースの切り出し。(items, total) を返す。"""
    total = qs.count()
    offset = (page - 1) * limit
    return list(qs[offset : offset + limit]), total


def _invalid(field: str, max_value: int | None = None) -> ValidationFailed:
    rule = f"between 1 and {max_value}" if max_value else "a positive integer"
    return ValidationFailed(f"{field} must be {rule}", details={"field": field})


def page_params(query_params, default_limit: int = DEFAULT_LIMIT, max_limit: int = MAX_LIMIT) -> tuple[int, int]:
    """page / limit クエリを検証して返す。不正値は ValidationFailed。"""
    try:
        page = int(query_params.get("page", 1))
    except (TypeError, ValueError):
        raise _invalid("page")
    try:
        limit = int(query_params.get("limit", default_limit))
    except (TypeError, ValueError):
        raise _invalid("limit", max_limit)
    if page < 1:
        raise _invalid("page")
    if limit < 1 or limit > max_limit:
        raise _invalid("limit", max_limit)
    return page, limit


def page_payload(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
