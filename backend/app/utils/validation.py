"""
Validation utilities for query parameters.
"""
from typing import Any
from fastapi import HTTPException

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# Keep binds inside what the drivers accept (offset: int32, filters: int64).
MAX_OFFSET = 2**31 - 1
MAX_FILTER_INT = 2**63 - 1


def parse_pagination(page: Any = None, page_size: Any = None) -> tuple[int, int, int, int]:
    """
    Normalise page/page_size query values.

    Invalid or out of range values fall back to defaults rather than failing.
    Returns (page, page_size, limit, offset).
    """
    try:
        page_n = int(page) if page not in (None, "") else 1
    except (TypeError, ValueError):
        page_n = 1
    if page_n < 1:
        page_n = 1

    try:
        size_n = int(page_size) if page_size not in (None, "") else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        size_n = DEFAULT_PAGE_SIZE
    if size_n <= 0 or size_n > MAX_PAGE_SIZE:
        size_n = DEFAULT_PAGE_SIZE

    if (page_n - 1) * size_n > MAX_OFFSET:
        page_n = 1

    return page_n, size_n, size_n, (page_n - 1) * size_n


def optional_str(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def optional_int(value: Any) -> int | None:
    """Lenient int filter: blank or unparsable means "no filter"."""
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if abs(number) > MAX_FILTER_INT:
        return None
    return number


def optional_bool(value: Any) -> bool | None:
    """Only the literal strings true/false set a boolean filter."""
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def validate_slug(slug: str) -> str:
    """Validate a public candidate slug path parameter."""
    if not slug or not isinstance(slug, str):
        raise HTTPException(status_code=400, detail="Candidate slug is required")

    slug = slug.strip()
    if not slug:
        raise HTTPException(status_code=400, detail="Candidate slug is required")

    if len(slug) > 64:
        raise HTTPException(status_code=400, detail="Candidate slug too long (max 64 characters)")

    return slug
