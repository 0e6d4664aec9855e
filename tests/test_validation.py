"""
Direct tests for the query parameter helpers (no HTTP involved).
"""
import pytest
from fastapi import HTTPException

from backend.app.utils.validation import (
    optional_bool,
    optional_int,
    optional_str,
    parse_pagination,
    validate_slug,
)


@pytest.mark.parametrize(
    "page, page_size, expected",
    [
        (None, None, (1, 20, 20, 0)),
        ("3", "10", (3, 10, 10, 20)),
        ("0", "10", (1, 10, 10, 0)),
        ("-4", "5", (1, 5, 5, 0)),
        ("abc", "xyz", (1, 20, 20, 0)),
        ("2", "0", (2, 20, 20, 20)),
        ("2", "101", (2, 20, 20, 20)),
        ("1", "100", (1, 100, 100, 0)),
        ("107374183", "20", (107374183, 20, 20, 2147483640)),
        ("107374184", "20", (1, 20, 20, 0)),
        ("99999999999999999999", "20", (1, 20, 20, 0)),
    ],
)
def test_parse_pagination(page, page_size, expected):
    assert parse_pagination(page, page_size) == expected


def test_optional_str():
    assert optional_str(None) is None
    assert optional_str("   ") is None
    assert optional_str("  go ") == "go"


def test_optional_int():
    assert optional_int(None) is None
    assert optional_int("") is None
    assert optional_int("12") == 12
    assert optional_int("twelve") is None
    assert optional_int("-7") == -7
    assert optional_int("99999999999999999999") is None
    assert optional_int(str(2**63 - 1)) == 2**63 - 1


def test_optional_bool_accepts_only_literals():
    assert optional_bool("true") is True
    assert optional_bool("false") is False
    assert optional_bool("True") is None
    assert optional_bool("1") is None
    assert optional_bool(None) is None


def test_validate_slug():
    assert validate_slug("  anna-k ") == "anna-k"

    with pytest.raises(HTTPException) as exc:
        validate_slug("   ")
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        validate_slug("a" * 65)
    assert "too long" in exc.value.detail
