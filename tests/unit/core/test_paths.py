"""Unit tests for core/utils/paths.py"""

from datetime import date

import pytest

from legalmd.core.utils.paths import MISSING, is_truthy, resolve_path, split_path, to_text


def test_split_path_with_indexes():
    assert split_path("items[0].name") == ["items", "0", "name"]


def test_resolve_path_nested_and_lists():
    """Dotted paths walk mappings and list indexes; length reads list size."""
    data = {"client": {"name": "Acme"}, "items": [{"sku": "a"}, {"sku": "b"}]}
    assert resolve_path(data, "client.name") == "Acme"
    assert resolve_path(data, "items.1.sku") == "b"
    assert resolve_path(data, "items[0].sku") == "a"
    assert resolve_path(data, "items.length") == 2


def test_resolve_path_integer_keys():
    data = {"rates": {2023: 10, 2024: 12}}
    assert resolve_path(data, "rates.2024") == 12
    assert resolve_path(data, "rates.2025") is MISSING


def test_resolve_path_missing_is_distinct_from_none():
    """A present None value is not MISSING."""
    data = {"a": None}
    assert resolve_path(data, "a") is None
    assert resolve_path(data, "b") is MISSING
    assert resolve_path(data, "a.b") is MISSING


@pytest.mark.parametrize("value, expected", [
    (True, True), (False, False), (1, True), (0, False), (0.0, False),
    ("", False), ("x", True), (None, False), (MISSING, False),
    ([], True), ({}, True), ([1], True),
])
def test_is_truthy(value, expected):
    """Only None, missing, false, zero and the empty string are false."""
    assert is_truthy(value) is expected


def test_to_text():
    """Inline renderings of scalar, date and list values."""
    assert to_text(True) == "true"
    assert to_text(1500.0) == "1500"
    assert to_text(2.5) == "2.5"
    assert to_text(date(2024, 1, 1)) == "2024-01-01"
    assert to_text(["A", "B"]) == "A, B"
    assert to_text(None) is None
    assert to_text({"a": 1}) is None
