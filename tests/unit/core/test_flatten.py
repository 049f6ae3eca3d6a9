"""Unit tests for core/utils/flatten.py"""

import pytest

from legalmd.core.utils.deadline import Deadline
from legalmd.core.utils.flatten import CIRCULAR, flatten, unflatten
from legalmd.errors import BudgetExceededError


def test_flatten_nested():
    """Lists and empty mappings are leaves."""
    data = {"a": {"b": 1, "c": [1, 2]}, "d": {}}
    assert flatten(data) == {"a.b": 1, "a.c": [1, 2], "d": {}}


@pytest.mark.parametrize("data", [
    {},
    {"a": 1},
    {"client": {"name": "Acme", "address": {"city": "Springfield"}}, "tags": ["x"]},
    {"empty": {}, "nested": {"inner": {}}},
    {"rates": {2023: 10, 2024: 12}, True: "yes"},
])
def test_unflatten_restores(data):
    assert unflatten(flatten(data)) == data


def test_flatten_remembers_original_keys():
    flat = flatten({"rates": {2024: 12}})
    assert flat == {"rates.2024": 12}
    assert flat.paths == {"rates.2024": ("rates", 2024)}


def test_unflatten_empty_mapping_does_not_erase_children():
    assert unflatten({"a.b": 1, "a": {}}) == {"a": {"b": 1}}


def test_flatten_circular_reference():
    data = {"a": 1}
    data["self"] = data
    assert flatten(data) == {"a": 1, "self": CIRCULAR}


def test_flatten_respects_deadline():
    with pytest.raises(BudgetExceededError) as exc:
        flatten({"a": 1}, Deadline(0, "merge"))
    assert exc.value.stage == "merge"
