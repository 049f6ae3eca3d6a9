"""Unit tests for core/template/scope.py"""

from legalmd.core.template.parser import parse_path
from legalmd.core.template.scope import Scope
from legalmd.core.utils.paths import MISSING


def test_root_lookup():
    scope = Scope.root({"client": {"name": "Acme"}}, {"@today": "2024-01-15"})
    assert scope.lookup(parse_path("client.name")) == "Acme"
    assert scope.lookup(parse_path("@today")) == "2024-01-15"


def test_loop_frames_and_parent_access():
    scope = Scope.root({"currency": "EUR", "name": "Doc"}).push({"name": "Item"}, {"@index": 0})
    assert scope.lookup(parse_path("name")) == "Item"
    assert scope.lookup(parse_path("../name")) == "Doc"
    assert scope.lookup(parse_path("currency")) == "EUR"
    assert scope.lookup(parse_path("@index")) == 0
    assert scope.lookup(parse_path("this")) == {"name": "Item"}


def test_root_alias_and_out_of_range_parent():
    scope = Scope.root({"title": "T"}).push({"title": "inner"})
    assert scope.lookup(parse_path("@root.title")) == "T"
    assert scope.lookup(parse_path("../../title")) is MISSING


def test_parent_lookup_does_not_fall_back():
    scope = Scope.root({"a": 1}).push({}).push({})
    assert scope.lookup(parse_path("../a")) is MISSING
    assert scope.lookup(parse_path("a")) == 1
