"""Unit tests for core/tracking.py"""

from legalmd.core.tracking import COMPUTED, MISSING, RESOLVED, annotate, has_markers, mark, strip_markers


def test_annotate_resolved():
    content, report = annotate("Hello " + mark(RESOLVED, "name", "Acme"))
    assert content == 'Hello <span class="legal-field imported-value" data-field="name">Acme</span>'
    assert report.filled == 1


def test_annotate_statuses():
    text = mark(COMPUTED, "total", "$5.00") + mark(MISSING, "x", "[[x]]")
    content, report = annotate(text)
    assert '<span class="legal-field highlight" data-field="total">$5.00</span>' in content
    assert '<span class="legal-field missing-value" data-field="x">[[x]]</span>' in content
    assert (report.total, report.filled, report.logic, report.empty) == (2, 0, 1, 1)


def test_annotate_nested_markers():
    """Inner markers become spans first; the outer span wraps them."""
    text = mark(COMPUTED, "a", "x " + mark(RESOLVED, "b", "y"))
    content, _ = annotate(text)
    assert content == (
        '<span class="legal-field highlight" data-field="a">x '
        '<span class="legal-field imported-value" data-field="b">y</span></span>'
    )


def test_annotate_counts_occurrences():
    _, report = annotate(mark(RESOLVED, "n", "1") + mark(RESOLVED, "n", "1"))
    assert report.fields["n"].occurrences == 2


def test_annotate_escapes_field_names():
    content, _ = annotate(mark(RESOLVED, 'a"b', "v"))
    assert 'data-field="a&quot;b"' in content


def test_strip_markers():
    text = "A " + mark(COMPUTED, "a", "x " + mark(RESOLVED, "b", "y"))
    assert has_markers(text)
    assert strip_markers(text) == "A x y"
    assert not has_markers(strip_markers(text))
