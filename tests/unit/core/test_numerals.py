"""Unit tests for core/utils/numerals.py"""

import pytest

from legalmd.core.utils.numerals import to_alpha, to_roman


@pytest.mark.parametrize("n, expected", [(1, "a"), (3, "c"), (26, "z"), (27, "aa"), (28, "ab"), (52, "az"), (53, "ba")])
def test_to_alpha(n, expected):
    """Counters map to a, b, ... z, aa, ab, ..."""
    assert to_alpha(n) == expected


def test_to_alpha_upper_and_zero():
    """Upper-case variant; non-positive counters render empty."""
    assert to_alpha(2, upper=True) == "B"
    assert to_alpha(0) == ""


@pytest.mark.parametrize("n, expected", [(1, "i"), (4, "iv"), (9, "ix"), (14, "xiv"), (40, "xl"), (1994, "mcmxciv")])
def test_to_roman(n, expected):
    """Subtractive lower-case roman numerals."""
    assert to_roman(n) == expected


def test_to_roman_upper_and_zero():
    assert to_roman(12, upper=True) == "XII"
    assert to_roman(0) == ""
