"""Alphabetic and roman numeral labels for header numbering"""

_ROMAN = [
    (1000, "m"), (900, "cm"), (500, "d"), (400, "cd"),
    (100, "c"), (90, "xc"), (50, "l"), (40, "xl"),
    (10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i"),
]


def to_alpha(n: int, upper: bool = False) -> str:
    """Return a, b, ... z, aa, ab, ... for n = 1, 2, ...; empty for n <= 0."""
    if n <= 0:
        return ""
    label = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        label = chr(ord("a") + rem) + label
    return label.upper() if upper else label


def to_roman(n: int, upper: bool = False) -> str:
    """Return the roman numeral for n (lowercase by default); empty for n <= 0."""
    if n <= 0:
        return ""
    out = []
    for value, symbol in _ROMAN:
        count, n = divmod(n, value)
        out.append(symbol * count)
    label = "".join(out)
    return label.upper() if upper else label
