"""Header numbering: turn l./ll./l2. markers into Article/Section labels"""

import logging
import re
from typing import Any, Iterator, NamedTuple, Optional

from pydantic import BaseModel

from legalmd.core.utils.numerals import to_alpha, to_roman
from legalmd.core.utils.paths import is_truthy

logger = logging.getLogger(__name__)

MAX_LEVEL = 5

# l. / ll. ... or l1. / l2. ...; the marker must be followed by '.', whitespace and text
HEADER_RE = re.compile(r'^(?:(l+)|l(\d+))\.[ \t]+(\S.*?)[ \t]*$', re.MULTILINE)
SECTION_KEY_RE = re.compile(r'[ \t]*\|([\w.-]+)\|$')
PLACEHOLDER_RE = re.compile(r'%(?:0(\d+))?([ncrRAstfi])')
HIERARCHICAL = {"s", "t", "f", "i"}

_LEVEL_NAMES = ["one", "two", "three", "four", "five"]


class HeaderFormats(BaseModel):
    level_one:    str = "Article %n."
    level_two:    str = "Section %n."
    level_three:  str = "(%n)"
    level_four:   str = "(%n%c)"
    level_five:   str = "(%n%c%r)"
    level_indent: float = 1.5

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any]) -> "HeaderFormats":
        """Read level-one..level-five and level-indent, ignoring unusable values."""
        data: dict[str, Any] = {}
        for number, name in enumerate(_LEVEL_NAMES, start=1):
            for key in (f"level-{name}", f"level_{name}", f"level-{number}"):
                value = metadata.get(key)
                if isinstance(value, str):
                    data[f"level_{name}"] = value
                    break
        indent = metadata.get("level-indent", metadata.get("level_indent"))
        if indent is not None:
            try:
                data["level_indent"] = max(0.0, float(indent))
            except (TypeError, ValueError):
                logger.warning(f"Ignoring non-numeric level-indent {indent!r}")
        return cls(**data)

    def template(self, level: int) -> str:
        return getattr(self, f"level_{_LEVEL_NAMES[level - 1]}")


class HeaderNumbering:
    """Per-level counters; advancing a level zeroes deeper levels unless reset is off."""

    def __init__(self, reset: bool = True):
        self.reset = reset
        self.counters = [0] * MAX_LEVEL

    def advance(self, level: int) -> list[int]:
        if not 1 <= level <= MAX_LEVEL:
            raise ValueError(f"Header level must be 1..{MAX_LEVEL}, got {level}")
        if self.reset:
            for deeper in range(level, MAX_LEVEL):
                self.counters[deeper] = 0
        self.counters[level - 1] += 1
        return list(self.counters)


def render_label(template: str, level: int, counters: list[int]) -> str:
    """Substitute %n, %c, %r (and %A, %R, %0Nn, %s/%t/%f/%i) in a level template.

    At level 4 a template using %c numbers as <level 3><alpha level 4>; at
    level 5 a template using %r numbers as <level 3><alpha level 4><roman
    level 5>. Templates using %s/%t/%f/%i print the full 1.2.3 path.
    """
    used = {m.group(2) for m in PLACEHOLDER_RE.finditer(template)}
    current = counters[level - 1]
    n, alpha, roman = current, current, current
    if used & HIERARCHICAL:
        n = counters[0]
    elif level == 4 and "c" in used:
        n, alpha = counters[2], counters[3]
    elif level == 5 and "r" in used:
        n, alpha, roman = counters[2], counters[3], counters[4]

    def _sub(m: re.Match) -> str:
        width, code = m.group(1), m.group(2)
        if code == "n":
            return str(n).zfill(int(width)) if width else str(n)
        if code in ("c", "A"):
            return to_alpha(alpha, upper=code == "A")
        if code in ("r", "R"):
            return to_roman(roman, upper=code == "R")
        return str(counters["stfi".index(code) + 1])

    return PLACEHOLDER_RE.sub(_sub, template)


class HeaderLine(NamedTuple):
    level: int
    label: str
    text:  str                  # header text with any trailing |key| removed
    key:   Optional[str]        # section reference key defined by the header
    span:  tuple[int, int]


def _level(m: re.Match) -> int:
    return len(m.group(1)) if m.group(1) else int(m.group(2))


def scan_headers(content: str, formats: HeaderFormats, reset: bool = True) -> Iterator[HeaderLine]:
    """Yield numbered headers in document order; levels above 5 are skipped."""
    numbering = HeaderNumbering(reset=reset)
    for m in HEADER_RE.finditer(content):
        level = _level(m)
        if not 1 <= level <= MAX_LEVEL:
            continue
        counters = numbering.advance(level)
        text = m.group(3)
        key = None
        if km := SECTION_KEY_RE.search(text):
            key, text = km.group(1), text[:km.start()]
        yield HeaderLine(level, render_label(formats.template(level), level, counters), text, key, m.span())


def process_headers(
    content: str,
    metadata: dict[str, Any],
    *,
    no_reset: bool = False,
    no_indent: bool = False,
) -> str:
    """Replace header markers with indented labels; metadata no-reset/no-indent also apply."""
    formats = HeaderFormats.from_metadata(metadata)
    reset = not (no_reset or is_truthy(metadata.get("no-reset")))
    indent_off = no_indent or is_truthy(metadata.get("no-indent"))

    parts: list[str] = []
    last = 0
    for header in scan_headers(content, formats, reset=reset):
        start, end = header.span
        indent = "" if indent_off else " " * int((header.level - 1) * formats.level_indent * 2)
        label = f"{header.label} {header.text}" if header.label else header.text
        parts.append(content[last:start])
        parts.append(indent + label)
        last = end
    parts.append(content[last:])
    return "".join(parts)
