"""Optional clauses: keep [text]{condition} spans whose condition holds"""

import logging
import re
from typing import Any, Callable, Optional

from legalmd.core.utils.paths import MISSING, is_truthy, resolve_path

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Any]

# one level of [nested] brackets is allowed inside the guarded text
CLAUSE_RE = re.compile(r'\[([^\[\]]*(?:\[[^\]]*\][^\[\]]*)*)\]\{([^{}]*)\}')
SPLIT_RE = re.compile(r'''"[^"]*"|'[^']*'|\s+(AND|OR)\s+|(&&|\|\|)''')
COMPARISON_RE = re.compile(r'^([^\s=!<>"\']+)\s*(==|!=|>=|<=|=|>|<)\s*(.*)$', re.DOTALL)
NUMBER_RE = re.compile(r'^-?\d+(\.\d+)?$')


def parse_literal(raw: str) -> Any:
    """Parse the right-hand side of a comparison: quoted string, bool, null, number, or bare word."""
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'":
        return raw[1:-1]
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("null", "none"):
        return None
    if NUMBER_RE.match(raw):
        return float(raw) if "." in raw else int(raw)
    return raw


def _normalize(value: Any) -> str:
    if value is None or value is MISSING:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def loose_equal(left: Any, right: Any) -> bool:
    """Equality that treats 5 == "5" and True == "true" as equal."""
    if left is MISSING:
        return right is None
    if left == right:
        return True
    return _normalize(left) == _normalize(right)


def _to_number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def compare(left: Any, op: str, right: Any) -> bool:
    if op in ("=", "=="):
        return loose_equal(left, right)
    if op == "!=":
        return not loose_equal(left, right)
    a, b = _to_number(left), _to_number(right)
    if a is None or b is None:
        return False
    return {">": a > b, "<": a < b, ">=": a >= b, "<=": a <= b}[op]


def evaluate_leaf(leaf: str, lookup: Lookup) -> bool:
    """Evaluate a bare field reference or a single comparison; malformed leaves are false."""
    leaf = leaf.strip()
    if not leaf:
        return False
    if m := COMPARISON_RE.match(leaf):
        field, op, raw = m.groups()
        if not raw.strip():
            logger.debug(f"Comparison with no right-hand side: {leaf!r}")
            return False
        return compare(lookup(field), op, parse_literal(raw))
    if re.search(r'[=!<>]', leaf):
        logger.debug(f"Malformed condition leaf: {leaf!r}")
        return False
    if leaf.lower() in ("true", "false"):
        return leaf.lower() == "true"
    return is_truthy(lookup(leaf))


def split_condition(condition: str) -> tuple[list[str], list[str]]:
    """Split on AND/OR/&&/|| outside quotes: (leaves, operators)."""
    leaves, ops = [], []
    start = 0
    for m in SPLIT_RE.finditer(condition):
        op = m.group(1) or m.group(2)
        if not op:
            continue
        leaves.append(condition[start:m.start()])
        ops.append("AND" if op in ("AND", "&&") else "OR")
        start = m.end()
    leaves.append(condition[start:])
    return leaves, ops


def evaluate_condition(condition: str, lookup: Lookup) -> bool:
    """Evaluate a condition as a flat left-to-right AND/OR chain with no precedence.

    'a OR b AND c' is (a OR b) AND c. An empty condition is true.
    """
    if not condition.strip():
        return True
    leaves, ops = split_condition(condition)
    result = evaluate_leaf(leaves[0], lookup)
    for op, leaf in zip(ops, leaves[1:]):
        value = evaluate_leaf(leaf, lookup)
        result = (result and value) if op == "AND" else (result or value)
    return result


def process_clauses(content: str, metadata: dict[str, Any], lookup: Optional[Lookup] = None) -> str:
    """Replace each [text]{condition} with text when the condition holds, else remove it."""
    if lookup is None:
        lookup = lambda path: resolve_path(metadata, path)

    def _sub(m: re.Match) -> str:
        return m.group(1) if evaluate_condition(m.group(2), lookup) else ""

    # inner clauses kept verbatim by an outer span are resolved on the next pass
    while True:
        updated = CLAUSE_RE.sub(_sub, content)
        if updated == content:
            return updated
        content = updated
