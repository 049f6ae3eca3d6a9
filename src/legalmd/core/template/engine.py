"""Template rendering: block expansion and {{ expr }} substitution

Rendering runs in two passes. expand_blocks() expands {{#each}}, {{#if}},
{{#unless}} and legacy {{#name}} sections, evaluating the expressions inside
block bodies against the block's scope and leaving top-level expressions
alone. render() then substitutes the remaining top-level expressions
against the document metadata.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Union

from legalmd.core.clauses import evaluate_condition
from legalmd.core.template.ast import Call, Expr, Literal, Path, Ternary
from legalmd.core.template.helpers import HELPERS
from legalmd.core.template.parser import (
    BLOCK_HELPERS,
    QUOTED_RE,
    SyntaxMode,
    parse_expression,
    parse_path,
)
from legalmd.core.template.scope import Scope
from legalmd.core.tracking import COMPUTED, MISSING as MISSING_FIELD, RESOLVED, mark
from legalmd.core.utils.deadline import Deadline
from legalmd.core.utils.paths import MISSING, is_truthy, to_text
from legalmd.errors import ExpressionSyntaxError, LegalMarkdownError

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r'\{\{(.*?)\}\}', re.DOTALL)
# an {{#if}} argument written as a clause condition rather than an expression
CONDITION_RE = re.compile(r'\s(?:AND|OR)\s|&&|\|\||==|!=|>=|<=|(?<![=!<>])=(?!=)|[<>]')


@dataclass
class Text:
    text: str


@dataclass
class Tag:
    raw:   str
    inner: str


@dataclass
class Block:
    kind:      str                  # each | if | unless | section
    arg:       str
    open_raw:  str
    body:      list["Node"] = field(default_factory=list)
    inverse:   Optional[list["Node"]] = None
    else_raw:  str = ""
    close_raw: str = ""


Node = Union[Text, Tag, Block]


class _Unresolved(Exception):
    """The token cannot be evaluated and renders as written."""


class _Cycle(Exception):
    """A value refers back to a key that is already being resolved."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key


def _tag_kind(inner: str) -> Optional[str]:
    if inner.startswith("#") and inner[1:].strip():
        return "open"
    if inner in ("else", "^"):
        return "else"
    if inner.startswith("/"):
        return "close"
    return None


def _standalone(text: str, start: int, end: int, floor: int) -> tuple[int, int]:
    """Widen a block tag's span to its whole line when nothing else is on that line."""
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = stop = len(text)
    else:
        stop = line_end + 1
    if line_start >= floor and not text[line_start:start].strip() and not text[end:line_end].strip():
        return line_start, stop
    return start, end


def _closes(block: Block, name: str) -> bool:
    return name == (block.arg if block.kind == "section" else block.kind)


def _as_text(block: Block) -> list[Node]:
    nodes: list[Node] = [Text(block.open_raw), *block.body]
    if block.inverse is not None:
        nodes += [Text(block.else_raw), *block.inverse]
    return nodes


def parse_nodes(text: str) -> list[Node]:
    """Split text into literal text, expression tags and nested blocks.

    Unclosed blocks and stray {{else}} or closing tags stay in the output as
    literal text.
    """
    root: list[Node] = []
    stack: list[Block] = []

    def _target() -> list[Node]:
        if not stack:
            return root
        top = stack[-1]
        return top.inverse if top.inverse is not None else top.body

    pos = 0
    for m in TAG_RE.finditer(text):
        inner = m.group(1).strip()
        kind = _tag_kind(inner)
        if kind is None:
            _target().extend([Text(text[pos:m.start()]), Tag(m.group(0), inner)])
            pos = m.end()
            continue

        start, end = _standalone(text, m.start(), m.end(), pos)
        _target().append(Text(text[pos:start]))
        raw, pos = text[start:end], end
        if kind == "open":
            name, _, arg = inner[1:].strip().partition(" ")
            if name in BLOCK_HELPERS:
                stack.append(Block(name, arg.strip(), raw))
            else:
                stack.append(Block("section", name, raw))
        elif kind == "else":
            if stack and stack[-1].inverse is None:
                stack[-1].inverse, stack[-1].else_raw = [], raw
            else:
                logger.warning("Stray {{else}} kept as text")
                _target().append(Text(raw))
        elif stack and _closes(stack[-1], inner[1:].strip()):
            block = stack.pop()
            block.close_raw = raw
            _target().append(block)
        else:
            logger.warning(f"Unmatched closing tag {m.group(0)} kept as text")
            _target().append(Text(raw))
    _target().append(Text(text[pos:]))

    while stack:
        block = stack.pop()
        logger.warning(f"Unclosed block {block.open_raw.strip()} kept as text")
        _target().extend(_as_text(block))
    return root


def _key(path: Path) -> str:
    return ".".join(path.parts) or path.raw


class TemplateEngine:
    """Evaluates template tokens for one document.

    Values that themselves contain {{ }} tokens are rendered recursively; the
    set of keys being resolved is passed down explicitly and a key met twice
    renders its outermost token unresolved.
    """

    def __init__(
        self,
        mode: SyntaxMode = SyntaxMode.NEUTRAL,
        *,
        tracking: bool = False,
        today: Optional[date] = None,
        timeout: float = 5.0,
    ):
        self.mode = mode
        self.tracking = tracking
        self.today = today
        self.timeout = timeout
        self._deadline = Deadline(timeout, "templates")

    def _root(self, metadata: dict[str, Any]) -> Scope:
        return Scope.root(metadata, {"@today": self.today} if self.today else None)

    def expand_blocks(self, text: str, metadata: dict[str, Any]) -> str:
        """Expand block helpers; expressions outside blocks are left as written."""
        self._deadline = Deadline(self.timeout, "loops")
        return self._render_nodes(parse_nodes(text), self._root(metadata), top=True)

    def render(self, text: str, metadata: dict[str, Any]) -> str:
        """Substitute {{ expr }} tokens; block tags are left as written."""
        self._deadline = Deadline(self.timeout, "templates")
        return self._render_expressions(text, self._root(metadata), frozenset())

    # --- blocks ---

    def _render_nodes(self, nodes: list[Node], scope: Scope, top: bool = False) -> str:
        out: list[str] = []
        for node in nodes:
            self._deadline.check()
            if isinstance(node, Text):
                out.append(node.text)
            elif isinstance(node, Tag):
                out.append(node.raw if top else self._render_tag(node.raw, node.inner, scope, frozenset()))
            else:
                out.append(self._render_block(node, scope))
        return "".join(out)

    def _render_block(self, block: Block, scope: Scope) -> str:
        if block.kind == "each":
            return self._each(self._value(block.arg, scope), block, scope)
        if block.kind in ("if", "unless"):
            passed = self._condition(block.arg, scope)
            if block.kind == "unless":
                passed = not passed
            return self._branch(block, scope, passed)

        value = scope.lookup(parse_path(block.arg))
        if isinstance(value, (list, tuple)):
            return self._each(value, block, scope)
        if isinstance(value, dict) and value:
            return self._render_nodes(block.body, scope.push(value))
        return self._branch(block, scope, is_truthy(value))

    def _branch(self, block: Block, scope: Scope, passed: bool) -> str:
        if passed:
            return self._render_nodes(block.body, scope)
        return self._render_nodes(block.inverse, scope) if block.inverse is not None else ""

    def _each(self, value: Any, block: Block, scope: Scope) -> str:
        if isinstance(value, dict):
            items = list(value.items())
        elif isinstance(value, (list, tuple)):
            items = [(None, item) for item in value]
        else:
            items = []
        if not items:
            return self._render_nodes(block.inverse, scope) if block.inverse is not None else ""

        parts = []
        last = len(items) - 1
        for i, (key, item) in enumerate(items):
            names = {"@index": i, "@number": i + 1, "@first": i == 0, "@last": i == last}
            if key is not None:
                names["@key"] = key
            parts.append(self._render_nodes(block.body, scope.push(item, names)))
        return "".join(parts)

    def _condition(self, arg: str, scope: Scope) -> bool:
        bare = QUOTED_RE.sub('""', arg)
        if CONDITION_RE.search(bare) and "(" not in bare:
            return evaluate_condition(arg, lambda p: scope.lookup(parse_path(p)))
        return is_truthy(self._value(arg, scope))

    def _value(self, arg: str, scope: Scope) -> Any:
        """Evaluate a block argument; failures count as missing."""
        try:
            return self._evaluate(self._parse(arg), scope, frozenset())
        except (ExpressionSyntaxError, _Unresolved, _Cycle) as e:
            logger.warning(f"Could not evaluate block argument {arg!r}: {e}")
            return MISSING

    # --- expressions ---

    def _parse(self, inner: str) -> Expr:
        return parse_expression(inner, space_calls=self.mode is not SyntaxMode.LEGACY)

    def _render_expressions(self, text: str, scope: Scope, resolving: frozenset[str]) -> str:
        def _sub(m: re.Match) -> str:
            inner = m.group(1).strip()
            if _tag_kind(inner) is not None:
                return m.group(0)
            return self._render_tag(m.group(0), inner, scope, resolving)

        return TAG_RE.sub(_sub, text)

    def _render_tag(self, raw: str, inner: str, scope: Scope, resolving: frozenset[str]) -> str:
        """Render one token; anything that cannot be evaluated renders as written."""
        if inner.startswith("!"):
            return ""
        try:
            expr = self._parse(inner)
        except ExpressionSyntaxError as e:
            logger.warning(f"Leaving {raw} unresolved: {e}")
            return raw

        try:
            value = self._evaluate(expr, scope, resolving)
        except _Unresolved:
            value = MISSING
        except _Cycle as cycle:
            outermost = isinstance(expr, Path) and _key(expr) == cycle.key and cycle.key not in resolving
            if resolving and not outermost:
                raise
            logger.warning(f"Circular reference through {cycle.key!r}; leaving {raw} unresolved")
            return raw

        field_name = _key(expr) if isinstance(expr, Path) else inner
        text = to_text(value)
        if text is None:
            return mark(MISSING_FIELD, field_name, f"[[{inner}]]") if self.tracking else raw
        if self.tracking:
            return mark(RESOLVED if isinstance(expr, Path) else COMPUTED, field_name, text)
        return text

    def _evaluate(self, expr: Expr, scope: Scope, resolving: frozenset[str]) -> Any:
        self._deadline.check()
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Path):
            value = scope.lookup(expr)
            if isinstance(value, str) and "{{" in value:
                key = _key(expr)
                if key in resolving:
                    raise _Cycle(key)
                value = self._render_expressions(value, scope, resolving | {key})
            return value
        if isinstance(expr, Ternary):
            test = self._evaluate(expr.test, scope, resolving)
            return self._evaluate(expr.then if is_truthy(test) else expr.otherwise, scope, resolving)
        if isinstance(expr, Call):
            fn = HELPERS.get(expr.name)
            if fn is None:
                logger.warning(f"Unknown helper {expr.name!r}")
                raise _Unresolved(expr.name)
            args = [self._evaluate(arg, scope, resolving) for arg in expr.args]
            args = [None if a is MISSING else a for a in args]
            try:
                return fn(*args)
            except LegalMarkdownError:
                raise
            except Exception as e:
                logger.warning(f"Helper {expr.name!r} failed: {e}")
                raise _Unresolved(expr.name) from e
        raise ExpressionSyntaxError(f"Unsupported expression {expr!r}")
