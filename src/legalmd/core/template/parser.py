"""Expression parsing and per-document syntax detection for {{ }} tokens

Two call notations are understood: modern space-separated calls
(``formatDate date "legal"``, with ``(helper ...)`` subexpressions) and
legacy parenthesis calls (``formatDate(date, "legal")``) with infix
arithmetic. Both parse to the same Literal/Path/Call/Ternary tree.
"""

import enum
import re
from typing import NamedTuple, Optional

from legalmd.core.template.ast import Call, Expr, Literal, Path, Ternary
from legalmd.core.utils.paths import split_path
from legalmd.errors import ExpressionSyntaxError, TemplateSyntaxError

IDENT = r'[A-Za-z_$][\w$]*(?:-[A-Za-z_$][\w$]*)*'
SEGMENT = rf'(?:{IDENT}|\d+)'

TOKEN_RE = re.compile(rf'''
    (?P<ws>\s+)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<path>(?:\.\./)*(?:@?{IDENT}|\.)(?:\.{SEGMENT}|\[\d+\])*)
  | (?P<op>==|!=|>=|<=|&&|\|\||[-+*/?:(),!<>=])
''', re.VERBOSE)

NAME_RE = re.compile(rf'^{IDENT}$')
KEYWORDS = {"true": True, "false": False, "null": None, "undefined": None}
COMPARISONS = {"==": "eq", "=": "eq", "!=": "ne", ">": "gt", "<": "lt", ">=": "gte", "<=": "lte"}
ARITHMETIC = {"+": "add", "-": "subtract", "*": "multiply", "/": "divide"}


class Token(NamedTuple):
    kind:   str
    text:   str
    spaced: bool        # preceded by whitespace


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    pos, spaced = 0, False
    while pos < len(text):
        m = TOKEN_RE.match(text, pos)
        if not m:
            raise ExpressionSyntaxError(f"Unexpected character {text[pos]!r}", snippet=text)
        kind = m.lastgroup
        if kind == "ws":
            spaced = True
        else:
            tok = Token(kind, m.group(), spaced)
            prev = tokens[-1] if tokens else None
            # -5 is a number when it cannot be a binary minus
            if (kind == "number" and not spaced and prev and prev.text == "-"
                    and (len(tokens) == 1 or prev.spaced or tokens[-2].kind == "op" and tokens[-2].text != ")")):
                tokens[-1] = Token("number", "-" + tok.text, prev.spaced)
            else:
                tokens.append(tok)
            spaced = False
        pos = m.end()
    return tokens


def parse_path(raw: str) -> Path:
    """Parse '../a.b[0]', 'this', '.', '@index' into a Path."""
    depth = 0
    rest = raw
    while rest.startswith("../"):
        depth += 1
        rest = rest[3:]
    if rest in ("this", "."):
        parts: tuple[str, ...] = ()
    elif rest.startswith("this."):
        parts = tuple(split_path(rest[5:]))
    else:
        parts = tuple(split_path(rest))
    return Path(parts=parts, depth=depth, raw=raw)


def _unquote(text: str) -> str:
    return re.sub(r'\\(.)', r'\1', text[1:-1])


def _is_string(expr: Expr) -> bool:
    return (isinstance(expr, Literal) and isinstance(expr.value, str)) or (
        isinstance(expr, Call) and expr.name == "concat")


class _Parser:
    def __init__(self, text: str, space_calls: bool = True):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0
        self.space_calls = space_calls

    def _peek(self, offset: int = 0) -> Optional[Token]:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else None

    def _at(self, *texts: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.kind == "op" and tok.text in texts

    def _next(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ExpressionSyntaxError("Unexpected end of expression", snippet=self.text)
        self.pos += 1
        return tok

    def _expect(self, text: str) -> None:
        tok = self._next()
        if tok.text != text:
            raise ExpressionSyntaxError(f"Expected {text!r}, found {tok.text!r}", snippet=self.text)

    def parse(self) -> Expr:
        if not self.tokens:
            raise ExpressionSyntaxError("Empty expression", snippet=self.text)
        expr = self._ternary()
        if self._peek() is not None:
            raise ExpressionSyntaxError(f"Unexpected {self._peek().text!r}", snippet=self.text)
        return expr

    def _ternary(self) -> Expr:
        test = self._or()
        if self._at("?"):
            self._next()
            then = self._ternary()
            self._expect(":")
            return Ternary(test, then, self._ternary())
        return test

    def _or(self) -> Expr:
        left = self._and()
        while self._at("||"):
            self._next()
            left = Call("or", (left, self._and()))
        return left

    def _and(self) -> Expr:
        left = self._comparison()
        while self._at("&&"):
            self._next()
            left = Call("and", (left, self._comparison()))
        return left

    def _comparison(self) -> Expr:
        left = self._additive()
        if self._at(*COMPARISONS):
            op = self._next().text
            return Call(COMPARISONS[op], (left, self._additive()))
        return left

    def _additive(self) -> Expr:
        left = self._term()
        while self._at("+", "-"):
            op = self._next().text
            right = self._term()
            name = "concat" if op == "+" and (_is_string(left) or _is_string(right)) else ARITHMETIC[op]
            left = Call(name, (left, right))
        return left

    def _term(self) -> Expr:
        left = self._unary()
        while self._at("*", "/"):
            op = self._next().text
            left = Call(ARITHMETIC[op], (left, self._unary()))
        return left

    def _unary(self) -> Expr:
        if self._at("!"):
            self._next()
            return Call("not", (self._unary(),))
        return self._call()

    def _starts_primary(self, tok: Optional[Token]) -> bool:
        if tok is None:
            return False
        return tok.kind in ("string", "number", "path") or (tok.kind == "op" and tok.text == "(")

    def _call(self) -> Expr:
        tok, after = self._peek(), self._peek(1)
        if tok is not None and tok.kind == "path" and NAME_RE.match(tok.text) and tok.text not in KEYWORDS:
            if after is not None and after.text == "(" and not after.spaced:
                self.pos += 2
                args: list[Expr] = []
                if not self._at(")"):
                    args.append(self._ternary())
                    while self._at(","):
                        self._next()
                        args.append(self._ternary())
                self._expect(")")
                return Call(tok.text, tuple(args))
            if self.space_calls and after is not None and after.spaced and self._starts_primary(after):
                self.pos += 1
                args = []
                while self._starts_primary(self._peek()):
                    args.append(self._primary())
                return Call(tok.text, tuple(args))
        return self._primary()

    def _primary(self) -> Expr:
        tok = self._next()
        if tok.kind == "string":
            return Literal(_unquote(tok.text))
        if tok.kind == "number":
            return Literal(float(tok.text) if "." in tok.text else int(tok.text))
        if tok.kind == "path":
            if tok.text in KEYWORDS:
                return Literal(KEYWORDS[tok.text])
            return parse_path(tok.text)
        if tok.text == "(":
            expr = self._ternary()
            self._expect(")")
            return expr
        raise ExpressionSyntaxError(f"Unexpected {tok.text!r}", snippet=self.text)


def parse_expression(text: str, space_calls: bool = True) -> Expr:
    """Parse the inside of a {{ }} token; raises ExpressionSyntaxError."""
    return _Parser(text.strip(), space_calls=space_calls).parse()


# --- syntax detection ---

class SyntaxMode(enum.Enum):
    NEUTRAL = "neutral"
    MODERN = "modern"
    LEGACY = "legacy"


TAG_RE = re.compile(r'\{\{(.*?)\}\}', re.DOTALL)
QUOTED_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\'')
LEGACY_CALL_RE = re.compile(rf'{IDENT}\(')
LEGACY_OP_RE = re.compile(r'[+*]|(?<![.\s])/|\s/\s|(?<=[\w)])-(?=[\s\d(])|\s-\s')
MODERN_SUBEXPR_RE = re.compile(rf'(?:^|[\s(])\(\s*{IDENT}\s+[^\s)+*/?:=<>!&|-]')
MODERN_CALL_RE = re.compile(rf'^(?!(?:true|false|null|undefined|this)\b){IDENT}\s+["\'\d(@A-Za-z_$.]')
BLOCK_HELPERS = {"each", "if", "unless"}


def _classify(inner: str) -> Optional[SyntaxMode]:
    """Classify one {{ }} token's inner text as legacy, modern, or neither (None)."""
    inner = inner.strip()
    if inner.startswith("#"):
        name, _, arg = inner[1:].strip().partition(" ")
        if name == "each":
            return SyntaxMode.MODERN
        if name not in BLOCK_HELPERS:
            return SyntaxMode.LEGACY
        inner = arg.strip()
    elif inner.startswith(("/", "^", "!")) or inner == "else":
        return None
    if "../" in inner:
        return SyntaxMode.MODERN
    bare = QUOTED_RE.sub('""', inner).replace("../", "")
    if LEGACY_CALL_RE.search(bare) or LEGACY_OP_RE.search(bare):
        return SyntaxMode.LEGACY
    if MODERN_SUBEXPR_RE.search(bare) or MODERN_CALL_RE.search(bare):
        return SyntaxMode.MODERN
    return None


def detect_syntax(text: str) -> SyntaxMode:
    """Decide the document's template syntax once; raise TemplateSyntaxError if it mixes both."""
    legacy: Optional[str] = None
    modern: Optional[str] = None
    for m in TAG_RE.finditer(text):
        mode = _classify(m.group(1))
        if mode is SyntaxMode.LEGACY and legacy is None:
            legacy = m.group(0)
        elif mode is SyntaxMode.MODERN and modern is None:
            modern = m.group(0)
    if legacy and modern:
        raise TemplateSyntaxError(
            f"Document mixes legacy and modern template syntax: {legacy} and {modern}",
            snippet=f"{legacy} ... {modern}",
        )
    if legacy:
        return SyntaxMode.LEGACY
    return SyntaxMode.MODERN if modern else SyntaxMode.NEUTRAL
