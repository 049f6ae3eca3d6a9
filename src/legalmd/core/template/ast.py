"""Expression tree for {{ }} template tokens"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Path:
    parts: tuple[str, ...]          # empty for this / .
    depth: int = 0                  # number of ../ prefixes
    raw:   str = ""

    @property
    def key(self) -> str:
        return self.raw or ".".join(self.parts)


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Expr", ...] = ()


@dataclass(frozen=True)
class Ternary:
    test:      "Expr"
    then:      "Expr"
    otherwise: "Expr"


Expr = Union[Literal, Path, Call, Ternary]
