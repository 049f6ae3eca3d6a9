"""Lookup scopes for template evaluation: document metadata plus loop frames"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from legalmd.core.template.ast import Path
from legalmd.core.utils.paths import MISSING, resolve_path


@dataclass(frozen=True)
class Frame:
    value:  Any
    locals: Mapping[str, Any] = field(default_factory=dict)    # @index, @first, @last, @key


@dataclass(frozen=True)
class Scope:
    """An immutable stack of frames; frames[0] is the document metadata."""
    frames: tuple[Frame, ...]

    @classmethod
    def root(cls, metadata: dict[str, Any], names: Mapping[str, Any] = None) -> "Scope":
        return cls((Frame(metadata, dict(names or {})),))

    def push(self, value: Any, names: Mapping[str, Any] = None) -> "Scope":
        return Scope(self.frames + (Frame(value, dict(names or {})),))

    @property
    def current(self) -> Any:
        return self.frames[-1].value

    def _local(self, name: str, start: int) -> Any:
        for frame in reversed(self.frames[:start + 1]):
            if name in frame.locals:
                return frame.locals[name]
        return MISSING

    def lookup(self, path: Path) -> Any:
        """Resolve a path; ../ climbs frames and plain names fall back to outer frames."""
        index = len(self.frames) - 1 - path.depth
        if index < 0:
            return MISSING
        parts = list(path.parts)
        if not parts:
            return self.frames[index].value
        head = parts[0]
        if head == "@root":
            return resolve_path(self.frames[0].value, parts[1:])
        if head.startswith("@"):
            value = self._local(head, index)
            return resolve_path(value, parts[1:]) if value is not MISSING else MISSING
        value = resolve_path(self.frames[index].value, parts)
        if value is MISSING and path.depth == 0:
            for frame in reversed(self.frames[:index]):
                value = resolve_path(frame.value, parts)
                if value is not MISSING:
                    break
        return value
