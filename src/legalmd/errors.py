"""Exception hierarchy shared by the document processing stages.

Every error names the pipeline stage it was raised in and a short snippet of
the input that triggered it, so a host can report a failure without holding
on to the whole document.
"""

from typing import Optional, Sequence

__all__ = [
    "LegalMarkdownError",
    "MetadataParseError",
    "ImportResolutionError",
    "MergeValidationError",
    "BudgetExceededError",
    "TemplateSyntaxError",
    "ExpressionSyntaxError",
    "PipelineError",
]

SNIPPET_LENGTH = 80


def make_snippet(text: Optional[str], limit: int = SNIPPET_LENGTH) -> str:
    """Collapse whitespace and truncate text for error messages."""
    if not text:
        return ""
    flat = " ".join(str(text).split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


class LegalMarkdownError(Exception):
    """Base exception for all processing failures."""

    def __init__(self, message: str, *, stage: str = "", snippet: str = "") -> None:
        super().__init__(message)
        self.stage = stage
        self.snippet = make_snippet(snippet)

    def __str__(self) -> str:
        message = super().__str__()
        if self.snippet:
            return f"{message} (near: {self.snippet!r})"
        return message


class MetadataParseError(LegalMarkdownError):
    """Raised when front matter is not valid YAML in strict mode."""

    def __init__(self, message: str, *, snippet: str = "") -> None:
        super().__init__(message, stage="metadata", snippet=snippet)


class ImportResolutionError(LegalMarkdownError):
    """Raised when an @import target is missing, cyclic, or nested too deeply."""

    def __init__(self, message: str, *, path: str, chain: Sequence[str] = ()) -> None:
        super().__init__(message, stage="imports", snippet=f"@import {path}")
        self.path = path
        self.chain = tuple(chain)


class MergeValidationError(LegalMarkdownError):
    """Raised when two metadata values for the same field have incompatible types."""

    def __init__(self, field: str, current_type: str, imported_type: str) -> None:
        super().__init__(
            f"Type conflict for field {field!r}: {current_type} vs {imported_type}",
            stage="merge",
            snippet=field,
        )
        self.field = field
        self.current_type = current_type
        self.imported_type = imported_type


class BudgetExceededError(LegalMarkdownError):
    """Raised when a stage runs past its wall-clock budget."""

    def __init__(self, message: str, *, stage: str, budget: float, snippet: str = "") -> None:
        super().__init__(message, stage=stage, snippet=snippet)
        self.budget = budget


class TemplateSyntaxError(LegalMarkdownError):
    """Raised when a document mixes legacy and modern template syntax."""

    def __init__(self, message: str, *, snippet: str = "") -> None:
        super().__init__(message, stage="templates", snippet=snippet)


class ExpressionSyntaxError(LegalMarkdownError):
    """Raised by the expression parser; renderers degrade the token instead of failing."""

    def __init__(self, message: str, *, snippet: str = "") -> None:
        super().__init__(message, stage="templates", snippet=snippet)


class PipelineError(LegalMarkdownError):
    """Raised by the orchestrator when a stage fails, chained from the cause."""
