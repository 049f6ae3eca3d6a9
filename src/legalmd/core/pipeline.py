"""Pipeline orchestration: run the processing stages in their fixed order"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from legalmd.config import Settings
from legalmd.core.clauses import process_clauses
from legalmd.core.dates import current_date, utc_now
from legalmd.core.force import apply_force_directive
from legalmd.core.headers import process_headers
from legalmd.core.imports import Reader, mapping_reader, resolve_imports
from legalmd.core.models import ProcessResult
from legalmd.core.parse import parse_document
from legalmd.core.references import process_references
from legalmd.core.template.engine import TemplateEngine
from legalmd.core.template.parser import detect_syntax
from legalmd.core.tracking import annotate, strip_markers
from legalmd.core.utils.paths import is_truthy
from legalmd.errors import LegalMarkdownError, PipelineError

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGES = ("metadata", "imports", "clauses", "references", "loops", "templates", "headers", "tracking")


def _run(stage: str, content: str, fn: Callable[[], T]) -> T:
    """Run one stage, re-raising any failure as a PipelineError naming the stage."""
    logger.debug(f"Running {stage} stage")
    try:
        return fn()
    except PipelineError:
        raise
    except LegalMarkdownError as e:
        raise PipelineError(f"{stage} stage failed: {e.args[0]}", stage=stage, snippet=e.snippet or content) from e
    except Exception as e:
        raise PipelineError(f"{stage} stage failed: {e}", stage=stage, snippet=content) from e


class Pipeline:
    """Processes documents with fixed host settings and an optional import reader.

    Each call to process() owns its content and metadata; one Pipeline may
    be reused for many documents.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        reader: Optional[Reader] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or Settings()
        self.reader = reader or mapping_reader({})
        self.clock = clock or utc_now

    def process(self, text: str, name: Optional[str] = None) -> ProcessResult:
        """Run every stage over text and return the resolved document."""
        parsed = _run("metadata", text, lambda: parse_document(
            text, strict=self.settings.strict_metadata, today=current_date({}, self.clock)))
        metadata: dict[str, Any] = parsed.metadata
        settings = _run("metadata", text, lambda: apply_force_directive(self.settings, metadata))
        result = ProcessResult(content=parsed.body, metadata=metadata, settings=settings,
                               warnings=list(parsed.warnings))
        today = current_date(metadata, self.clock)

        def _skip(stage: str) -> None:
            logger.info(f"Skipping {stage} stage (disabled by settings)")
            result.skipped.append(stage)

        # imports
        if settings.skip_imports:
            _skip("imports")
        else:
            imported = _run("imports", result.content, lambda: resolve_imports(
                result.content, result.metadata, self.reader,
                base=name,
                max_depth=settings.import_max_depth,
                merge=not is_truthy(result.metadata.get("disable-frontmatter-merge")),
                filter_reserved=settings.filter_reserved,
                validate_types=settings.validate_types,
                merge_timeout=settings.merge_timeout,
            ))
            result.content, result.metadata = imported.content, imported.metadata
            result.imported, result.merge_stats = imported.imported, imported.stats

        metadata = result.metadata
        tracking = settings.enable_field_tracking

        # clauses
        if settings.skip_clauses:
            _skip("clauses")
        else:
            result.content = _run("clauses", result.content, lambda: process_clauses(result.content, metadata))

        # references
        if settings.skip_references:
            _skip("references")
        else:
            result.content = _run("references", result.content, lambda: process_references(
                result.content, metadata, today=today, tracking=tracking))

        # loops and templates share one engine; syntax is detected once
        engine: Optional[TemplateEngine] = None

        def _engine() -> TemplateEngine:
            nonlocal engine
            if engine is None:
                mode = detect_syntax(result.content)
                logger.debug(f"Template syntax: {mode.value}")
                engine = TemplateEngine(mode, tracking=tracking, today=today, timeout=settings.template_timeout)
            return engine

        if settings.skip_loops:
            _skip("loops")
        else:
            result.content = _run("loops", result.content,
                                  lambda: _engine().expand_blocks(result.content, metadata))

        if settings.skip_templates:
            _skip("templates")
        else:
            result.content = _run("templates", result.content,
                                  lambda: _engine().render(result.content, metadata))

        # headers
        if settings.skip_headers:
            _skip("headers")
        else:
            result.content = _run("headers", result.content, lambda: process_headers(
                result.content, metadata, no_reset=settings.no_reset, no_indent=settings.no_indent))

        # tracking
        if tracking:
            result.content, result.fields = _run("tracking", result.content, lambda: annotate(result.content))
        else:
            _skip("tracking")
            result.content = strip_markers(result.content)
        return result


def process_document(
    text: str,
    settings: Optional[Settings] = None,
    reader: Optional[Reader] = None,
    name: Optional[str] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> ProcessResult:
    """Process one document with a fresh Pipeline."""
    return Pipeline(settings, reader=reader, clock=clock).process(text, name=name)
