"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from legalmd.config import Settings, load_config
from legalmd.core.models import ProcessResult
from legalmd.core.pipeline import Pipeline
from legalmd.errors import LegalMarkdownError
from legalmd.util.fs import directory_reader, write_metadata


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _flag(value: bool) -> Optional[bool]:
    """Unset CLI switches must not override legalmd.yaml or env values."""
    return True if value else None


def _run(path: Path, settings: Settings) -> ProcessResult:
    if not path.is_file():
        _fail(f"Not a file: {path}")
    text = path.read_text(encoding="utf-8")
    pipeline = Pipeline(settings, reader=directory_reader(path.parent))
    try:
        return pipeline.process(text, name=path.name)
    except LegalMarkdownError as e:
        _fail(f"{path}: {e}")


def _echo_stats(result: ProcessResult) -> None:
    """Print import, merge and field statistics to stderr."""
    stats = result.merge_stats
    typer.echo(f"Imports: {len(result.imported)}", err=True)
    for name in result.imported:
        typer.echo(f"  {name}", err=True)
    typer.echo(
        f"Merge: {stats.added_count} added, "
        f"{stats.conflict_count} conflicts, "
        f"{stats.filtered_count} filtered",
        err=True,
    )
    if result.fields is not None:
        f = result.fields
        typer.echo(f"Fields: {f.total} total, {f.filled} filled, {f.empty} empty, {f.logic} logic", err=True)
    if result.skipped:
        typer.echo(f"Skipped stages: {', '.join(result.skipped)}", err=True)


def process_cmd(
    path: Annotated[Path, typer.Argument(help="Legal markdown file to process")],
    out: Annotated[Optional[Path], typer.Option("--out", "-o", help="Write output here instead of stdout")] = None,
    metadata_out: Annotated[Optional[Path], typer.Option("--metadata-out", help="Write merged metadata (.json or .yaml)")] = None,
    no_imports: Annotated[bool, typer.Option("--no-imports", help="Skip @import resolution")] = False,
    no_clauses: Annotated[bool, typer.Option("--no-clauses", help="Skip optional clauses")] = False,
    no_references: Annotated[bool, typer.Option("--no-references", help="Skip |key| and @today")] = False,
    no_loops: Annotated[bool, typer.Option("--no-loops", help="Skip {{#each}}/{{#if}} blocks")] = False,
    no_templates: Annotated[bool, typer.Option("--no-templates", help="Skip {{ expr }} substitution")] = False,
    no_headers: Annotated[bool, typer.Option("--no-headers", help="Skip header numbering")] = False,
    no_reset: Annotated[bool, typer.Option("--no-reset", help="Do not reset deeper header counters")] = False,
    no_indent: Annotated[bool, typer.Option("--no-indent", help="Do not indent numbered headers")] = False,
    highlight: Annotated[bool, typer.Option("--highlight", help="Wrap substituted fields in tracking spans")] = False,
    strict: Annotated[bool, typer.Option("--strict", help="Fail on malformed front matter")] = False,
    stats: Annotated[bool, typer.Option("--stats", help="Print import and merge statistics to stderr")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log each stage")] = False,
    ):
    """Resolve imports, clauses, references, templates and headers in one document."""
    _configure_logging(verbose)
    settings = _settings(overrides={
        "skip_imports": _flag(no_imports), "skip_clauses": _flag(no_clauses),
        "skip_references": _flag(no_references), "skip_loops": _flag(no_loops),
        "skip_templates": _flag(no_templates), "skip_headers": _flag(no_headers),
        "no_reset": _flag(no_reset), "no_indent": _flag(no_indent),
        "enable_field_tracking": _flag(highlight), "strict_metadata": _flag(strict),
    })
    result = _run(path, settings)

    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(result.content, encoding="utf-8")
        typer.echo(f"  {path} -> {out}", err=True)
    else:
        typer.echo(result.content, nl=False)
    if metadata_out:
        write_metadata(metadata_out, result.metadata)
        typer.echo(f"  metadata -> {metadata_out}", err=True)
    if stats:
        _echo_stats(result)


def check_cmd(
    path: Annotated[Path, typer.Argument(help="Legal markdown file to check")],
    strict: Annotated[bool, typer.Option("--strict", help="Fail on malformed front matter")] = False,
    ):
    """Process a document without writing output and report fields, imports and warnings."""
    _configure_logging(False)
    settings = _settings(overrides={"enable_field_tracking": True, "strict_metadata": _flag(strict)})
    result = _run(path, settings)
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}")
    _echo_stats(result)
    fields = result.fields.fields if result.fields else {}
    missing = [name for name, f in fields.items() if f.status == "missing"]
    for name in missing:
        typer.echo(f"  missing: {name}")
    typer.echo(f"{path}: OK" if not missing else f"{path}: {len(missing)} missing field(s)")
    if missing:
        raise typer.Exit(1)
