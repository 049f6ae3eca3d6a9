"""Import resolution: inline @import directives through an injected reader"""

import logging
import posixpath
import re
from typing import Any, Callable, Optional

from legalmd.core.merge import merge_metadata
from legalmd.core.models import ImportResult, MergeStats
from legalmd.core.parse import parse_document
from legalmd.core.utils.slug import same_section
from legalmd.errors import ImportResolutionError

logger = logging.getLogger(__name__)

Reader = Callable[[str], Optional[str]]

IMPORT_RE = re.compile(r'''@import[ \t]+(?:"([^"]+)"|'([^']+)'|([^\s#]+))(?:#([\w.-]+))?''')
MD_HEADER_RE = re.compile(r'^(#{1,6})[ \t]+(.*?)[ \t#]*$')
LEGAL_HEADER_RE = re.compile(r'^(?:(l+)|l(\d+))\.[ \t]+(.*?)[ \t]*(?:\|[\w.-]+\|)?[ \t]*$')


def mapping_reader(files: dict[str, str]) -> Reader:
    """A reader over an in-memory name -> text mapping."""
    normalized = {posixpath.normpath(name): text for name, text in files.items()}
    return lambda name: normalized.get(posixpath.normpath(name))


def resolve_name(name: str, importer: Optional[str]) -> str:
    """Resolve name relative to the importing document's directory."""
    if name.startswith("/") or not importer:
        return posixpath.normpath(name)
    return posixpath.normpath(posixpath.join(posixpath.dirname(importer), name))


def _header(line: str) -> Optional[tuple[int, str]]:
    if m := MD_HEADER_RE.match(line):
        return len(m.group(1)), m.group(2)
    if m := LEGAL_HEADER_RE.match(line):
        return (len(m.group(1)) if m.group(1) else int(m.group(2))), m.group(3)
    return None


def extract_section(text: str, section: str) -> Optional[str]:
    """Return the lines from the header named section up to the next header of the same or higher level."""
    lines = text.splitlines(keepends=True)
    start, level = None, 0
    for i, line in enumerate(lines):
        header = _header(line.rstrip("\r\n"))
        if header is None:
            continue
        if start is None:
            if same_section(section, header[1]):
                start, level = i, header[0]
        elif header[0] <= level:
            return "".join(lines[start:i])
    return "".join(lines[start:]) if start is not None else None


def resolve_imports(
    content: str,
    metadata: dict[str, Any],
    reader: Reader,
    *,
    base: Optional[str] = None,
    max_depth: int = 10,
    merge: bool = True,
    filter_reserved: bool = True,
    validate_types: bool = True,
    merge_timeout: float = 10.0,
) -> ImportResult:
    """Inline every @import, depth-first, merging imported front matter into metadata.

    Raises ImportResolutionError for a missing resource, a cycle, or nesting
    deeper than max_depth.
    """
    imported: list[str] = []
    stats = MergeStats()

    def _expand(text: str, importer: Optional[str], chain: tuple[str, ...], depth: int) -> str:
        def _sub(m: re.Match) -> str:
            nonlocal metadata, stats
            raw = m.group(1) or m.group(2) or m.group(3)
            section = m.group(4)
            name = resolve_name(raw, importer)
            if name in chain:
                cycle = " -> ".join(chain + (name,))
                raise ImportResolutionError(f"Circular import: {cycle}", path=name, chain=chain)
            if depth >= max_depth:
                raise ImportResolutionError(
                    f"Import depth exceeds {max_depth}: {name}", path=name, chain=chain)
            source = reader(name)
            if source is None:
                raise ImportResolutionError(f"Import not found: {name}", path=name, chain=chain)

            logger.debug(f"Importing {name}" + (f"#{section}" if section else ""))
            imported.append(name)
            parsed = parse_document(source)
            body = parsed.body
            if section:
                body = extract_section(body, section)
                if body is None:
                    raise ImportResolutionError(
                        f"Section {section!r} not found in {name}", path=f"{name}#{section}", chain=chain)
            if merge and parsed.metadata:
                result = merge_metadata(
                    metadata, parsed.metadata,
                    filter_reserved=filter_reserved,
                    validate_types=validate_types,
                    timeout=merge_timeout,
                )
                metadata, stats = result.metadata, stats.combine(result.stats)
            return _expand(body, name, chain + (name,), depth + 1).rstrip("\n")

        return IMPORT_RE.sub(_sub, text)

    root = (posixpath.normpath(base),) if base else ()
    content = _expand(content, base, root, 0)
    if imported:
        logger.info(f"Resolved {len(imported)} import(s); {stats.added_count} field(s) merged")
    return ImportResult(content=content, metadata=metadata, imported=imported, stats=stats)
