"""Cross-references: |key| section and metadata references, and @today dates"""

import logging
import re
from datetime import date
from typing import Any

from legalmd.core.dates import format_date
from legalmd.core.headers import HeaderFormats, scan_headers
from legalmd.core.tracking import COMPUTED, RESOLVED, mark
from legalmd.core.utils.paths import is_truthy, resolve_path, to_text

logger = logging.getLogger(__name__)

REFERENCE_RE = re.compile(r'\|([\w.-]+)\|')
TODAY_RE = re.compile(r'@today(?:\[([^\]]+)\])?')
TEMPLATE_TOKEN_RE = re.compile(r'\{\{.*?\}\}', re.DOTALL)


def section_labels(content: str, metadata: dict[str, Any]) -> tuple[dict[str, str], set[int]]:
    """Map keys defined by 'l. Title |key|' headers to their labels.

    Also returns the offsets of the defining |key| tokens, which are not
    themselves references.
    """
    formats = HeaderFormats.from_metadata(metadata)
    reset = not is_truthy(metadata.get("no-reset"))
    labels: dict[str, str] = {}
    definitions: set[int] = set()
    for header in scan_headers(content, formats, reset=reset):
        if header.key is None:
            continue
        if header.key in labels:
            logger.warning(f"Section reference {header.key!r} defined more than once; keeping the first")
        else:
            labels[header.key] = header.label.rstrip(".").strip() or header.text
        definitions.add(content.rfind(f"|{header.key}|", *header.span))
    return labels, definitions


def process_references(
    content: str,
    metadata: dict[str, Any],
    *,
    today: date,
    tracking: bool = False,
) -> str:
    """Replace |key| with section labels or metadata values and @today with a formatted date.

    Unresolved keys are left as they are.
    """
    labels, definitions = section_labels(content, metadata)

    def _reference(m: re.Match, offset: int) -> str:
        key = m.group(1)
        if offset + m.start() in definitions:
            return m.group(0)
        if key in labels:
            return mark(COMPUTED, key, labels[key]) if tracking else labels[key]
        text = to_text(resolve_path(metadata, key))
        if text is None:
            logger.debug(f"Unresolved reference |{key}|")
            return m.group(0)
        return mark(RESOLVED, key, text) if tracking else text

    default_format = metadata.get("date-format") or metadata.get("dateFormat")
    locale = metadata.get("locale") or metadata.get("lang") or "en"

    def _today(m: re.Match) -> str:
        fmt = m.group(1) or default_format
        text = format_date(today, fmt if isinstance(fmt, str) else None, locale)
        return mark(COMPUTED, "@today", text) if tracking else text

    def _outside(start: int, end: int) -> str:
        text = REFERENCE_RE.sub(lambda m: _reference(m, start), content[start:end])
        return TODAY_RE.sub(_today, text)

    # {{ }} expressions see @today through the template engine instead
    parts, last = [], 0
    for m in TEMPLATE_TOKEN_RE.finditer(content):
        parts.append(_outside(last, m.start()))
        parts.append(m.group(0))
        last = m.end()
    parts.append(_outside(last, len(content)))
    return "".join(parts)
