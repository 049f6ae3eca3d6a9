"""Front matter extraction: split a YAML metadata block from the document body"""

import logging
import re
from datetime import date
from typing import Any, Optional

import yaml

from legalmd.core.dates import format_date
from legalmd.core.models import ParsedDoc
from legalmd.errors import MetadataParseError

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
YAML_TODAY_RE = re.compile(r'@today(?:\[([^\]]+)\])?')
YAML_TODAY_VALUE_RE = re.compile(r"""(:[ \t]*)(["']?)@today(?:\[([^\]]+)\])?\2[ \t]*$""", re.MULTILINE)


def _expand_today(block: str, today: Optional[date]) -> str:
    """Replace @today tokens inside YAML with dates.

    A value that is just @today becomes a quoted string; @today inside a
    longer scalar is replaced in place.
    """
    if today is None or "@today" not in block:
        return block
    block = YAML_TODAY_VALUE_RE.sub(
        lambda m: f'{m.group(1)}"{format_date(today, m.group(3))}"', block)
    return YAML_TODAY_RE.sub(lambda m: format_date(today, m.group(1)), block)


def _load_yaml(block: str) -> dict[str, Any]:
    data = yaml.safe_load(block) or {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(f"expected a mapping, got {type(data).__name__}")
    return data


def parse_document(text: str, strict: bool = False, today: Optional[date] = None) -> ParsedDoc:
    """Return a ParsedDoc with metadata and body.

    Without a complete --- fenced block the whole text is the body. Invalid
    YAML raises MetadataParseError when strict, otherwise yields empty
    metadata plus a warning.
    """
    m = FRONTMATTER_RE.match(text)
    if not m:
        return ParsedDoc(metadata={}, body=text, raw=text)

    block, body = m.group(1), text[m.end():]
    try:
        metadata = _load_yaml(_expand_today(block, today))
    except yaml.YAMLError as e:
        first_line = next((line for line in block.splitlines() if line.strip()), "")
        if strict:
            raise MetadataParseError(f"Invalid YAML front matter: {e}", snippet=first_line) from e
        message = f"Invalid YAML front matter ignored: {str(e).splitlines()[0]}"
        logger.warning(message)
        return ParsedDoc(metadata={}, body=body, raw=text, warnings=[message])
    return ParsedDoc(metadata=metadata, body=body, raw=text)
