"""Field tracking: inline markers for substituted values and their HTML rendering

Stages that substitute values wrap them in private-use characters so the
final stage can turn them into spans without the markup being re-parsed as
template, clause or reference syntax in between.
"""

import html
import logging
import re

from legalmd.core.models import FieldReport, FieldStatus

logger = logging.getLogger(__name__)

OPEN, SEP, CLOSE = "\ue000", "\ue001", "\ue002"

RESOLVED = "resolved"
COMPUTED = "computed"
MISSING = "missing"

CSS_CLASSES = {
    RESOLVED: "legal-field imported-value",
    COMPUTED: "legal-field highlight",
    MISSING:  "legal-field missing-value",
}

# innermost marker: its text contains no further OPEN/CLOSE
MARKER_RE = re.compile(f'{OPEN}(\\w+){SEP}([^{SEP}{OPEN}{CLOSE}]*){SEP}([^{OPEN}{CLOSE}]*){CLOSE}')


def mark(status: str, field: str, text: str) -> str:
    """Wrap text in a tracking marker for field."""
    field = field.replace(SEP, "").replace(OPEN, "").replace(CLOSE, "")
    return f"{OPEN}{status}{SEP}{field}{SEP}{text}{CLOSE}"


def has_markers(content: str) -> bool:
    return OPEN in content


def strip_markers(content: str) -> str:
    """Drop markers, keeping the substituted text."""
    while has_markers(content):
        updated = MARKER_RE.sub(lambda m: m.group(3), content)
        if updated == content:
            break
        content = updated
    return content.replace(OPEN, "").replace(SEP, "").replace(CLOSE, "")


def annotate(content: str) -> tuple[str, FieldReport]:
    """Render markers as <span> elements, innermost first, and report field statuses."""
    report = FieldReport()

    def _record(status: str, field: str, value: str) -> None:
        entry = report.fields.get(field)
        if entry is None:
            report.fields[field] = FieldStatus(field=field, status=status, value=value)
            return
        entry.occurrences += 1
        if entry.status == MISSING and status != MISSING:
            entry.status, entry.value = status, value

    def _span(m: re.Match) -> str:
        status, field, text = m.groups()
        _record(status, field, text)
        css = CSS_CLASSES.get(status, CSS_CLASSES[RESOLVED])
        return f'<span class="{css}" data-field="{html.escape(field, quote=True)}">{text}</span>'

    while OPEN in content:
        updated = MARKER_RE.sub(_span, content)
        if updated == content:
            logger.warning("Unbalanced field tracking markers; stripping the rest")
            break
        content = updated
    content = content.replace(OPEN, "").replace(SEP, "").replace(CLOSE, "")
    logger.debug(f"Field tracking: {report.filled} filled, {report.empty} empty, {report.logic} logic")
    return content, report
