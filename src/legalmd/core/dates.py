"""Date arithmetic and token-based date formatting"""

import calendar
import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

ISO_FORMAT = "YYYY-MM-DD"

PRESETS = {
    "iso":        ISO_FORMAT,
    "us":         "MM/DD/YYYY",
    "eu":         "DD/MM/YYYY",
    "european":   "DD/MM/YYYY",
    "long":       "MMMM D, YYYY",
    "medium":     "MMM D, YYYY",
    "short":      "MMM D, YY",
    "legal":      "Do [day of] MMMM, YYYY",
    "formal":     "dddd, MMMM Do, YYYY",
    "year":       "YYYY",
    "month-year": "MMMM YYYY",
}

MONTHS = {
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
    "es": ["enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
           "agosto", "septiembre", "octubre", "noviembre", "diciembre"],
}

WEEKDAYS = {
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
    "es": ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"],
}

TOKEN_RE = re.compile(r'\[([^\]]*)\]|YYYY|YY|MMMM|MMM|MM|M|Do|DD|D|dddd|ddd')


def normalize_locale(locale: Optional[str]) -> str:
    """Reduce 'es-ES' / 'es_MX' to 'es'; unknown locales become 'en'."""
    lang = re.split(r'[-_]', str(locale or "en"))[0].lower()
    return lang if lang in MONTHS else "en"


def ordinal(n: int) -> str:
    """1 -> '1st', 12 -> '12th', 22 -> '22nd'."""
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def to_date(value: Any) -> date:
    """Coerce a date, datetime, or ISO string to a date; raise ValueError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Not a date: {value!r}")


def add_days(value: Any, days: int) -> date:
    return to_date(value) + timedelta(days=int(days))


def add_months(value: Any, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    d = to_date(value)
    index = d.month - 1 + int(months)
    year, month = d.year + index // 12, index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(value: Any, years: int) -> date:
    return add_months(value, int(years) * 12)


def resolve_format(fmt: Any) -> str:
    """Map a preset name to its token pattern; return other formats as text."""
    if fmt is None or fmt == "":
        return ISO_FORMAT
    fmt = str(fmt)
    return PRESETS.get(fmt.strip().lower(), fmt)


def format_date(value: Any, fmt: Any = None, locale: Optional[str] = "en") -> str:
    """Render a date with YYYY/MMMM/Do-style tokens or a named preset.

    Text in [brackets] is emitted literally. A format containing no tokens
    falls back to ISO.
    """
    d = to_date(value)
    pattern = resolve_format(fmt)
    lang = normalize_locale(locale)
    if not any(m.group(1) is None for m in TOKEN_RE.finditer(pattern)):
        logger.debug(f"Date format {fmt!r} has no tokens; using ISO")
        pattern = ISO_FORMAT

    months, weekdays = MONTHS[lang], WEEKDAYS[lang]
    values: dict[str, Callable[[], str]] = {
        "YYYY": lambda: f"{d.year:04d}",
        "YY":   lambda: f"{d.year % 100:02d}",
        "MMMM": lambda: months[d.month - 1],
        "MMM":  lambda: months[d.month - 1][:3],
        "MM":   lambda: f"{d.month:02d}",
        "M":    lambda: str(d.month),
        "Do":   lambda: ordinal(d.day) if lang == "en" else f"{d.day}º",
        "DD":   lambda: f"{d.day:02d}",
        "D":    lambda: str(d.day),
        "dddd": lambda: weekdays[d.weekday()],
        "ddd":  lambda: weekdays[d.weekday()][:3],
    }

    def _sub(m: re.Match) -> str:
        if m.group(1) is not None:
            return m.group(1)
        return values[m.group(0)]()

    return TOKEN_RE.sub(_sub, pattern)


def zone_for(name: Optional[str]) -> timezone | ZoneInfo:
    """Return the named timezone, or UTC when the name is empty or unknown."""
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}; using UTC")
        return timezone.utc


def current_date(metadata: dict[str, Any], clock: Callable[[], datetime]) -> date:
    """Today's date in the document's timezone (timezone/tz metadata)."""
    tz = zone_for(metadata.get("timezone") or metadata.get("tz"))
    now = clock()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
