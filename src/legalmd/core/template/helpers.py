"""Template helper functions, registered by the name documents call them with"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Optional

from legalmd.core import dates
from legalmd.core.clauses import loose_equal
from legalmd.core.utils.paths import MISSING, is_truthy, to_text

HELPERS: dict[str, Callable[..., Any]] = {}

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}
SMALL_WORDS = {
    "a", "an", "and", "as", "at", "but", "by", "for", "if", "in", "nor",
    "of", "on", "or", "so", "the", "to", "up", "via", "with", "yet",
}


def helper(*names: str):
    """Register a function under one or more helper names."""
    def _register(fn: Callable[..., Any]) -> Callable[..., Any]:
        for name in names:
            HELPERS[name] = fn
        return fn
    return _register


def _text(value: Any) -> str:
    text = to_text(value)
    return "" if text is None else text


def _number(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None or value is MISSING:
        raise ValueError(f"Not a number: {value!r}")
    try:
        return Decimal(str(value).replace(",", "").strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e


def _plain(value: Decimal) -> int | float:
    return int(value) if value == value.to_integral_value() else float(value)


def _group(digits: str, separator: str) -> str:
    return re.sub(r'(\d)(?=(\d{3})+$)', rf'\1{separator}', digits)


def _fixed(value: Any, decimals: int, thousands: str = ",", point: str = ".") -> str:
    number = _number(value).quantize(Decimal(1).scaleb(-int(decimals)), rounding=ROUND_HALF_UP)
    sign = "-" if number < 0 else ""
    whole, _, frac = f"{abs(number):f}".partition(".")
    out = sign + _group(whole, thousands)
    return f"{out}{point}{frac}" if frac else out


# --- dates ---

@helper("addYears")
def add_years(value: Any, years: Any):
    return dates.add_years(value, int(_number(years)))


@helper("addMonths")
def add_months(value: Any, months: Any):
    return dates.add_months(value, int(_number(months)))


@helper("addDays")
def add_days(value: Any, days: Any):
    return dates.add_days(value, int(_number(days)))


@helper("formatDate")
def format_date(value: Any, fmt: Optional[str] = None, locale: Optional[str] = "en") -> str:
    return dates.format_date(value, fmt, locale)


# --- numbers ---

@helper("formatCurrency")
def format_currency(amount: Any, currency: str = "USD", decimals: int = 2) -> str:
    """$1,234.56 / £1,234.56 / 1,234.56 € (symbol after the amount for EUR)."""
    code = str(currency or "USD").upper()
    text = _fixed(amount, decimals)
    sign, text = ("-", text[1:]) if text.startswith("-") else ("", text)
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{text} {code}"
    if code == "EUR":
        return f"{sign}{text} {symbol}"
    return f"{sign}{symbol}{text}"


@helper("formatEuro")
def format_euro(amount: Any, decimals: int = 2) -> str:
    return format_currency(amount, "EUR", decimals)


@helper("formatDollar")
def format_dollar(amount: Any, decimals: int = 2) -> str:
    return format_currency(amount, "USD", decimals)


@helper("formatPound")
def format_pound(amount: Any, decimals: int = 2) -> str:
    return format_currency(amount, "GBP", decimals)


@helper("formatInteger")
def format_integer(value: Any, separator: str = ",") -> str:
    return _fixed(value, 0, thousands=separator)


@helper("formatPercent")
def format_percent(value: Any, decimals: int = 2, symbol: bool = True) -> str:
    text = _fixed(value, decimals, thousands="")
    return f"{text}%" if is_truthy(symbol) else text


@helper("formatNumber")
def format_number(value: Any, decimals: int = 2, point: str = ".", thousands: str = ",") -> str:
    return _fixed(value, decimals, thousands=thousands, point=point)


@helper("round")
def round_number(value: Any, decimals: int = 0) -> int | float:
    """Round half away from zero."""
    quantum = Decimal(1).scaleb(-int(decimals))
    return _plain(_number(value).quantize(quantum, rounding=ROUND_HALF_UP))


_ONES = ["zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
         "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen", "seventeen",
         "eighteen", "nineteen"]
_TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]
_SCALES = [(10 ** 12, "trillion"), (10 ** 9, "billion"), (10 ** 6, "million"), (1000, "thousand")]


def _words(n: int) -> str:
    if n < 20:
        return _ONES[n]
    if n < 100:
        tens, ones = divmod(n, 10)
        return _TENS[tens] + (f"-{_ONES[ones]}" if ones else "")
    if n < 1000:
        hundreds, rest = divmod(n, 100)
        return f"{_ONES[hundreds]} hundred" + (f" {_words(rest)}" if rest else "")
    for scale, name in _SCALES:
        if n >= scale:
            major, rest = divmod(n, scale)
            return f"{_words(major)} {name}" + (f" {_words(rest)}" if rest else "")
    return str(n)


@helper("numberToWords")
def number_to_words(value: Any) -> str:
    """Spell out the integer part: 1250 -> 'one thousand two hundred fifty'."""
    n = int(_number(value))
    return ("minus " if n < 0 else "") + _words(abs(n))


# --- strings ---

@helper("upper")
def upper(value: Any) -> str:
    return _text(value).upper()


@helper("lower")
def lower(value: Any) -> str:
    return _text(value).lower()


@helper("capitalize")
def capitalize(value: Any) -> str:
    text = _text(value)
    return text[:1].upper() + text[1:].lower()


@helper("capitalizeWords")
def capitalize_words(value: Any) -> str:
    return " ".join(capitalize(word) for word in _text(value).split(" "))


@helper("titleCase")
def title_case(value: Any) -> str:
    words = _text(value).lower().split(" ")
    return " ".join(
        word if i and word in SMALL_WORDS else word[:1].upper() + word[1:]
        for i, word in enumerate(words)
    )


def _words_of(value: Any) -> list[str]:
    text = re.sub(r'([a-z0-9])([A-Z])', r'\1 \2', _text(value))
    return [w for w in re.split(r'[^A-Za-z0-9]+', text) if w]


@helper("kebabCase")
def kebab_case(value: Any) -> str:
    return "-".join(w.lower() for w in _words_of(value))


@helper("snakeCase")
def snake_case(value: Any) -> str:
    return "_".join(w.lower() for w in _words_of(value))


@helper("camelCase")
def camel_case(value: Any) -> str:
    words = _words_of(value)
    return "".join([w.lower() if i == 0 else w.capitalize() for i, w in enumerate(words)])


@helper("pascalCase")
def pascal_case(value: Any) -> str:
    return "".join(w.capitalize() for w in _words_of(value))


@helper("truncate")
def truncate(value: Any, length: Any, suffix: str = "...") -> str:
    text, length = _text(value), int(_number(length))
    if len(text) <= length:
        return text
    return text[:max(0, length - len(suffix))] + suffix


@helper("clean")
def clean(value: Any) -> str:
    return " ".join(_text(value).split())


@helper("pluralize")
def pluralize(word: Any, count: Any, plural: Optional[str] = None) -> str:
    word = _text(word)
    if _number(count) == 1:
        return word
    if plural:
        return plural
    if re.search(r'(s|x|z|ch|sh)$', word, re.IGNORECASE):
        return word + "es"
    if re.search(r'[^aeiou]y$', word, re.IGNORECASE):
        return word[:-1] + "ies"
    return word + "s"


@helper("padStart")
def pad_start(value: Any, length: Any, char: str = " ") -> str:
    return _text(value).rjust(int(_number(length)), (char or " ")[0])


@helper("padEnd")
def pad_end(value: Any, length: Any, char: str = " ") -> str:
    return _text(value).ljust(int(_number(length)), (char or " ")[0])


@helper("contains")
def contains(value: Any, search: Any) -> bool:
    return _text(search) in _text(value)


@helper("replaceAll")
def replace_all(value: Any, search: Any, replacement: Any) -> str:
    return _text(value).replace(_text(search), _text(replacement))


@helper("initials")
def initials(value: Any) -> str:
    """'John Ronald Smith' -> 'JRS'."""
    return "".join(word[0].upper() for word in _text(value).split())


@helper("concat")
def concat(*values: Any) -> str:
    return "".join(_text(v) for v in values)


# --- arithmetic and logic ---

@helper("add")
def add(a: Any, b: Any) -> int | float | str:
    """Numeric sum; falls back to concatenation when either side is not a number."""
    try:
        return _plain(_number(a) + _number(b))
    except ValueError:
        if a is None or b is None:
            raise
        return concat(a, b)


@helper("subtract")
def subtract(a: Any, b: Any) -> int | float:
    return _plain(_number(a) - _number(b))


@helper("multiply")
def multiply(a: Any, b: Any) -> int | float:
    return _plain(_number(a) * _number(b))


@helper("divide")
def divide(a: Any, b: Any) -> int | float:
    divisor = _number(b)
    if divisor == 0:
        raise ZeroDivisionError("divide by zero")
    return _plain(_number(a) / divisor)


@helper("eq")
def eq(a: Any, b: Any) -> bool:
    return loose_equal(a, b)


@helper("ne")
def ne(a: Any, b: Any) -> bool:
    return not loose_equal(a, b)


def _ordered(a: Any, b: Any, test: Callable[[Decimal, Decimal], bool]) -> bool:
    try:
        return test(_number(a), _number(b))
    except ValueError:
        return False


@helper("gt")
def gt(a: Any, b: Any) -> bool:
    return _ordered(a, b, lambda x, y: x > y)


@helper("lt")
def lt(a: Any, b: Any) -> bool:
    return _ordered(a, b, lambda x, y: x < y)


@helper("gte")
def gte(a: Any, b: Any) -> bool:
    return _ordered(a, b, lambda x, y: x >= y)


@helper("lte")
def lte(a: Any, b: Any) -> bool:
    return _ordered(a, b, lambda x, y: x <= y)


@helper("and")
def and_(*values: Any) -> bool:
    return all(is_truthy(v) for v in values)


@helper("or")
def or_(*values: Any) -> bool:
    return any(is_truthy(v) for v in values)


@helper("not")
def not_(value: Any) -> bool:
    return not is_truthy(value)
