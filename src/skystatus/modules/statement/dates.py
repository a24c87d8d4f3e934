from __future__ import annotations

import calendar
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from skystatus.modules.statement.locales import LOCALES, LocalePatterns
from skystatus.modules.statement.types import Language

_NUMERIC_DATE_RE = re.compile(r"^(\d{1,4})[-/.](\d{1,2})[-/.](\d{1,4})$")
_TOKEN_SPLIT_RE = re.compile(r"[\s/.-]+")
_LEADING_DIGITS_RE = re.compile(r"^\d+")
_NON_MONTH_CHARS_RE = re.compile(r"[^a-zéûôàèùäöüßçñ]")
_SEPARATED_DATE_RE = re.compile(r"\d+[/.-]\d+[/.-]\d+")
_DAY_MONTH_RE = re.compile(r"\d{1,2}\s+\w{3,}|\w{3,}\s+\d{1,2}")

_ALL_MONTH_WORDS: tuple[str, ...] = tuple(
    dict.fromkeys(word for locale in LOCALES.values() for word in locale.months)
)


@dataclass(frozen=True)
class ParsedDate:
    full: str
    year: int
    month: int
    day: int

    @property
    def month_key(self) -> str:
        return format_month(self.year, self.month)


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def _month_tables(language: Language | None) -> list[LocalePatterns]:
    if language is None:
        return list(LOCALES.values())
    active = LOCALES[language]
    return [active] + [locale for locale in LOCALES.values() if locale is not active]


def find_month(token: str, language: Language | None = None) -> int | None:
    """Resolve a month word to 1..12, preferring the active language's table."""
    cleaned = _NON_MONTH_CHARS_RE.sub("", token.lower())
    if not cleaned:
        return None
    tables = [locale.months for locale in _month_tables(language)]

    for table in tables:
        if cleaned in table:
            return table[cleaned]
    # Two-letter words ("op", "am", "le") would prefix-match real months.
    if len(cleaned) < 3:
        return None
    for candidate in (cleaned[:3], cleaned[:4]):
        for table in tables:
            if candidate in table:
                return table[candidate]
    for table in tables:
        for key, month in table.items():
            if cleaned.startswith(key) or key.startswith(cleaned):
                return month
    return None


def _validated(year: int | None, month: int | None, day: int | None) -> ParsedDate | None:
    if not (year and month and day):
        return None
    if not (2000 <= year <= 2100 and 1 <= month <= 12):
        return None
    if not 1 <= day <= calendar.monthrange(year, month)[1]:
        return None
    return ParsedDate(full=f"{year:04d}-{month:02d}-{day:02d}", year=year, month=month, day=day)


def parse_date(text: str | None, language: Language | None = None) -> ParsedDate | None:
    """Parse a date fragment in any supported numeric or month-name form.

    Ambiguous numeric dates such as 04/05/2025 are read day-first regardless of
    language. That ordering is a heuristic; US exports may be misread.
    """
    if not text:
        return None
    cleaned = " ".join(text.replace(",", " ").split())

    year: int | None = None
    month: int | None = None
    day: int | None = None

    match = _NUMERIC_DATE_RE.match(cleaned)
    if match:
        a, b, c = (int(group) for group in match.groups())
        if a > 1000:
            year, month, day = a, b, c
        elif c > 1000:
            year = c
            if a > 12:
                day, month = a, b
            elif b > 12:
                month, day = a, b
            else:
                day, month = a, b

    if year is None:
        numbers: list[int] = []
        for token in _TOKEN_SPLIT_RE.split(cleaned):
            if not token:
                continue
            digits = _LEADING_DIGITS_RE.match(token)
            if digits:
                numbers.append(int(digits.group(0)))
            elif month is None:
                month = find_month(token, language)
        if month is not None:
            year = next((n for n in numbers if 2000 <= n <= 2100), None)
            day = next((n for n in numbers if 1 <= n <= 31), None)

    return _validated(year, month, day)


def looks_like_date(text: str | None) -> bool:
    if not text:
        return False
    lowered = text.lower()
    if not any(ch.isdigit() for ch in lowered):
        return False
    if any(word in lowered for word in _ALL_MONTH_WORDS):
        return True
    return bool(_SEPARATED_DATE_RE.search(lowered) or _DAY_MONTH_RE.search(lowered))


def extract_leading_date(
    line: str, language: Language | None = None, *, max_words: int = 5
) -> tuple[str, str] | None:
    """Split ``line`` into (ISO date, remaining content) when it opens with a date.

    Content must be non-empty; a line holding only a date is not a transaction.
    """
    if not looks_like_date(line):
        return None
    words = line.split()
    for n in range(1, min(max_words, len(words) - 1) + 1):
        parsed = parse_date(" ".join(words[:n]), language)
        if parsed:
            return parsed.full, " ".join(words[n:])
    return None


def month_key(iso_date: str) -> str:
    return iso_date[:7]


def days_between(first: str, second: str) -> int:
    return abs((date.fromisoformat(second) - date.fromisoformat(first)).days)


def is_within_days(first: str, second: str, days: int) -> bool:
    return days_between(first, second) <= days


def _split_month(key: str) -> tuple[int, int]:
    year, month = key.split("-")[:2]
    return int(year), int(month)


def previous_month(key: str) -> str:
    year, month = _split_month(key)
    if month == 1:
        return format_month(year - 1, 12)
    return format_month(year, month - 1)


def next_month(key: str) -> str:
    year, month = _split_month(key)
    if month == 12:
        return format_month(year + 1, 1)
    return format_month(year, month + 1)


def add_months(key: str, count: int) -> str:
    year, month = _split_month(key)
    index = year * 12 + (month - 1) + count
    return format_month(index // 12, index % 12 + 1)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(clock: Clock | None = None) -> str:
    moment = (clock or utc_now)()
    return moment.isoformat().replace("+00:00", "Z")
