from __future__ import annotations

import re
from dataclasses import dataclass, field

from skystatus.modules.statement.dates import extract_leading_date, looks_like_date, parse_date
from skystatus.modules.statement.locales import LOCALES
from skystatus.modules.statement.types import Language, LineType, TokenizedLine

MEMBER_NUMBER_RE = re.compile(r"Flying Blue[- ]?(?:nummer|number)[:\s]+(\d+)", re.I)
MEMBER_NAME_RE = re.compile(r"^[A-Z\s]{3,30}$")
STATUS_WORD_RE = re.compile(r"EXPLORER|SILVER|GOLD|PLATINUM|ULTIMATE")
STATUS_LINE_RE = re.compile(r"^(EXPLORER|SILVER|GOLD|PLATINUM|ULTIMATE)$", re.I)
SEGMENT_PREFIX_RE = re.compile(r"^[A-Z]{3}\s*[-–]\s*[A-Z]{3}")
COMBINED_TOTALS_RE = re.compile(r"(\d[\d\s.,]*)\s*Miles\s+(\d+)\s*XP\s+(\d+)\s*UXP", re.I)
_BALANCE_WORD_RE = re.compile(r"total|balance|saldo|solde|guthaben", re.I)
_BALANCE_UNIT_RE = re.compile(r"miles|xp", re.I)


@dataclass
class Sections:
    header: list[TokenizedLine] = field(default_factory=list)
    transactions: list[TokenizedLine] = field(default_factory=list)
    summary: list[TokenizedLine] = field(default_factory=list)


@dataclass
class TokenizeResult:
    lines: list[TokenizedLine]
    language: Language
    sections: Sections


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def is_header_line(line: str) -> bool:
    if MEMBER_NUMBER_RE.search(line):
        return True
    return bool(MEMBER_NAME_RE.match(line)) and not STATUS_WORD_RE.search(line)


def is_status_line(line: str) -> bool:
    return bool(STATUS_LINE_RE.match(line.strip()))


def is_segment_line(line: str) -> bool:
    return bool(SEGMENT_PREFIX_RE.match(line))


def is_summary_line(line: str) -> bool:
    if COMBINED_TOTALS_RE.search(line):
        return True
    return bool(_BALANCE_WORD_RE.search(line) and _BALANCE_UNIT_RE.search(line))


def tokenize_line(line: str, line_number: int, language: Language | None = None) -> TokenizedLine:
    if is_header_line(line):
        return TokenizedLine(text=line, line_number=line_number, type=LineType.HEADER)
    if is_status_line(line):
        return TokenizedLine(text=line, line_number=line_number, type=LineType.STATUS)
    if is_segment_line(line):
        return TokenizedLine(text=line, line_number=line_number, type=LineType.FLIGHT_SEGMENT)
    if is_summary_line(line):
        return TokenizedLine(text=line, line_number=line_number, type=LineType.SUMMARY)

    leading = extract_leading_date(line, language)
    if leading:
        iso_date, content = leading
        return TokenizedLine(
            text=line,
            line_number=line_number,
            type=LineType.TRANSACTION,
            starts_transaction=True,
            date=iso_date,
            content=content,
        )
    return TokenizedLine(text=line, line_number=line_number)


def detect_language(text: str) -> Language:
    """Score each language by keyword hits plus language-only month abbreviations.

    Ties and texts without any signal resolve to English.
    """
    lowered = text.lower()
    best = Language.EN
    best_score = 0
    for language, locale in LOCALES.items():
        score = sum(1 for keyword in locale.detection_keywords if keyword in lowered)
        if locale.month_hints and all(hint.search(lowered) for hint in locale.month_hints):
            score += 2
        if score > best_score:
            best, best_score = language, score
    return best


def identify_sections(lines: list[TokenizedLine]) -> Sections:
    sections = Sections()
    in_header = True
    for line in lines:
        if line.type in (LineType.HEADER, LineType.STATUS):
            (sections.header if in_header else sections.summary).append(line)
        elif line.type == LineType.SUMMARY:
            sections.summary.append(line)
        elif line.type in (LineType.TRANSACTION, LineType.FLIGHT_SEGMENT):
            in_header = False
            sections.transactions.append(line)
        elif not in_header:
            sections.transactions.append(line)
    return sections


def tokenize(text: str, language: Language | None = None) -> TokenizeResult:
    language = language or detect_language(text)
    lines = [
        tokenize_line(raw, number, language)
        for number, raw in enumerate(split_lines(text), start=1)
    ]
    return TokenizeResult(lines=lines, language=language, sections=identify_sections(lines))


def looks_like_new_transaction(line: str, language: Language | None = None) -> bool:
    """True when some 1..5 word prefix of ``line`` parses as a date.

    Unlike tokenization this accepts a line that is only a date, so
    "op 29 nov 2025" counts and callers decide whether it is a continuation.
    """
    if not looks_like_date(line):
        return False
    words = line.split()
    for n in range(1, min(5, len(words)) + 1):
        if parse_date(" ".join(words[:n]), language):
            return True
    return False


def transaction_groups(lines: list[TokenizedLine]) -> list[list[TokenizedLine]]:
    """Group each transaction line with the continuation lines that follow it."""
    groups: list[list[TokenizedLine]] = []
    current: list[TokenizedLine] = []
    for line in lines:
        if line.starts_transaction:
            if current:
                groups.append(current)
            current = [line]
        elif current:
            current.append(line)
    if current:
        groups.append(current)
    return groups
