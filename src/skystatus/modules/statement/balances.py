from __future__ import annotations

import re

from skystatus.modules.statement.locales import BalanceKind, get_locale
from skystatus.modules.statement.numbers import strip_separators
from skystatus.modules.statement.tokenizer import COMBINED_TOTALS_RE
from skystatus.modules.statement.types import (
    BalanceExtraction,
    Language,
    LineType,
    OfficialBalances,
    TokenizedLine,
)

MAX_XP_BALANCE = 1000
MIN_MILES_BALANCE = 100
MAX_MILES_BALANCE = 10_000_000

_AMOUNT_PATTERNS = (
    re.compile(r"(\d[\d\s.,]*)\s*(?:Miles|XP|UXP)", re.I),
    re.compile(r"(?:Miles|XP|UXP)[:\s]+(\d[\d\s.,]*)", re.I),
    re.compile(r"(\d[\d\s.,]+)"),
)
_DIRECT_XP_RE = re.compile(r"(\d+)\s*XP(?!\s*U)", re.I)
_DIRECT_UXP_RE = re.compile(r"(\d+)\s*UXP", re.I)
_DIRECT_MILES_RE = re.compile(r"(\d[\d\s.,]*)\s*Miles", re.I)

_LABEL_WEIGHT: dict[BalanceKind, float] = {"xp": 0.3, "uxp": 0.2, "miles": 0.3}
_DIRECT_WEIGHT = 0.2


def parse_balance_amount(text: str) -> int | None:
    for pattern in _AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            value = strip_separators(match.group(1))
            if value > 0:
                return value
    return None


def _in_range(kind: BalanceKind, value: int) -> bool:
    if kind == "miles":
        return value < MAX_MILES_BALANCE
    return value < MAX_XP_BALANCE


def _combined(lines: list[TokenizedLine]) -> BalanceExtraction | None:
    for line in lines:
        match = COMBINED_TOTALS_RE.search(line.text)
        if match:
            return BalanceExtraction(
                miles=strip_separators(match.group(1)),
                xp=int(match.group(2)),
                uxp=int(match.group(3)),
                confidence=1.0,
                source_lines={kind: line.line_number for kind in ("xp", "uxp", "miles")},
            )
    return None


def _direct(kind: BalanceKind, text: str) -> int | None:
    if kind == "xp":
        match = _DIRECT_XP_RE.search(text)
        if match and int(match.group(1)) < MAX_XP_BALANCE:
            return int(match.group(1))
    elif kind == "uxp":
        match = _DIRECT_UXP_RE.search(text)
        if match:
            return int(match.group(1))
    else:
        match = _DIRECT_MILES_RE.search(text)
        if match:
            value = strip_separators(match.group(1))
            if MIN_MILES_BALANCE < value < MAX_MILES_BALANCE:
                return value
    return None


def extract_balances(lines: list[TokenizedLine], language: Language) -> BalanceExtraction:
    """Read the official XP, UXP and Miles balances printed on the statement.

    The combined ``<miles> Miles <xp> XP <uxp> UXP`` header is authoritative
    (confidence 1.0). Without it, balance labels of the statement language and
    bare amounts on summary lines each add to the confidence score, capped at 1.0.
    """
    combined = _combined(lines)
    if combined:
        return combined

    result = BalanceExtraction()
    labels = get_locale(language).balance_labels
    kinds: tuple[BalanceKind, ...] = ("xp", "uxp", "miles")

    for line in lines:
        lowered = line.text.lower()
        for kind in kinds:
            if getattr(result, kind) is not None:
                continue
            if any(label in lowered for label in labels[kind]):
                amount = parse_balance_amount(line.text)
                if amount is not None and _in_range(kind, amount):
                    setattr(result, kind, amount)
                    result.source_lines[kind] = line.line_number
                    result.confidence += _LABEL_WEIGHT[kind]
                    continue
            if line.type != LineType.SUMMARY:
                continue
            amount = _direct(kind, line.text)
            if amount is not None:
                setattr(result, kind, amount)
                result.source_lines[kind] = line.line_number
                result.confidence += _DIRECT_WEIGHT

    result.confidence = min(round(result.confidence, 2), 1.0)
    return result


def to_official_balances(result: BalanceExtraction) -> OfficialBalances:
    return OfficialBalances(xp=result.xp or 0, uxp=result.uxp or 0, miles=result.miles or 0)


def find_balance(text: str, kind: BalanceKind, language: Language | None = None) -> int | None:
    lowered = text.lower()
    if any(label in lowered for label in get_locale(language).balance_labels[kind]):
        return parse_balance_amount(text)
    return None
