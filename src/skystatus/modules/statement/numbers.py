from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

NumberFormat = Literal["european", "us", "unknown"]

_NON_NUMERIC_RE = re.compile(r"[^\d.,+-]")
_NUMBER_TOKEN_RE = re.compile(r"-?\d[\d.,]*")

MILES_RE = re.compile(r"(-?\d[\d\s.,]*)\s*Miles", re.I)
UXP_RE = re.compile(r"(\d+)\s*UXP", re.I)
# "5 XP 5 UXP": the XP amount must not be the one that belongs to UXP.
XP_RE = re.compile(r"(-?\d+)\s*XP(?!\s*U)", re.I)
_ANY_XP_RE = re.compile(r"(-?\d+)\s*XP", re.I)


@dataclass(frozen=True)
class StatementAmounts:
    miles: int = 0
    xp: int = 0
    uxp: int = 0


def statement_amounts(text: str) -> StatementAmounts:
    """Read the ``<n> Miles <n> XP <n> UXP`` triple printed on statement lines."""
    miles = xp = uxp = 0
    miles_match = MILES_RE.search(text)
    if miles_match:
        miles = strip_separators(miles_match.group(1))
    uxp_match = UXP_RE.search(text)
    if uxp_match:
        uxp = int(uxp_match.group(1))
    xp_match = XP_RE.search(text) or _ANY_XP_RE.search(text)
    if xp_match:
        xp = int(xp_match.group(1))
    return StatementAmounts(miles=miles, xp=xp, uxp=uxp)


def detect_number_format(text: str) -> NumberFormat:
    """Guess which separator convention a numeric token uses.

    European writes 1.234,56 and US writes 1,234.56. A bare trailing two-digit
    group after one separator decides when no full pattern is present.
    """
    if re.search(r"\d\.\d{3},\d", text):
        return "european"
    if re.search(r"\d,\d{3}\.\d", text):
        return "us"
    comma_decimals = re.search(r"\d,\d{2}$", text) is not None
    dot_decimals = re.search(r"\d\.\d{2}$", text) is not None
    if comma_decimals and not dot_decimals:
        return "european"
    if dot_decimals and not comma_decimals:
        return "us"
    return "unknown"


def _normalize_unknown(cleaned: str) -> str:
    dots = cleaned.count(".")
    commas = cleaned.count(",")

    if dots == 1 and commas == 0:
        if re.search(r"\.\d{3}$", cleaned):
            return cleaned.replace(".", "")
        return cleaned
    if commas == 1 and dots == 0:
        if re.search(r",\d{1,2}$", cleaned):
            return cleaned.replace(",", ".")
        if re.search(r",\d{3}$", cleaned):
            return cleaned.replace(",", "")
        return cleaned

    last_dot = cleaned.rfind(".")
    last_comma = cleaned.rfind(",")
    if last_dot > last_comma and re.search(r"\.\d{1,2}$", cleaned):
        return cleaned.replace(",", "")
    if last_comma > last_dot and re.search(r",\d{1,2}$", cleaned):
        return cleaned.replace(".", "").replace(",", ".")
    return cleaned.replace(".", "").replace(",", "")


def parse_number(text: str | None, hint: NumberFormat | None = None) -> float | None:
    if not text:
        return None
    cleaned = _NON_NUMERIC_RE.sub("", text).strip()
    if not cleaned:
        return None

    negative = cleaned.startswith("-")
    cleaned = cleaned.lstrip("+-")

    number_format = hint or detect_number_format(cleaned)
    if number_format == "european":
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    elif number_format == "us":
        cleaned = cleaned.replace(",", "")
    else:
        cleaned = _normalize_unknown(cleaned)

    match = re.match(r"\d+(?:\.\d+)?", cleaned)
    if not match:
        return None
    value = float(match.group(0))
    return -value if negative else value


def parse_integer(text: str | None) -> int | None:
    value = parse_number(text)
    if value is None:
        return None
    # Half away from zero; statements never print fractional points.
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def parse_xp_amount(text: str) -> int | None:
    return parse_integer(re.sub(r"xp", "", text, flags=re.I).strip())


def parse_miles_amount(text: str) -> int | None:
    return parse_integer(re.sub(r"miles?", "", text, flags=re.I).strip())


def extract_numbers(text: str) -> list[float]:
    out: list[float] = []
    for token in _NUMBER_TOKEN_RE.findall(text):
        value = parse_number(token)
        if value is not None:
            out.append(value)
    return out


def strip_separators(raw: str) -> int:
    """Parse an integer amount printed with any thousands separator (space, dot, comma)."""
    raw = raw.strip()
    negative = raw.startswith("-")
    digits = re.sub(r"\D", "", raw)
    if not digits:
        return 0
    value = int(digits)
    return -value if negative else value
