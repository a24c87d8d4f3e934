from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from skystatus.modules.statement.types import Currency


@dataclass(frozen=True)
class CurrencyFormat:
    code: Currency
    symbol: str
    symbol_position: Literal["before", "after"]
    decimal_separator: str
    thousands_separator: str
    patterns: tuple[str, ...]


# Detection walks this list in order; the first pattern hit wins.
CURRENCIES: tuple[CurrencyFormat, ...] = (
    CurrencyFormat(Currency.EUR, "€", "before", ",", ".", ("€", "eur", "euro", "euros")),
    CurrencyFormat(Currency.USD, "$", "before", ".", ",", ("$", "usd", "dollar", "dollars", "us$")),
    CurrencyFormat(Currency.GBP, "£", "before", ".", ",", ("£", "gbp", "pound", "pounds", "sterling")),
    CurrencyFormat(Currency.CAD, "C$", "before", ".", ",", ("c$", "cad", "can$", "canadian dollar")),
    CurrencyFormat(Currency.CHF, "CHF", "after", ".", "'", ("chf", "sfr", "swiss franc", "francs suisses")),
    CurrencyFormat(Currency.AUD, "A$", "before", ".", ",", ("a$", "aud", "au$", "australian dollar")),
    CurrencyFormat(Currency.SEK, "kr", "after", ",", " ", ("sek", "kr", "swedish krona", "svenska kronor")),
    CurrencyFormat(Currency.NOK, "kr", "after", ",", " ", ("nok", "norwegian krone", "norske kroner")),
    CurrencyFormat(Currency.DKK, "kr", "after", ",", ".", ("dkk", "danish krone", "danske kroner")),
    CurrencyFormat(Currency.PLN, "zł", "after", ",", " ", ("pln", "zł", "zloty", "złoty", "złotych")),
)

CURRENCY_FORMATS: dict[Currency, CurrencyFormat] = {fmt.code: fmt for fmt in CURRENCIES}

_SYMBOLS_RE = re.compile(r"[€$£]")
_CODES_RE = re.compile(r"\s*(eur|usd|gbp|cad|chf|aud|sek|nok|dkk|pln|kr|zł)\s*", re.I)
_AMOUNT_RE = re.compile(r"^-?\d+(?:\.\d+)?")
_NOT_LETTER_BEFORE = r"(?<![^\W\d_])"
_NOT_LETTER_AFTER = r"(?![^\W\d_])"


def _pattern_re(pattern: str) -> re.Pattern[str]:
    # Codes and words must stand alone: "kr" never matches inside "Kraków".
    body = re.escape(pattern)
    if pattern[-1].isalpha():
        body += _NOT_LETTER_AFTER
    return re.compile(_NOT_LETTER_BEFORE + body, re.I)


# Longest name first, so "canadian dollar" beats "dollar"; ties keep table order.
_WORD_PATTERNS: tuple[tuple[Currency, re.Pattern[str]], ...] = tuple(
    (code, _pattern_re(pattern))
    for code, pattern in sorted(
        ((fmt.code, p) for fmt in CURRENCIES for p in fmt.patterns if p[0].isalpha()),
        key=lambda item: -len(item[1]),
    )
)

# A bare "$" only counts when no letter prefix (C$, A$, US$) claims it.
_SYMBOL_PATTERNS: tuple[tuple[Currency, re.Pattern[str]], ...] = (
    (Currency.EUR, re.compile("€")),
    (Currency.GBP, re.compile("£")),
    (Currency.USD, re.compile(_NOT_LETTER_BEFORE + r"\$")),
)


def detect_currency(text: str) -> Currency | None:
    """Currency named by a code or word first, then by a bare symbol."""
    for code, pattern in _WORD_PATTERNS:
        if pattern.search(text):
            return code
    for code, pattern in _SYMBOL_PATTERNS:
        if pattern.search(text):
            return code
    return None


def parse_currency_amount(text: str, currency: Currency | None = None) -> float | None:
    cleaned = _CODES_RE.sub("", _SYMBOLS_RE.sub("", text)).strip()

    if currency is not None:
        fmt = CURRENCY_FORMATS[currency]
        if fmt.thousands_separator:
            cleaned = cleaned.replace(fmt.thousands_separator, "")
        if fmt.decimal_separator == ",":
            cleaned = cleaned.replace(",", ".", 1)
    elif re.match(r"^\d{1,3}(\.\d{3})+,\d{2}$", cleaned):
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif re.match(r"^\d{1,3}(,\d{3})+\.\d{2}$", cleaned):
        cleaned = cleaned.replace(",", "")
    elif re.match(r"^\d+,\d{2}$", cleaned):
        cleaned = cleaned.replace(",", ".")

    match = _AMOUNT_RE.match(cleaned)
    return float(match.group(0)) if match else None


def format_currency(amount: float, currency: Currency) -> str:
    fmt = CURRENCY_FORMATS[currency]
    formatted = f"{amount:,.2f}"
    if fmt.symbol_position == "before":
        return f"{fmt.symbol}{formatted}"
    return f"{formatted} {fmt.symbol}"
