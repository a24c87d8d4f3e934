from __future__ import annotations

import re

from skystatus.modules.statement.dates import extract_leading_date, month_key
from skystatus.modules.statement.locales import ANY_TRIP_HEADER
from skystatus.modules.statement.numbers import statement_amounts
from skystatus.modules.statement.tokenizer import SEGMENT_PREFIX_RE
from skystatus.modules.statement.types import Language, ParsedFlight, XPEntry, XPExtraction, XPSource

# Checked in this order; ``flight`` is last so bonus wording wins over generic flight wording.
XP_SOURCE_PATTERNS: tuple[tuple[XPSource, re.Pattern[str]], ...] = (
    (XPSource.SAF, re.compile(r"Sustainable\s+Aviation\s+Fuel|\bSAF\b|duurzaam", re.I)),
    (
        XPSource.FIRST_FLIGHT,
        re.compile(r"first\s+flight|eerste\s+vlucht|premier\s+vol|welcome|bienvenue|welkom", re.I),
    ),
    (XPSource.HOTEL, re.compile(r"hotel|accor|ALL-|booking\.com|marriott|hilton|accommodation", re.I)),
    (
        XPSource.CREDIT_CARD,
        re.compile(r"credit\s*card|creditcard|amex|american\s+express|mastercard|visa|kaart|carte", re.I),
    ),
    (XPSource.PROMO, re.compile(r"promo|promotion|bonus|offer|offre|aanbieding|campaign", re.I)),
    (XPSource.FLIGHT, re.compile(r"gespaarde\s+xp|earned\s+xp|vlucht\s+xp|flight\s+xp", re.I)),
)

# XP-counter bookkeeping: deductions at level-up and carried surplus are not earned XP.
COUNTER_LINE_RE = re.compile(
    r"XP[.-]?teller|XP[.-]?Counter|Surplus\s+XP|XP\s+excédentaire|compteur|Zähler",
    re.I,
)


def detect_xp_source(description: str, language: Language | None = None) -> XPSource:
    for source, pattern in XP_SOURCE_PATTERNS:
        if pattern.search(description):
            return source
    return XPSource.OTHER


def _flight_entries(flight: ParsedFlight) -> list[XPEntry]:
    month = month_key(flight.date)
    entries = [
        XPEntry(
            month=month,
            source=XPSource.FLIGHT,
            amount=flight.earned_xp,
            uxp_amount=flight.uxp,
            description=f"Flight {flight.flight_number} {flight.route}",
            date=flight.date,
        )
    ]
    if flight.saf_xp > 0:
        entries.append(
            XPEntry(
                month=month,
                source=XPSource.SAF,
                amount=flight.saf_xp,
                uxp_amount=0,
                description=f"SAF bonus for {flight.flight_number}",
                date=flight.date,
            )
        )
    return entries


def extract_xp(lines: list[str], flights: list[ParsedFlight], language: Language) -> XPExtraction:
    """Collect flight XP from ``flights`` and bonus XP from dated non-flight lines."""
    result = XPExtraction()

    for flight in flights:
        result.from_flights += flight.earned_xp
        result.from_saf += flight.saf_xp
        result.total_uxp += flight.uxp
        result.entries.extend(_flight_entries(flight))

    for line in lines:
        if SEGMENT_PREFIX_RE.match(line):
            continue
        leading = extract_leading_date(line, language)
        if not leading:
            continue
        iso_date, content = leading
        if ANY_TRIP_HEADER.search(content) or COUNTER_LINE_RE.search(content):
            continue

        amounts = statement_amounts(content)
        if amounts.xp <= 0:
            continue
        source = detect_xp_source(content, language)
        if source == XPSource.FLIGHT:
            continue

        month = month_key(iso_date)
        result.entries.append(
            XPEntry(
                month=month,
                source=source,
                amount=amounts.xp,
                uxp_amount=amounts.uxp,
                description=content[:100],
                date=iso_date,
            )
        )
        result.bonus_xp_by_month[month] = result.bonus_xp_by_month.get(month, 0) + amounts.xp
        result.from_bonus += amounts.xp
        result.total_uxp += amounts.uxp

    return result


def total_xp(entries: list[XPEntry]) -> int:
    return sum(entry.amount for entry in entries)


def group_xp_by_source(entries: list[XPEntry]) -> dict[XPSource, int]:
    grouped = {source: 0 for source in XPSource}
    for entry in entries:
        grouped[entry.source] += entry.amount
    return grouped


def group_xp_by_month(entries: list[XPEntry]) -> dict[str, int]:
    grouped: dict[str, int] = {}
    for entry in entries:
        grouped[entry.month] = grouped.get(entry.month, 0) + entry.amount
    return grouped
