from __future__ import annotations

import re
from typing import Literal

from skystatus.modules.statement.dates import extract_leading_date, month_key
from skystatus.modules.statement.locales import detect_transaction_category
from skystatus.modules.statement.numbers import statement_amounts
from skystatus.modules.statement.types import (
    Language,
    MilesChange,
    MilesMatchStatus,
    MilesRecord,
    ParsedFlight,
    ParsedMiles,
)

MilesSource = Literal[
    "flights",
    "subscription",
    "creditCard",
    "hotel",
    "transfer",
    "promo",
    "purchased",
    "shopping",
    "partner",
    "debit",
    "other",
]

# Checked top to bottom; the first source with a matching pattern wins.
MILES_SOURCE_PATTERNS: dict[MilesSource, tuple[re.Pattern[str], ...]] = {
    "flights": (
        re.compile(r"Mijn\s+reis|My\s+trip|Mon\s+voyage|Meine\s+Reise|Mi\s+viaje|Minha\s+viagem|Mio\s+viaggio", re.I),
        re.compile(r"gespaarde\s+miles|earned\s+miles|miles\s+acquis|gesammelte\s+meilen", re.I),
    ),
    "subscription": (
        re.compile(r"Subscribe\s+to\s+Miles|Miles\s*Complete", re.I),
        re.compile(r"Flying\s+Blue\+|FB\+", re.I),
        re.compile(r"abonnement|subscription", re.I),
    ),
    "creditCard": (
        re.compile(r"Mastercard|Visa|Express|Amex|Diners|Discover|Credit|Debit|Betaal", re.I),
        re.compile(r"kaart|carte|tarjeta|card|co-?brand", re.I),
        re.compile(r"Miles\s+(?:earn|on|from|voor)", re.I),
        re.compile(r"expenses|uitgaven|purchases|aankopen|spending|spend|transactions?", re.I),
    ),
    "hotel": (
        re.compile(r"Hotel|BOOKING\.COM|Accor|ALL-|Marriott|Hilton|IHG|Hyatt|Radisson", re.I),
        re.compile(r"accommodation|hébergement|alojamiento", re.I),
    ),
    "transfer": (
        re.compile(r"transfer|overdragen|transfert|übertragung|trasferimento", re.I),
        re.compile(r"points\s+transfer|partner\s+transfer", re.I),
    ),
    "promo": (
        re.compile(r"promo|promotion|bonus|offer|offre|aanbieding", re.I),
        re.compile(r"welcome|bienvenue|welkom", re.I),
        re.compile(r"campaign|campagne|actie", re.I),
    ),
    "purchased": (
        re.compile(r"purchase|bought|buy|achat|kauf|compra|acquisto", re.I),
        re.compile(r"gekocht|acheté|purchased\s+miles", re.I),
    ),
    "shopping": (re.compile(r"Winkelen|Shopping|SHOP|AMAZON|retail|store", re.I),),
    "partner": (
        re.compile(r"RevPoints|REVOLUT|Batavia", re.I),
        re.compile(r"partner\s+miles", re.I),
    ),
    "debit": (
        re.compile(r"upgrade|award|Lastminute", re.I),
        re.compile(r"bestede|spent|dépensé|ausgegeben|gastado|gasto|speso", re.I),
    ),
}

# Language keyword categories consulted for lines no pattern above recognises.
_CATEGORY_SOURCES: dict[str, MilesSource] = {
    "debit": "debit",
    "creditCard": "creditCard",
    "hotel": "hotel",
    "subscription": "subscription",
    "transfer": "transfer",
    "promo": "promo",
    "purchase": "purchased",
}

_FLIGHT_CONTENT_RE = re.compile(r"Mijn\s+reis|My\s+trip|Mon\s+voyage|Sustainable|reisafstand|boekingsklasse", re.I)
_SEGMENT_CONTENT_RE = re.compile(r"^[A-Z]{3}\s*[-–]\s*[A-Z]{3}")
_BONUS_XP_RE = re.compile(r"first\s+flight|MILES\+POINTS|bonus.*XP|XP.*bonus", re.I)


def detect_miles_source(description: str, language: Language | None = None) -> MilesSource:
    for source, patterns in MILES_SOURCE_PATTERNS.items():
        if any(pattern.search(description) for pattern in patterns):
            return source
    category = detect_transaction_category(description, language) if language else None
    return _CATEGORY_SOURCES.get(category or "", "other")


def _month(records: dict[str, ParsedMiles], key: str) -> ParsedMiles:
    if key not in records:
        records[key] = ParsedMiles(month=key)
    return records[key]


def extract_miles(lines: list[str], language: Language) -> list[ParsedMiles]:
    """Aggregate dated non-flight transactions into one record per calendar month."""
    records: dict[str, ParsedMiles] = {}

    for line in lines:
        leading = extract_leading_date(line, language)
        if not leading:
            continue
        iso_date, content = leading
        if _FLIGHT_CONTENT_RE.search(content) or _SEGMENT_CONTENT_RE.match(content):
            continue

        amounts = statement_amounts(content)
        miles, xp = amounts.miles, amounts.xp
        record = _month(records, month_key(iso_date))
        sources = record.sources
        source = detect_miles_source(content, language)

        if source == "flights":
            continue
        if source == "subscription":
            if miles > 0:
                sources.subscription.miles += miles
        elif source == "creditCard":
            if miles > 0:
                sources.credit_card.miles += miles
            elif miles < 0:
                record.debit += -miles
            if xp > 0:
                record.total_xp += xp
        elif source == "hotel":
            if miles > 0:
                sources.hotel.miles += miles
            if xp > 0:
                record.total_xp += xp
        elif source == "transfer":
            if miles > 0:
                sources.transfer.miles += miles
            elif miles < 0:
                record.debit += -miles
        elif source == "promo":
            if miles > 0:
                sources.promo.miles += miles
            if xp > 0:
                record.total_xp += xp
        elif source == "purchased":
            if miles > 0:
                sources.purchased.miles += miles
        elif source == "debit":
            if miles < 0:
                record.debit += -miles
        else:
            if miles < 0:
                record.debit += -miles
            elif miles > 0:
                sources.other.miles += miles
            if xp > 0 and _BONUS_XP_RE.search(content):
                record.total_xp += xp

    result = sorted(records.values(), key=lambda record: record.month)
    for record in result:
        record.total_earned = record.sources.non_flight_miles()
    return result


def merge_flight_miles(miles: list[ParsedMiles], flights: list[ParsedFlight]) -> list[ParsedMiles]:
    """Fold flight miles and XP into the ``flights`` bucket of each month.

    ``total_earned`` stays the sum of the non-flight buckets.
    """
    by_month = {record.month: record for record in miles}
    for flight in flights:
        record = _month(by_month, month_key(flight.date))
        record.sources.flights.miles += flight.earned_miles
        record.sources.flights.xp += flight.earned_xp
    return sorted(by_month.values(), key=lambda record: record.month)


def miles_changes(parsed: ParsedMiles, existing: MilesRecord) -> list[MilesChange]:
    sources = parsed.sources
    pairs = (
        ("flights", existing.flight_miles, sources.flights.miles),
        ("subscription", existing.subscription_miles, sources.subscription.miles),
        ("creditCard", existing.amex_miles, sources.credit_card.miles),
        ("hotel", existing.hotel_miles, sources.hotel.miles),
        ("other", existing.other_miles, sources.other.miles + sources.promo.miles),
        ("purchased", existing.purchased_miles, sources.purchased.miles),
        ("transfer", existing.transfer_miles, sources.transfer.miles),
        ("debit", existing.miles_debit, parsed.debit),
    )
    return [
        MilesChange(field=name, old_value=old, new_value=new)
        for name, old, new in pairs
        if old != new
    ]


def mark_miles_changes(miles: list[ParsedMiles], existing: list[MilesRecord]) -> None:
    by_month = {record.month: record for record in existing}
    for record in miles:
        stored = by_month.get(record.month)
        if stored is None:
            record.status = MilesMatchStatus.NEW
            continue
        record.existing_record_id = stored.id or stored.month
        record.changes = miles_changes(record, stored)
        record.status = MilesMatchStatus.HAS_CHANGES if record.changes else MilesMatchStatus.UNCHANGED
