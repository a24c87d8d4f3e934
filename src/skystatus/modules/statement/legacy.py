"""Flattened parse output for callers written against the first statement importer.

Everything here is derived from the same extractors as ``parser``; only the
shape of the result differs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from skystatus.core.logging import get_logger, log_exception
from skystatus.modules.statement.balances import extract_balances
from skystatus.modules.statement.flights import extract_flights
from skystatus.modules.statement.miles import extract_miles, merge_flight_miles
from skystatus.modules.statement.status import detect_status
from skystatus.modules.statement.tokenizer import MEMBER_NUMBER_RE, split_lines, tokenize
from skystatus.modules.statement.types import FlightRecord, LineType, MilesRecord, StatusLevel, TokenizedLine
from skystatus.modules.statement.xp import extract_xp

logger = get_logger(__name__)


@dataclass
class LegacyFlight:
    date: str
    flight_number: str
    route: str
    airline: str
    earned_miles: int
    earned_xp: int
    saf_xp: int = 0


@dataclass
class LegacyMilesBreakdown:
    flights: int = 0
    shopping: int = 0
    credit_card: int = 0
    partner: int = 0
    promo: int = 0
    other: int = 0
    misc_xp: int = 0


@dataclass
class LegacyMilesMonth:
    month: str
    earned: int
    spent: int
    expired: int = 0
    balance: int = 0
    breakdown: LegacyMilesBreakdown = field(default_factory=LegacyMilesBreakdown)


@dataclass
class LegacyRequalification:
    date: str
    new_status: StatusLevel | None = None


@dataclass
class LegacyParseResult:
    flights: list[LegacyFlight] = field(default_factory=list)
    miles: list[LegacyMilesMonth] = field(default_factory=list)
    member_name: str | None = None
    member_number: str | None = None
    status: str | None = None
    total_miles: int | None = None
    total_xp: int | None = None
    total_uxp: int | None = None
    errors: list[str] = field(default_factory=list)
    oldest_date: str | None = None
    newest_date: str | None = None
    requalifications: list[LegacyRequalification] = field(default_factory=list)


def _member(lines: list[TokenizedLine]) -> tuple[str | None, str | None]:
    name = number = None
    for line in lines:
        if line.type != LineType.HEADER:
            continue
        match = MEMBER_NUMBER_RE.search(line.text)
        if match:
            number = number or match.group(1)
        elif name is None:
            name = line.text.strip()
    return name, number


def parse_text_compat(text: str) -> LegacyParseResult:
    try:
        tokenized = tokenize(text)
        language = tokenized.language
        raw_lines = split_lines(text)

        flights = extract_flights(raw_lines, language)
        miles = merge_flight_miles(extract_miles(raw_lines, language), flights)
        xp = extract_xp(raw_lines, flights, language)
        status = detect_status(tokenized.lines, language)
        balances = extract_balances(tokenized.lines, language)
    except Exception as exc:
        log_exception(logger, "statement.legacy_parse.failure")
        return LegacyParseResult(errors=[str(exc) or "Unknown parsing error"])

    legacy_miles = []
    for month in miles:
        sources = month.sources
        non_flight = sources.non_flight_miles()
        legacy_miles.append(
            LegacyMilesMonth(
                month=month.month,
                earned=non_flight + sources.flights.miles,
                spent=month.debit,
                breakdown=LegacyMilesBreakdown(
                    flights=sources.flights.miles,
                    credit_card=sources.credit_card.miles,
                    promo=sources.promo.miles,
                    other=non_flight - sources.credit_card.miles - sources.promo.miles,
                    misc_xp=xp.bonus_xp_by_month.get(month.month, 0),
                ),
            )
        )

    dates = sorted(flight.date for flight in flights if flight.date)
    member_name, member_number = _member(tokenized.lines)
    return LegacyParseResult(
        flights=[
            LegacyFlight(
                date=f.date,
                flight_number=f.flight_number,
                route=f.route,
                airline=f.airline,
                earned_miles=f.earned_miles,
                earned_xp=f.earned_xp,
                saf_xp=f.saf_xp,
            )
            for f in flights
        ],
        miles=legacy_miles,
        member_name=member_name,
        member_number=member_number,
        status=status.current_status.value if status else None,
        total_miles=balances.miles,
        total_xp=status.current_xp if status else balances.xp,
        total_uxp=status.current_uxp if status else balances.uxp,
        oldest_date=dates[0] if dates else None,
        newest_date=dates[-1] if dates else None,
        requalifications=[
            LegacyRequalification(date=event.date, new_status=event.to_status)
            for event in (status.requalifications if status else [])
        ],
    )


def to_flight_records_compat(flights: list[LegacyFlight]) -> list[FlightRecord]:
    return [
        FlightRecord(
            id=f"pdf-{flight.date}-{flight.flight_number}-{index}",
            date=flight.date,
            flight_number=flight.flight_number,
            route=flight.route,
            airline=flight.airline,
            earned_xp=flight.earned_xp,
            earned_miles=flight.earned_miles,
            saf_xp=flight.saf_xp,
        )
        for index, flight in enumerate(flights)
    ]


def to_miles_records_compat(miles: list[LegacyMilesMonth]) -> list[MilesRecord]:
    records = []
    for month in miles:
        breakdown = month.breakdown
        records.append(
            MilesRecord(
                month=month.month,
                flight_miles=breakdown.flights,
                amex_miles=breakdown.credit_card,
                other_miles=breakdown.shopping + breakdown.partner + breakdown.promo + breakdown.other,
                miles_debit=month.spent,
                total_miles=month.earned - breakdown.flights,
            )
        )
    return records


def extract_bonus_xp_compat(miles: list[LegacyMilesMonth]) -> dict[str, int]:
    return {month.month: month.breakdown.misc_xp for month in miles if month.breakdown.misc_xp > 0}
