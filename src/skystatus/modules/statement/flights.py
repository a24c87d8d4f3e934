from __future__ import annotations

import re
from dataclasses import dataclass, field

from skystatus.modules.statement.dates import extract_leading_date, parse_date
from skystatus.modules.statement.locales import get_locale
from skystatus.modules.statement.numbers import StatementAmounts, statement_amounts
from skystatus.modules.statement.tokenizer import SEGMENT_PREFIX_RE, looks_like_new_transaction
from skystatus.modules.statement.types import Language, ParsedFlight, WarningCollector

# Carriers whose own flights earn UXP; everyone else is a partner.
QUALIFYING_CARRIERS = frozenset({"AF", "KL", "HV", "TO"})

SEGMENT_RE = re.compile(r"^([A-Z]{3})\s*[-–]\s*([A-Z]{3})\s+([A-Z]{2}\d{2,5})\s+(.+)$")
PARTNER_SEGMENT_RE = re.compile(
    r"^([A-Z]{3})\s*[-–]\s*([A-Z]{3})\s+([A-Z][A-Za-z\s]+?)(?:\s*[-–])?\s*"
    r"(?:gespaarde|earned|Miles|acquis|gesammelt)",
    re.I,
)
SAF_RE = re.compile(r"Sustainable\s+Aviation\s+Fuel", re.I)
FLOWN_ON_RE = re.compile(r"^(?:op|on|le|am)\s+(.+)", re.I)
_CONTINUATION_RE = re.compile(r"^(?:op|on|le|am)\s|Sustainable|gespaarde|reisafstand", re.I)

_PARTNER_NAMES = (
    ("TRANSAVIA", "HV"),
    ("DELTA", "DL"),
    ("SAS", "SK"),
    ("KOREAN", "KE"),
)

LOOKAHEAD_LINES = 4


def is_partner_flight(airline: str) -> bool:
    return airline.upper() not in QUALIFYING_CARRIERS


def infer_partner_airline(name: str) -> str:
    cleaned = name.strip().upper()
    for needle, code in _PARTNER_NAMES:
        if needle in cleaned:
            return code
    return cleaned[:2]


def is_continuation(line: str) -> bool:
    return bool(_CONTINUATION_RE.search(line) or SEGMENT_PREFIX_RE.match(line))


def ends_trip(line: str, language: Language | None = None) -> bool:
    return looks_like_new_transaction(line, language) and not is_continuation(line)


@dataclass
class TripAccumulator:
    segments: list[ParsedFlight] = field(default_factory=list)
    pending_saf_xp: int = 0


def _lookahead_amounts(lines: list[str], index: int, language: Language | None) -> StatementAmounts | None:
    for line in lines[index + 1 : index + 1 + LOOKAHEAD_LINES]:
        if SEGMENT_PREFIX_RE.match(line) or ends_trip(line, language):
            break
        amounts = statement_amounts(line)
        if amounts.miles > 0 or amounts.xp > 0:
            return amounts
    return None


def _flown_on(lines: list[str], index: int, default: str, language: Language | None) -> str:
    for line in lines[index + 1 : index + 1 + LOOKAHEAD_LINES]:
        if SEGMENT_PREFIX_RE.match(line):
            break
        match = FLOWN_ON_RE.match(line)
        if match:
            parsed = parse_date(match.group(1), language)
            if parsed:
                return parsed.full
    return default


def parse_segment(
    lines: list[str], index: int, trip_date: str, language: Language | None = None
) -> ParsedFlight | None:
    """Build a flight from the segment line at ``index``, or None if it is not one."""
    line = lines[index]
    standard = SEGMENT_RE.match(line)
    if standard:
        origin, destination, flight_number, rest = standard.groups()
        airline = flight_number[:2]
        amounts = statement_amounts(rest)
    else:
        partner = PARTNER_SEGMENT_RE.match(line)
        if not partner:
            return None
        origin, destination, airline_name = partner.groups()
        airline = infer_partner_airline(airline_name)
        flight_number = f"{airline}0000"
        amounts = statement_amounts(line)

    if amounts.miles == 0:
        amounts = _lookahead_amounts(lines, index, language) or amounts

    return ParsedFlight(
        id="",
        date=_flown_on(lines, index, trip_date, language),
        flight_number=flight_number,
        route=f"{origin.upper()}-{destination.upper()}",
        airline=airline,
        is_partner_flight=is_partner_flight(airline),
        earned_xp=amounts.xp,
        earned_miles=amounts.miles,
        uxp=amounts.uxp,
    )


def walk_trip(
    lines: list[str], index: int, trip_date: str, language: Language | None = None
) -> tuple[int, TripAccumulator]:
    """Consume the lines of one trip starting at ``index``.

    Returns the index of the first line that does not belong to the trip,
    together with the segments and SAF XP collected on the way.
    """
    acc = TripAccumulator()
    while index < len(lines):
        line = lines[index]
        if SAF_RE.search(line):
            acc.pending_saf_xp += statement_amounts(line).xp
            index += 1
            continue
        if ends_trip(line, language):
            break
        segment = parse_segment(lines, index, trip_date, language)
        if segment:
            acc.segments.append(segment)
        index += 1
    return index, acc


def finish_trip(acc: TripAccumulator, collector: WarningCollector, *, line: int | None = None) -> list[ParsedFlight]:
    if acc.pending_saf_xp:
        if acc.segments:
            # All SAF XP of a trip goes to its first segment.
            acc.segments[0].saf_xp = acc.pending_saf_xp
        else:
            collector.warn(
                "saf_without_segment",
                f"{acc.pending_saf_xp} SAF XP found on a trip without flight segments",
                line=line,
            )
    for flight in acc.segments:
        enforce_uxp_rules(flight, collector)
    return acc.segments


def enforce_uxp_rules(flight: ParsedFlight, collector: WarningCollector) -> None:
    if flight.uxp and flight.airline not in QUALIFYING_CARRIERS:
        collector.warn(
            "uxp_non_qualifying_carrier",
            f"Dropped {flight.uxp} UXP on {flight.flight_number}: {flight.airline} does not earn UXP",
        )
        flight.uxp = 0
    ceiling = max(flight.earned_xp + flight.saf_xp, 0)
    if flight.uxp > ceiling:
        collector.warn(
            "uxp_clamped",
            f"UXP on {flight.flight_number} clamped from {flight.uxp} to {ceiling}",
        )
        flight.uxp = ceiling


def assign_flight_ids(flights: list[ParsedFlight]) -> None:
    seen: dict[str, int] = {}
    for flight in flights:
        base = f"flight-{flight.date}-{flight.route}-{flight.flight_number}"
        seen[base] = seen.get(base, 0) + 1
        flight.id = base if seen[base] == 1 else f"{base}-{seen[base]}"


def extract_flights(
    lines: list[str],
    language: Language,
    collector: WarningCollector | None = None,
) -> list[ParsedFlight]:
    collector = collector if collector is not None else WarningCollector()
    trip_header = get_locale(language).trip_header
    flights: list[ParsedFlight] = []

    index = 0
    while index < len(lines):
        leading = extract_leading_date(lines[index], language)
        if leading and trip_header.search(leading[1]):
            start = index
            index, acc = walk_trip(lines, index + 1, leading[0], language)
            flights.extend(finish_trip(acc, collector, line=start + 1))
            continue
        index += 1

    assign_flight_ids(flights)
    flights.sort(key=lambda flight: flight.date, reverse=True)
    return flights
