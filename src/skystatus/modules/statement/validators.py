from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from skystatus.modules.statement.types import (
    STATUS_ORDER,
    STATUS_THRESHOLDS,
    FlightRecord,
    MilesRecord,
    ParsedFlight,
    ParsedMiles,
    StatusLevel,
)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_ROUTE_RE = re.compile(r"^[A-Z]{3}-[A-Z]{3}$", re.I)
_AIRPORT_RE = re.compile(r"^[A-Z]{3}$", re.I)
_FLIGHT_NUMBER_RE = re.compile(r"^[A-Z]{2}\s?\d{1,4}$", re.I)
_LOOSE_FLIGHT_NUMBER_RE = re.compile(r"^[A-Z]{2}\d+$", re.I)

MAX_FLIGHT_XP = 100
MAX_MONTHLY_MILES = 1_000_000


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def is_valid_date(value: str) -> bool:
    if not _ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_month(value: str) -> bool:
    if not _MONTH_RE.match(value):
        return False
    year, month = (int(part) for part in value.split("-"))
    return 2000 <= year <= 2100 and 1 <= month <= 12


def is_valid_airport_code(code: str) -> bool:
    return bool(_AIRPORT_RE.match(code))


def is_valid_route(route: str) -> bool:
    return bool(_ROUTE_RE.match(route))


def is_valid_flight_number(flight_number: str) -> bool:
    return bool(_FLIGHT_NUMBER_RE.match(flight_number))


def is_valid_status(value: str) -> bool:
    return value in {status.value for status in STATUS_ORDER}


def validate_parsed_flight(flight: ParsedFlight) -> ValidationResult:
    result = ValidationResult()
    if not flight.date:
        result.errors.append("Missing date")
    if not flight.flight_number:
        result.errors.append("Missing flight number")
    if not flight.route:
        result.errors.append("Missing route")

    if flight.date:
        if not _ISO_DATE_RE.match(flight.date):
            result.errors.append(f"Invalid date format: {flight.date}")
        elif not 2000 <= int(flight.date[:4]) <= 2100:
            result.errors.append(f"Date out of range: {flight.date}")

    if flight.flight_number and not _LOOSE_FLIGHT_NUMBER_RE.match(flight.flight_number.replace(" ", "")):
        result.warnings.append(f"Unusual flight number format: {flight.flight_number}")
    if flight.route and not is_valid_route(flight.route):
        result.warnings.append(f"Unusual route format: {flight.route}")

    if flight.earned_xp < 0:
        result.errors.append("Negative XP")
    if flight.earned_miles < 0:
        result.errors.append("Negative Miles")
    if flight.saf_xp < 0:
        result.errors.append("Negative SAF XP")
    if flight.earned_xp > MAX_FLIGHT_XP:
        result.warnings.append(f"Unusually high XP: {flight.earned_xp}")
    return result


def validate_flight_record(flight: FlightRecord) -> ValidationResult:
    result = ValidationResult()
    for label, value in (
        ("ID", flight.id),
        ("date", flight.date),
        ("flight number", flight.flight_number),
        ("route", flight.route),
        ("airline", flight.airline),
    ):
        if not value:
            result.errors.append(f"Missing {label}")
    return result


def validate_parsed_miles(miles: ParsedMiles) -> ValidationResult:
    result = ValidationResult()
    if not miles.month:
        result.errors.append("Missing month")
    elif not _MONTH_RE.match(miles.month):
        result.errors.append(f"Invalid month format: {miles.month}")

    if miles.total_earned < 0:
        result.errors.append("Negative total earned")
    if miles.debit < 0:
        result.warnings.append("Negative debit (unusual but possible)")

    source_total = miles.sources.non_flight_miles()
    if abs(source_total - miles.total_earned) > 1:
        result.warnings.append(
            f"Source total ({source_total}) doesn't match total earned ({miles.total_earned})"
        )
    if miles.total_earned > MAX_MONTHLY_MILES:
        result.warnings.append(f"Unusually high miles earned: {miles.total_earned}")
    return result


def validate_miles_record(miles: MilesRecord) -> ValidationResult:
    result = ValidationResult()
    if not miles.month:
        result.errors.append("Missing month")
    elif not _MONTH_RE.match(miles.month):
        result.errors.append(f"Invalid month format: {miles.month}")
    return result


def validate_xp_for_status(xp: int, status: StatusLevel) -> ValidationResult:
    """Warn when ``xp`` sits outside the band of ``status``; never an error."""
    result = ValidationResult()
    minimum = STATUS_THRESHOLDS[status]
    if xp < minimum:
        result.warnings.append(f"XP ({xp}) is below minimum for {status.value} ({minimum})")
    index = STATUS_ORDER.index(status)
    if index < len(STATUS_ORDER) - 1:
        ceiling = STATUS_THRESHOLDS[STATUS_ORDER[index + 1]] - 1
        if xp > ceiling:
            result.warnings.append(f"XP ({xp}) is above threshold for next status")
    return result
