from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from skystatus.modules.statement.dates import Clock, days_between, iso_timestamp
from skystatus.modules.statement.miles import miles_changes
from skystatus.modules.statement.types import (
    ConflictReason,
    ConflictResolution,
    ConflictType,
    FlightMatchStatus,
    FlightRecord,
    ImportConflict,
    ImportMeta,
    MilesMatchStatus,
    MilesRecord,
    OfficialBalances,
    ParsedFlight,
    ParsedMiles,
    QualificationSettings,
    ResolvedImportData,
    StatementImportResult,
)


@dataclass(frozen=True)
class ConflictConfig:
    fuzzy_threshold: float = 0.7
    date_tolerance_days: int = 1
    # Manually entered flights are never matched unless this is set.
    include_manual_entries: bool = False


@dataclass(frozen=True)
class FlightMatch:
    confidence: float
    reason: str

    def is_match(self, config: ConflictConfig) -> bool:
        return self.confidence >= config.fuzzy_threshold


class UnknownConflictError(ValueError):
    def __init__(self, conflict_ids: list[str]):
        super().__init__(f"Unknown conflict id(s): {', '.join(conflict_ids)}")
        self.conflict_ids = conflict_ids


def is_exact_flight_match(parsed: ParsedFlight, existing: FlightRecord) -> bool:
    return parsed.date == existing.date and parsed.route == existing.route


def score_flight_match(parsed: ParsedFlight, existing: FlightRecord, config: ConflictConfig) -> FlightMatch:
    """Weighted similarity: route 0.4, date 0.3 (0.2 within tolerance), airline 0.2, flight number 0.1."""
    score = 0.0
    reasons: list[str] = []

    if parsed.route == existing.route:
        score += 0.4
        reasons.append("same route")

    days = days_between(parsed.date, existing.date)
    if days == 0:
        score += 0.3
        reasons.append("same date")
    elif days <= config.date_tolerance_days:
        score += 0.2
        reasons.append(f"date within {days} day(s)")

    if parsed.airline == existing.airline:
        score += 0.2
        reasons.append("same airline")
    if parsed.flight_number == existing.flight_number:
        score += 0.1
        reasons.append("same flight number")

    return FlightMatch(confidence=round(score, 2), reason=", ".join(reasons))


def _matchable(existing: list[FlightRecord], config: ConflictConfig) -> list[FlightRecord]:
    if config.include_manual_entries:
        return existing
    return [flight for flight in existing if not flight.is_manual]


def best_flight_match(
    flight: ParsedFlight, candidates: list[FlightRecord], config: ConflictConfig
) -> tuple[FlightRecord, FlightMatch] | None:
    """Highest-scoring stored flight at or above the fuzzy threshold; ties keep the earlier record."""
    best: tuple[FlightRecord, FlightMatch] | None = None
    for record in candidates:
        match = score_flight_match(flight, record, config)
        if not match.is_match(config):
            continue
        if best is None or match.confidence > best[1].confidence:
            best = (record, match)
    return best


def mark_duplicates(flights: list[ParsedFlight], existing: list[FlightRecord], config: ConflictConfig) -> None:
    """Classify each parsed flight as duplicate, fuzzy match or new against stored flights."""
    candidates = _matchable(existing, config)
    for flight in flights:
        exact = next((record for record in existing if is_exact_flight_match(flight, record)), None)
        if exact:
            flight.status = FlightMatchStatus.DUPLICATE
            flight.matched_existing_id = exact.id
            flight.match_confidence = 1.0
            continue

        best = best_flight_match(flight, candidates, config)
        if best is None:
            flight.status = FlightMatchStatus.NEW
            flight.matched_existing_id = None
            flight.match_confidence = None
            continue
        record, match = best
        flight.status = FlightMatchStatus.FUZZY_MATCH
        flight.matched_existing_id = record.id
        flight.match_confidence = match.confidence


def detect_conflicts(
    flights: list[ParsedFlight],
    miles: list[ParsedMiles],
    existing_flights: list[FlightRecord],
    existing_miles: list[MilesRecord],
    config: ConflictConfig | None = None,
) -> list[ImportConflict]:
    """Conflicts for fuzzy-matched flights and changed months.

    Flight conflicts follow the marks left by ``mark_duplicates``: one conflict per
    FUZZY_MATCH flight, against the stored flight it was matched to.
    """
    config = config or ConflictConfig()
    by_id = {record.id: record for record in _matchable(existing_flights, config)}
    conflicts: list[ImportConflict] = []

    for flight in flights:
        if flight.status != FlightMatchStatus.FUZZY_MATCH:
            continue
        record = by_id.get(flight.matched_existing_id or "")
        if record is None:
            continue
        match = score_flight_match(flight, record, config)
        conflicts.append(
            ImportConflict(
                id=f"conflict-flight-{flight.id}",
                type=ConflictType.FLIGHT,
                reason=ConflictReason.FUZZY_MATCH,
                existing=record,
                incoming=flight,
                match_reason=match.reason,
                match_confidence=match.confidence,
            )
        )

    stored_months = {record.month: record for record in existing_miles}
    for month in miles:
        stored = stored_months.get(month.month)
        if stored is None or not miles_changes(month, stored):
            continue
        conflicts.append(
            ImportConflict(
                id=f"conflict-miles-{month.month}",
                type=ConflictType.MILES,
                reason=ConflictReason.DIFFERENT_VALUES,
                existing=stored,
                incoming=month,
                match_reason=f"Month {month.month} has different values",
                match_confidence=1.0,
            )
        )

    return conflicts


def apply_resolution(conflict: ImportConflict, resolution: ConflictResolution) -> ImportConflict:
    return dataclasses.replace(conflict, resolution=resolution)


def apply_resolutions(
    conflicts: list[ImportConflict], resolutions: dict[str, ConflictResolution]
) -> list[ImportConflict]:
    known = {conflict.id for conflict in conflicts}
    unknown = sorted(set(resolutions) - known)
    if unknown:
        raise UnknownConflictError(unknown)
    return [
        apply_resolution(conflict, resolutions[conflict.id]) if conflict.id in resolutions else conflict
        for conflict in conflicts
    ]


def parsed_flight_to_record(flight: ParsedFlight) -> FlightRecord:
    return FlightRecord(
        id=flight.id,
        date=flight.date,
        flight_number=flight.flight_number,
        route=flight.route,
        airline=flight.airline,
        earned_xp=flight.earned_xp,
        earned_miles=flight.earned_miles,
        saf_xp=flight.saf_xp,
        uxp=flight.uxp,
    )


def parsed_miles_to_record(miles: ParsedMiles) -> MilesRecord:
    sources = miles.sources
    return MilesRecord(
        month=miles.month,
        id=miles.existing_record_id,
        flight_miles=sources.flights.miles,
        subscription_miles=sources.subscription.miles,
        amex_miles=sources.credit_card.miles,
        hotel_miles=sources.hotel.miles,
        other_miles=sources.other.miles + sources.promo.miles,
        purchased_miles=sources.purchased.miles,
        transfer_miles=sources.transfer.miles,
        miles_debit=miles.debit,
        total_miles=miles.total_earned,
    )


def _flight_conflicts(conflicts: list[ImportConflict]) -> dict[str, ImportConflict]:
    return {
        conflict.incoming.id: conflict
        for conflict in conflicts
        if conflict.type == ConflictType.FLIGHT and isinstance(conflict.incoming, ParsedFlight)
    }


def _miles_conflicts(conflicts: list[ImportConflict]) -> dict[str, ImportConflict]:
    return {
        conflict.incoming.month: conflict
        for conflict in conflicts
        if conflict.type == ConflictType.MILES and isinstance(conflict.incoming, ParsedMiles)
    }


def flights_to_add(flights: list[ParsedFlight], conflicts: list[ImportConflict]) -> list[FlightRecord]:
    by_flight = _flight_conflicts(conflicts)
    out = []
    for flight in flights:
        if flight.status == FlightMatchStatus.DUPLICATE:
            continue
        conflict = by_flight.get(flight.id)
        if conflict is not None:
            if conflict.resolution in (ConflictResolution.USE_INCOMING, ConflictResolution.KEEP_BOTH):
                out.append(parsed_flight_to_record(flight))
        elif flight.status == FlightMatchStatus.NEW:
            out.append(parsed_flight_to_record(flight))
    return out


def miles_to_merge(miles: list[ParsedMiles], conflicts: list[ImportConflict]) -> list[MilesRecord]:
    # One record per month, so keep_both is treated like keep_existing.
    by_month = _miles_conflicts(conflicts)
    out = []
    for month in miles:
        conflict = by_month.get(month.month)
        if conflict is not None:
            if conflict.resolution == ConflictResolution.USE_INCOMING:
                out.append(parsed_miles_to_record(month))
        elif month.status == MilesMatchStatus.NEW:
            out.append(parsed_miles_to_record(month))
    return out


def resolve_import(
    parsed: StatementImportResult,
    conflicts: list[ImportConflict],
    clock: Clock | None = None,
) -> ResolvedImportData:
    """Turn a parse result and resolved conflicts into the batch to persist."""
    flights = flights_to_add(parsed.flights, conflicts)
    miles = miles_to_merge(parsed.miles, conflicts)

    qualification = None
    if parsed.status is not None:
        qualification = QualificationSettings(
            cycle_start_month=parsed.status.cycle_start_month,
            starting_status=parsed.status.current_status,
            starting_xp=parsed.status.rollover_xp,
            cycle_start_date=parsed.status.cycle_start_date,
        )

    return ResolvedImportData(
        flights_to_add=flights,
        miles_to_merge=miles,
        qualification_settings=qualification,
        bonus_xp_by_month={month: xp for month, xp in parsed.xp.bonus_by_month.items() if xp > 0},
        official_balances=OfficialBalances(
            xp=parsed.xp.official,
            uxp=parsed.uxp.official,
            miles=parsed.official_miles_balance or 0,
        ),
        import_meta=ImportMeta(
            timestamp=iso_timestamp(clock),
            flights_added=len(flights),
            miles_updated=len(miles),
            language=parsed.meta.language,
        ),
    )
