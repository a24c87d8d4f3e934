from __future__ import annotations

import pytest

from skystatus.modules.statement.conflicts import (
    ConflictConfig,
    UnknownConflictError,
    apply_resolutions,
    detect_conflicts,
    flights_to_add,
    mark_duplicates,
    miles_to_merge,
    score_flight_match,
)
from skystatus.modules.statement.types import (
    ConflictResolution,
    ConflictType,
    FlightMatchStatus,
    FlightRecord,
    MilesMatchStatus,
    MilesRecord,
    ParsedFlight,
    ParsedMiles,
)


def _parsed(date: str = "2025-11-15", route: str = "BKK-AMS", number: str = "KL0844") -> ParsedFlight:
    return ParsedFlight(
        id=f"flight-{date}-{route}-{number}",
        date=date,
        flight_number=number,
        route=route,
        airline=number[:2],
        is_partner_flight=False,
        earned_xp=12,
        earned_miles=3490,
        uxp=12,
    )


def _stored(
    date: str = "2025-11-15", route: str = "BKK-AMS", number: str = "KL0844", is_manual: bool = False
) -> FlightRecord:
    return FlightRecord(
        id=f"stored-{date}-{route}",
        date=date,
        flight_number=number,
        route=route,
        airline=number[:2],
        is_manual=is_manual,
    )


def test_score_weights():
    config = ConflictConfig()

    exact = score_flight_match(_parsed(), _stored(), config)
    assert exact.confidence == 1.0
    assert exact.reason == "same route, same date, same airline, same flight number"

    shifted = score_flight_match(_parsed(), _stored(date="2025-11-16"), config)
    assert shifted.confidence == 0.9
    assert "date within 1 day(s)" in shifted.reason
    assert shifted.is_match(config)

    other_route = score_flight_match(_parsed(), _stored(route="AMS-BKK", number="KL0843"), config)
    assert other_route.confidence == 0.5
    assert not other_route.is_match(config)


def test_same_date_and_route_is_a_duplicate():
    flight = _parsed()
    mark_duplicates([flight], [_stored()], ConflictConfig())

    assert flight.status == FlightMatchStatus.DUPLICATE
    assert flight.matched_existing_id == "stored-2025-11-15-BKK-AMS"
    assert flight.match_confidence == 1.0


def test_one_day_shift_is_a_fuzzy_match():
    flight = _parsed()
    mark_duplicates([flight], [_stored(date="2025-11-16")], ConflictConfig())

    assert flight.status == FlightMatchStatus.FUZZY_MATCH
    assert flight.match_confidence == 0.9


def test_outside_tolerance_with_another_flight_number_is_new():
    flight = _parsed()
    stored = _stored(date="2025-11-18", number="KL0845")
    mark_duplicates([flight], [stored], ConflictConfig())

    assert flight.status == FlightMatchStatus.NEW
    assert flight.matched_existing_id is None
    assert detect_conflicts([flight], [], [stored], []) == []


def test_same_flight_outside_tolerance_is_still_a_fuzzy_match():
    flight = _parsed(date="2025-11-29", route="AMS-BER", number="KL1775")
    stored = _stored(date="2025-06-01", route="AMS-BER", number="KL1775")
    config = ConflictConfig()
    mark_duplicates([flight], [stored], config)

    conflicts = detect_conflicts([flight], [], [stored], [], config)

    assert flight.status == FlightMatchStatus.FUZZY_MATCH
    assert flight.match_confidence == 0.7
    assert [c.existing.id for c in conflicts] == [flight.matched_existing_id]
    resolved = apply_resolutions(conflicts, {conflicts[0].id: ConflictResolution.USE_INCOMING})
    assert [r.id for r in flights_to_add([flight], resolved)] == [flight.id]


def test_highest_scoring_stored_flight_is_the_match_and_the_conflict():
    flight = _parsed(date="2025-11-29", route="AMS-BER", number="KL1775")
    later = _stored(date="2026-01-10", route="AMS-BER", number="KL1775")
    near = _stored(date="2025-11-28", route="AMS-BER", number="KL1775")
    config = ConflictConfig()
    mark_duplicates([flight], [later, near], config)

    (conflict,) = detect_conflicts([flight], [], [later, near], [], config)

    assert flight.matched_existing_id == near.id
    assert flight.match_confidence == 0.9
    assert conflict.existing is near
    assert conflict.match_confidence == flight.match_confidence


def test_manual_entries_are_skipped_unless_enabled():
    flight = _parsed()
    manual = _stored(date="2025-11-16", is_manual=True)

    mark_duplicates([flight], [manual], ConflictConfig())
    assert flight.status == FlightMatchStatus.NEW
    assert detect_conflicts([flight], [], [manual], [], ConflictConfig()) == []

    mark_duplicates([flight], [manual], ConflictConfig(include_manual_entries=True))
    assert flight.status == FlightMatchStatus.FUZZY_MATCH


def test_conflicts_for_fuzzy_flights_and_changed_months():
    flight = _parsed()
    stored_flight = _stored(date="2025-11-16")
    month = ParsedMiles(month="2025-11", status=MilesMatchStatus.HAS_CHANGES)
    month.sources.hotel.miles = 500
    stored_month = MilesRecord(month="2025-11", id="m1", hotel_miles=100)
    config = ConflictConfig()
    mark_duplicates([flight], [stored_flight], config)

    conflicts = detect_conflicts([flight], [month], [stored_flight], [stored_month], config)

    assert [(c.id, c.type) for c in conflicts] == [
        ("conflict-flight-flight-2025-11-15-BKK-AMS-KL0844", ConflictType.FLIGHT),
        ("conflict-miles-2025-11", ConflictType.MILES),
    ]
    assert conflicts[0].match_confidence == 0.9
    assert conflicts[1].existing is stored_month


def test_duplicates_never_conflict():
    flight = _parsed()
    stored = _stored()
    mark_duplicates([flight], [stored], ConflictConfig())

    assert detect_conflicts([flight], [], [stored], []) == []


def test_unknown_conflict_ids_are_rejected():
    flight = _parsed()
    stored = _stored(date="2025-11-16")
    mark_duplicates([flight], [stored], ConflictConfig())
    conflicts = detect_conflicts([flight], [], [stored], [])

    with pytest.raises(UnknownConflictError) as exc:
        apply_resolutions(conflicts, {"conflict-flight-nope": ConflictResolution.KEEP_BOTH})
    assert exc.value.conflict_ids == ["conflict-flight-nope"]


@pytest.mark.parametrize(
    ("resolution", "added"),
    [
        (None, 0),
        (ConflictResolution.KEEP_EXISTING, 0),
        (ConflictResolution.USE_INCOMING, 1),
        (ConflictResolution.KEEP_BOTH, 1),
    ],
)
def test_flight_resolutions(resolution, added):
    flight = _parsed()
    fresh = _parsed(date="2025-11-08", route="AMS-BKK", number="KL0843")
    stored = _stored(date="2025-11-16")
    config = ConflictConfig()
    mark_duplicates([flight, fresh], [stored], config)
    conflicts = detect_conflicts([flight, fresh], [], [stored], [], config)
    resolutions = {conflicts[0].id: resolution} if resolution else {}

    records = flights_to_add([flight, fresh], apply_resolutions(conflicts, resolutions))

    assert len(records) == added + 1
    assert records[-1].id == fresh.id


@pytest.mark.parametrize(
    ("resolution", "merged"),
    [
        (ConflictResolution.KEEP_EXISTING, []),
        (ConflictResolution.KEEP_BOTH, []),
        (ConflictResolution.USE_INCOMING, ["2025-11"]),
    ],
)
def test_miles_resolutions(resolution, merged):
    changed = ParsedMiles(month="2025-11", status=MilesMatchStatus.HAS_CHANGES)
    changed.sources.hotel.miles = 500
    unchanged = ParsedMiles(month="2025-10", status=MilesMatchStatus.UNCHANGED)
    new = ParsedMiles(month="2025-12", status=MilesMatchStatus.NEW)
    stored = [MilesRecord(month="2025-11", id="m1"), MilesRecord(month="2025-10", id="m0")]
    conflicts = detect_conflicts([], [changed, unchanged, new], [], stored)

    resolved = apply_resolutions(conflicts, {"conflict-miles-2025-11": resolution})
    records = miles_to_merge([changed, unchanged, new], resolved)

    assert [r.month for r in records] == [*merged, "2025-12"]
