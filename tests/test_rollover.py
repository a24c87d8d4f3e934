from __future__ import annotations

from skystatus.modules.statement.rollover import (
    MAX_ROLLOVER,
    rollover_from_event,
    rollover_xp,
    simulate_rollover,
    validate_rollover,
    xp_until,
)
from skystatus.modules.statement.types import FlightRecord, RequalificationEvent, StatusLevel


def _flight(date: str, xp: int, saf: int = 0) -> FlightRecord:
    return FlightRecord(
        id=f"f-{date}",
        date=date,
        flight_number="KL1001",
        route="AMS-LHR",
        airline="KL",
        earned_xp=xp,
        saf_xp=saf,
    )


def test_rollover_caps_per_status():
    assert MAX_ROLLOVER[StatusLevel.PLATINUM] == 100
    assert MAX_ROLLOVER[StatusLevel.ULTIMATE] == 0

    breakdown = simulate_rollover(420, StatusLevel.PLATINUM)
    assert breakdown.threshold == 300
    assert breakdown.excess == 120
    assert breakdown.rollover == 100

    assert simulate_rollover(323, StatusLevel.PLATINUM).rollover == 23
    assert simulate_rollover(150, StatusLevel.GOLD).rollover == 0


def test_xp_until_counts_flights_on_or_before_the_date():
    flights = [_flight("2025-01-10", 60, 5), _flight("2025-02-01", 40), _flight("2025-03-01", 99)]

    assert xp_until(flights, "2025-02-01") == 105
    assert xp_until(flights, "2025-02-01", starting_xp=10) == 115


def test_rollover_from_previous_status():
    flights = [_flight("2025-01-10", 120), _flight("2025-02-01", 55)]

    # Silver -> Gold needs 180 XP; 175 XP falls short.
    assert rollover_xp(flights, "2025-02-01", StatusLevel.SILVER) == 0
    # Explorer -> Silver at 100 XP leaves 75, capped at 50.
    assert rollover_xp(flights, "2025-02-01", StatusLevel.EXPLORER) == 50
    assert rollover_xp(flights, "2025-02-01", StatusLevel.ULTIMATE) == 0


def test_rollover_from_requalification_event():
    event = RequalificationEvent(
        date="2025-06-01",
        from_status=StatusLevel.GOLD,
        to_status=StatusLevel.GOLD,
        xp_at_requalification=230,
    )
    assert rollover_from_event(event, []) == 50

    without_total = RequalificationEvent(
        date="2025-06-01", from_status=StatusLevel.SILVER, to_status=StatusLevel.GOLD
    )
    assert rollover_from_event(without_total, [_flight("2025-05-01", 200)]) == 20


def test_validate_rollover():
    assert validate_rollover(23, 23).matches
    check = validate_rollover(20, 23)
    assert not check.matches
    assert check.discrepancy == 3
    assert validate_rollover(20, 23, tolerance=5).matches
