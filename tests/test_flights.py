from __future__ import annotations

from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.modules.statement.flights import (
    assign_flight_ids,
    extract_flights,
    infer_partner_airline,
    is_partner_flight,
)
from skystatus.modules.statement.tokenizer import split_lines
from skystatus.modules.statement.types import Language, ParsedFlight, WarningCollector


def _sample_flights():
    return extract_flights(split_lines(SAMPLE_STATEMENT_TEXT), Language.NL)


def test_extracts_every_segment_sorted_newest_first():
    flights = _sample_flights()

    assert [(f.date, f.route, f.flight_number) for f in flights] == [
        ("2025-11-30", "BER-AMS", "KL1780"),
        ("2025-11-29", "AMS-BER", "KL1775"),
        ("2025-11-28", "AMS-OSL", "SK0822"),
        ("2025-11-28", "OSL-AMS", "SK0827"),
        ("2025-11-24", "KEF-AMS", "HV0000"),
        ("2025-11-24", "KEF-AMS", "HV0000"),
        ("2025-11-21", "AMS-KEF", "HV0000"),
        ("2025-11-21", "AMS-KEF", "HV0000"),
        ("2025-11-15", "BKK-AMS", "KL0844"),
        ("2025-11-08", "AMS-BKK", "KL0843"),
    ]


def test_segment_date_comes_from_flown_on_line_not_trip_header():
    berlin_out = next(f for f in _sample_flights() if f.route == "AMS-BER")

    assert berlin_out.date == "2025-11-29"
    assert berlin_out.earned_miles == 276
    assert berlin_out.earned_xp == 5
    assert berlin_out.uxp == 5


def test_trip_saf_goes_to_first_segment_only():
    flights = {f.route: f for f in _sample_flights() if f.airline == "KL"}

    assert flights["AMS-BER"].saf_xp == 6
    assert flights["BER-AMS"].saf_xp == 0


def test_partner_segments_without_flight_number():
    flights = _sample_flights()
    transavia = [f for f in flights if f.airline == "HV"]

    assert len(transavia) == 4
    assert {f.earned_miles for f in transavia} == {250}
    assert sorted(f.earned_xp for f in transavia) == [0, 0, 5, 5]
    assert not any(f.is_partner_flight for f in transavia)

    oslo = next(f for f in flights if f.route == "AMS-OSL")
    assert oslo.airline == "SK"
    assert oslo.is_partner_flight
    assert oslo.earned_miles == 1490
    assert oslo.earned_xp == 15


def test_repeated_segments_get_suffixed_ids():
    ids = [f.id for f in _sample_flights() if f.route == "KEF-AMS"]
    assert ids == ["flight-2025-11-24-KEF-AMS-HV0000", "flight-2025-11-24-KEF-AMS-HV0000-2"]


def test_assign_flight_ids_is_stable_for_distinct_flights():
    flights = [
        ParsedFlight(id="", date="2025-01-02", flight_number="KL1001", route="AMS-LHR", airline="KL", is_partner_flight=False),
        ParsedFlight(id="", date="2025-01-03", flight_number="KL1002", route="LHR-AMS", airline="KL", is_partner_flight=False),
    ]
    assign_flight_ids(flights)
    assert [f.id for f in flights] == ["flight-2025-01-02-AMS-LHR-KL1001", "flight-2025-01-03-LHR-AMS-KL1002"]


def test_flight_totals_across_sample():
    flights = _sample_flights()
    assert sum(f.earned_xp for f in flights) == 74
    assert sum(f.saf_xp for f in flights) == 6
    assert sum(f.uxp for f in flights) == 34


def test_saf_on_trip_without_segments_is_reported():
    text = "\n".join(
        [
            "PLATINUM",
            "30 nov 2025 Mijn reis naar Berlijn 12 Miles 6 XP",
            "Sustainable Aviation Fuel 176 Miles 3 XP 3 UXP",
            "op 29 nov 2025",
        ]
    )
    collector = WarningCollector()

    flights = extract_flights(split_lines(text), Language.NL, collector)

    assert flights == []
    assert collector.codes() == ["saf_without_segment"]


def test_uxp_is_dropped_for_carriers_that_do_not_earn_it():
    text = "\n".join(
        [
            "29 nov 2025 Mijn reis naar Oslo 1490 Miles 15 XP 15 UXP",
            "AMS - OSL SK0822 gespaarde Miles 1490 Miles 15 XP 15 UXP",
            "op 28 nov 2025",
        ]
    )
    collector = WarningCollector()

    (flight,) = extract_flights(split_lines(text), Language.NL, collector)

    assert flight.uxp == 0
    assert flight.earned_xp == 15
    assert "uxp_non_qualifying_carrier" in collector.codes()


def test_partner_helpers():
    assert infer_partner_airline("TRANSAVIA HOLLAND") == "HV"
    assert infer_partner_airline("Delta Air Lines") == "DL"
    assert infer_partner_airline("Qantas") == "QA"
    assert not is_partner_flight("kl")
    assert is_partner_flight("DL")
