from __future__ import annotations

from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.modules.imports.service import to_jsonable
from skystatus.modules.statement.conflicts import parsed_flight_to_record, parsed_miles_to_record
from skystatus.modules.statement.parser import parse_statement_pdf, parse_statement_text
from skystatus.modules.statement.types import (
    Currency,
    FlightMatchStatus,
    FlightRecord,
    Language,
    MilesMatchStatus,
    StatusLevel,
    WarningCollector,
)


def test_sample_statement_end_to_end(fixed_clock):
    result = parse_statement_text(SAMPLE_STATEMENT_TEXT, clock=fixed_clock)

    assert result.success
    assert result.error is None
    assert result.meta.language == Language.NL
    assert result.meta.detected_currency == Currency.EUR
    assert result.meta.parse_date == "2025-12-05T09:30:00Z"

    assert result.summary.flights == {"total": 10, "new": 10, "duplicates": 0, "conflicts": 0}
    assert result.summary.miles == {"total": 3, "new": 3, "updated": 0, "unchanged": 0}
    assert result.summary.date_range == {"from": "2025-11-08", "to": "2025-11-30", "months": 1}

    assert result.xp.official == 183
    assert result.xp.from_flights == 74
    assert result.xp.from_saf == 6
    assert result.xp.from_bonus == 0
    assert result.xp.discrepancy == 103
    assert result.uxp.detected
    assert result.uxp.official == 40
    assert result.uxp.from_flights == 34
    assert result.official_miles_balance == 248928
    assert result.balance_confidence == 1.0

    assert result.status.current_status == StatusLevel.PLATINUM
    assert result.status.cycle_start_month == "2025-11"
    assert result.status.rollover_xp == 23
    assert result.conflicts == []


def test_parsing_is_deterministic_with_a_fixed_clock(fixed_clock):
    first = parse_statement_text(SAMPLE_STATEMENT_TEXT, clock=fixed_clock)
    second = parse_statement_text(SAMPLE_STATEMENT_TEXT, clock=fixed_clock)

    assert to_jsonable(first) == to_jsonable(second)


def test_reimporting_the_same_statement_finds_only_duplicates():
    first = parse_statement_text(SAMPLE_STATEMENT_TEXT)
    stored_flights = [parsed_flight_to_record(f) for f in first.flights]
    stored_miles = [parsed_miles_to_record(m) for m in first.miles]

    second = parse_statement_text(
        SAMPLE_STATEMENT_TEXT, existing_flights=stored_flights, existing_miles=stored_miles
    )

    assert {f.status for f in second.flights} == {FlightMatchStatus.DUPLICATE}
    assert {m.status for m in second.miles} == {MilesMatchStatus.UNCHANGED}
    assert second.summary.flights["new"] == 0
    assert second.summary.flights["duplicates"] == 10
    assert second.conflicts == []


def test_one_day_shift_surfaces_as_conflict():
    stored = FlightRecord(
        id="manual-bkk",
        date="2025-11-16",
        flight_number="KL0844",
        route="BKK-AMS",
        airline="KL",
    )

    result = parse_statement_text(SAMPLE_STATEMENT_TEXT, existing_flights=[stored])

    bkk = next(f for f in result.flights if f.route == "BKK-AMS")
    assert bkk.status == FlightMatchStatus.FUZZY_MATCH
    assert bkk.match_confidence >= 0.7
    assert [c.id for c in result.conflicts] == ["conflict-flight-flight-2025-11-15-BKK-AMS-KL0844"]
    assert result.summary.flights["conflicts"] == 1


def test_summary_counts_every_flight_conflict():
    stored = FlightRecord(
        id="june-ber",
        date="2025-06-01",
        flight_number="KL1775",
        route="AMS-BER",
        airline="KL",
    )

    result = parse_statement_text(SAMPLE_STATEMENT_TEXT, existing_flights=[stored])

    berlin = next(f for f in result.flights if f.route == "AMS-BER")
    assert berlin.status == FlightMatchStatus.FUZZY_MATCH
    assert [(c.incoming.id, c.existing.id) for c in result.conflicts] == [(berlin.id, berlin.matched_existing_id)]
    assert result.summary.flights == {"total": 10, "new": 9, "duplicates": 0, "conflicts": 1}


def test_user_currency_is_the_fallback():
    text = "GOLD\n12 March 2025 Status renewed GOLD 0 Miles 0 XP"
    result = parse_statement_text(text, user_currency="GBP")

    assert result.success
    assert result.meta.detected_currency == Currency.GBP


def test_missing_balances_are_reported_as_warnings():
    collector = WarningCollector()
    result = parse_statement_text("12 March 2025 My trip to Paris 1200 Miles 10 XP", collector=collector)

    assert result.success
    assert result.status is None
    assert "status_not_found" in collector.codes()
    assert "balance_not_found" in collector.codes()
    assert result.meta.warnings == collector.messages()


def test_empty_text_fails_without_raising(fixed_clock):
    result = parse_statement_text("   \n  ", clock=fixed_clock)

    assert not result.success
    assert "no text" in result.error
    assert result.flights == []
    assert result.meta.parse_date == "2025-12-05T09:30:00Z"


def test_invalid_pdf_bytes_fail_without_raising():
    result = parse_statement_pdf(b"%PDF-1.4 this is not really a pdf")

    assert not result.success
    assert result.error.startswith("Failed to read PDF")
    assert result.meta.warnings == [result.error]
