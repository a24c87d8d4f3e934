from __future__ import annotations

import pytest
from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.modules.statement.flights import extract_flights
from skystatus.modules.statement.miles import (
    detect_miles_source,
    extract_miles,
    mark_miles_changes,
    merge_flight_miles,
    miles_changes,
)
from skystatus.modules.statement.tokenizer import split_lines
from skystatus.modules.statement.types import Language, MilesMatchStatus, MilesRecord


def _sample_miles():
    lines = split_lines(SAMPLE_STATEMENT_TEXT)
    return merge_flight_miles(extract_miles(lines, Language.NL), extract_flights(lines, Language.NL))


@pytest.mark.parametrize(
    ("description", "source"),
    [
        ("Subscribe to Miles Complete EUR 17000 Miles 0 XP", "subscription"),
        ("AMERICAN EXPRESS PLATINUM CARD 10811 Miles 0 XP", "creditCard"),
        ("Hotel - BOOKING.COM WITH KLM 367 Miles 0 XP", "hotel"),
        ("Miles overdragen - Flying Blue Family 1000 Miles 0 XP", "transfer"),
        ("RevPoints to Miles 518 Miles 0 XP", "partner"),
        ("Upgrade Economy to Business 7992 Miles 0 XP", "debit"),
        ("Award ticket AMS-CDG -12000 Miles", "debit"),
        ("Mijn reis naar Oslo 2980 Miles 30 XP", "flights"),
    ],
)
def test_detect_miles_source(description, source):
    assert detect_miles_source(description, Language.NL) == source


def test_one_record_per_calendar_month_in_order():
    assert [record.month for record in _sample_miles()] == ["2025-10", "2025-11", "2025-12"]


def test_hotel_month():
    december = _sample_miles()[-1]

    assert december.sources.hotel.miles == 3901
    assert december.total_earned == 3901
    assert december.debit == 0


def test_mixed_month_buckets_and_flight_merge():
    november = _sample_miles()[1]
    sources = november.sources

    assert sources.subscription.miles == 17000
    assert sources.credit_card.miles == 26147
    assert sources.transfer.miles == 1000
    assert sources.other.miles == 518
    assert november.total_earned == 44665
    assert sources.flights.miles == 12830
    assert sources.flights.xp == 74


def test_counter_bookkeeping_month_stays_empty():
    october = _sample_miles()[0]

    assert october.total_earned == 0
    assert october.debit == 0
    assert october.total_xp == 0


def test_negative_amounts_become_debit():
    (record,) = extract_miles(["3 mar 2025 Award ticket AMS-CDG -12.000 Miles 0 XP"], Language.EN)
    assert record.month == "2025-03"
    assert record.debit == 12000
    assert record.total_earned == 0


def test_changes_against_stored_month():
    november = _sample_miles()[1]
    stored = MilesRecord(
        month="2025-11",
        id="row-1",
        flight_miles=12830,
        subscription_miles=17000,
        amex_miles=20000,
        hotel_miles=0,
        other_miles=518,
        transfer_miles=1000,
    )

    changes = miles_changes(november, stored)

    assert [(c.field, c.old_value, c.new_value) for c in changes] == [("creditCard", 20000, 26147)]


def test_mark_miles_changes_sets_status():
    miles = _sample_miles()
    stored = [
        MilesRecord(month="2025-10", id="oct"),
        MilesRecord(month="2025-12", id="dec", hotel_miles=1000),
    ]

    mark_miles_changes(miles, stored)

    statuses = {record.month: record.status for record in miles}
    assert statuses == {
        "2025-10": MilesMatchStatus.UNCHANGED,
        "2025-11": MilesMatchStatus.NEW,
        "2025-12": MilesMatchStatus.HAS_CHANGES,
    }
    assert miles[2].existing_record_id == "dec"
