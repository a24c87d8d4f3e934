from __future__ import annotations

from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.modules.statement.legacy import (
    extract_bonus_xp_compat,
    parse_text_compat,
    to_flight_records_compat,
    to_miles_records_compat,
)


def test_flattened_result_for_sample_statement():
    result = parse_text_compat(SAMPLE_STATEMENT_TEXT)

    assert result.errors == []
    assert result.member_name == "DEGRAAF REMCO"
    assert result.member_number == "4629294326"
    assert result.status == "Platinum"
    assert (result.total_miles, result.total_xp, result.total_uxp) == (248928, 183, 40)
    assert result.oldest_date == "2025-11-08"
    assert result.newest_date == "2025-11-30"
    assert len(result.flights) == 10


def test_legacy_miles_fold_flights_into_earned():
    november = next(m for m in parse_text_compat(SAMPLE_STATEMENT_TEXT).miles if m.month == "2025-11")

    assert november.earned == 44665 + 12830
    assert november.spent == 0
    assert november.breakdown.flights == 12830
    assert november.breakdown.credit_card == 26147
    assert november.breakdown.other == 44665 - 26147


def test_record_conversions():
    result = parse_text_compat(SAMPLE_STATEMENT_TEXT)

    flights = to_flight_records_compat(result.flights)
    assert flights[0].id == "pdf-2025-11-30-KL1780-0"
    assert flights[1].saf_xp == 6

    months = {m.month: m for m in to_miles_records_compat(result.miles)}
    assert months["2025-11"].amex_miles == 26147
    assert months["2025-11"].total_miles == 44665
    assert months["2025-12"].other_miles == 3901

    assert extract_bonus_xp_compat(result.miles) == {}
