from __future__ import annotations

from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.modules.statement.flights import extract_flights
from skystatus.modules.statement.tokenizer import split_lines
from skystatus.modules.statement.types import Language, XPSource
from skystatus.modules.statement.xp import (
    detect_xp_source,
    extract_xp,
    group_xp_by_month,
    group_xp_by_source,
    total_xp,
)


def _sample_xp():
    lines = split_lines(SAMPLE_STATEMENT_TEXT)
    return extract_xp(lines, extract_flights(lines, Language.NL), Language.NL)


def test_flight_and_saf_xp_come_from_parsed_flights():
    xp = _sample_xp()

    assert xp.from_flights == 74
    assert xp.from_saf == 6
    assert xp.total_uxp == 34


def test_counter_lines_are_not_bonus_xp():
    xp = _sample_xp()

    assert xp.from_bonus == 0
    assert xp.bonus_xp_by_month == {}


def test_saf_gets_its_own_entry():
    entries = _sample_xp().entries
    saf = [entry for entry in entries if entry.source == XPSource.SAF]

    assert len(saf) == 1
    assert saf[0].amount == 6
    assert saf[0].month == "2025-11"
    assert total_xp(entries) == 80


def test_bonus_lines_are_grouped_per_month():
    lines = [
        "12 feb 2025 American Express Welcome bonus 0 Miles 60 XP",
        "3 mar 2025 Hotel stay Accor 500 Miles 2 XP",
        "20 mar 2025 My trip to Paris 1200 Miles 10 XP",
        "21 mar 2025 XP Counter offset 0 Miles -180 XP",
    ]

    xp = extract_xp(lines, [], Language.EN)

    assert xp.bonus_xp_by_month == {"2025-02": 60, "2025-03": 2}
    assert xp.from_bonus == 62
    by_source = group_xp_by_source(xp.entries)
    assert by_source[XPSource.FIRST_FLIGHT] == 60
    assert by_source[XPSource.HOTEL] == 2
    assert group_xp_by_month(xp.entries) == {"2025-02": 60, "2025-03": 2}


def test_detect_xp_source():
    assert detect_xp_source("Sustainable Aviation Fuel 3 XP") == XPSource.SAF
    assert detect_xp_source("Eerste vlucht bonus") == XPSource.FIRST_FLIGHT
    assert detect_xp_source("AMERICAN EXPRESS PLATINUM") == XPSource.CREDIT_CARD
    assert detect_xp_source("Summer promotion") == XPSource.PROMO
    assert detect_xp_source("Gespaarde XP") == XPSource.FLIGHT
    assert detect_xp_source("Something else") == XPSource.OTHER
