from __future__ import annotations

from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.modules.statement.status import (
    cycle_start_month,
    detect_bonus_xp_events,
    detect_status,
    detect_status_extended,
    next_status,
    parse_status_level,
    previous_status,
)
from skystatus.modules.statement.tokenizer import tokenize
from skystatus.modules.statement.types import BonusXPSource, Language, StatusLevel


def _sample_lines():
    return tokenize(SAMPLE_STATEMENT_TEXT).lines


def test_status_and_totals_from_header():
    detected = detect_status(_sample_lines(), Language.NL)

    assert detected is not None
    assert detected.current_status == StatusLevel.PLATINUM
    assert (detected.current_miles, detected.current_xp, detected.current_uxp) == (248928, 183, 40)
    assert detected.requalifications == []


def test_no_status_line_means_no_status():
    lines = tokenize("12 March 2025 My trip to Paris 1200 Miles 10 XP", Language.EN).lines
    assert detect_status(lines, Language.EN) is None


def test_requalification_sets_cycle():
    text = "GOLD\n12 March 2025 Status renewed GOLD 0 Miles 0 XP"

    detected = detect_status(tokenize(text, Language.EN).lines, Language.EN)

    assert detected.current_status == StatusLevel.GOLD
    (event,) = detected.requalifications
    assert event.date == "2025-03-12"
    assert event.to_status == StatusLevel.GOLD
    assert detected.cycle_start_date == "2025-03-12"
    assert detected.cycle_start_month == "2025-04"


def test_level_change_from_counter_deduction_and_surplus():
    detected = detect_status_extended(_sample_lines(), Language.NL)

    (change,) = detected.level_changes
    assert change.date == "2025-10-08"
    assert change.new_status == StatusLevel.PLATINUM
    assert change.xp_deducted == -300
    assert change.rollover_xp == 23
    assert change.cycle_end_date == "2025-10-07"
    assert change.cycle_start_date == "2025-10-08"
    assert change.cycle_start_month == "2025-11"

    assert detected.cycle_start_date == "2025-10-08"
    assert detected.cycle_start_month == "2025-11"
    assert detected.rollover_xp == 23


def test_journey_and_first_flight():
    detected = detect_status_extended(_sample_lines(), Language.NL)

    assert detected.bonus_xp_events == []
    assert detected.first_flight_date == "2025-11-17"
    assert [(m.status, m.date, m.achieved) for m in detected.journey] == [
        (StatusLevel.EXPLORER, "2025-11-17", True),
        (StatusLevel.SILVER, None, True),
        (StatusLevel.GOLD, None, True),
        (StatusLevel.PLATINUM, "2025-10-08", True),
        (StatusLevel.ULTIMATE, None, False),
    ]


def test_bonus_xp_events_carry_the_transaction_date():
    text = "\n".join(
        [
            "GOLD",
            "14 jan 2025 American Express Welcome bonus 0 Miles 60 XP",
            "2 feb 2025 Air adjustment 0 Miles 4 XP",
        ]
    )
    events = detect_bonus_xp_events(tokenize(text, Language.EN).lines, Language.EN)

    assert [(e.date, e.source, e.xp) for e in events] == [
        ("2025-01-14", BonusXPSource.AMEX_WELCOME, 60),
        ("2025-02-02", BonusXPSource.AIR_ADJUSTMENT, 4),
    ]


def test_status_ladder_helpers():
    assert next_status(StatusLevel.GOLD) == StatusLevel.PLATINUM
    assert next_status(StatusLevel.ULTIMATE) is None
    assert previous_status(StatusLevel.EXPLORER) == StatusLevel.EXPLORER
    assert previous_status(StatusLevel.SILVER) == StatusLevel.EXPLORER
    assert parse_status_level("Platina", Language.NL) == StatusLevel.PLATINUM
    assert parse_status_level("nothing") is None


def test_cycle_starts_the_month_after_qualifying():
    assert cycle_start_month("2025-03-31") == "2025-04"
    assert cycle_start_month("2025-12-15") == "2026-01"
