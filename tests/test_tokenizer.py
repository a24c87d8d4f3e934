from __future__ import annotations

from sample_statement import SAMPLE_STATEMENT_TEXT

from skystatus.modules.statement.tokenizer import (
    detect_language,
    looks_like_new_transaction,
    split_lines,
    tokenize,
    tokenize_line,
    transaction_groups,
)
from skystatus.modules.statement.types import Language, LineType


def test_sample_statement_is_detected_as_dutch():
    assert detect_language(SAMPLE_STATEMENT_TEXT) == Language.NL
    assert tokenize(SAMPLE_STATEMENT_TEXT).language == Language.NL


def test_language_detection_falls_back_to_english():
    assert detect_language("Nothing recognisable in here 123") == Language.EN
    assert detect_language("15 Mar 2025 My trip to Paris 1200 Miles 10 XP") == Language.EN


def test_split_lines_drops_blank_lines_and_whitespace():
    assert split_lines("\n  first  \n\n\tsecond\n   \n") == ["first", "second"]


def test_header_status_and_summary_lines_are_classified():
    lines = tokenize(SAMPLE_STATEMENT_TEXT).lines

    assert [line.type for line in lines[:4]] == [
        LineType.HEADER,
        LineType.HEADER,
        LineType.STATUS,
        LineType.SUMMARY,
    ]
    assert lines[0].line_number == 1
    assert lines[3].text.startswith("Activiteitengeschiedenis")


def test_dated_line_opens_a_transaction():
    lines = tokenize(SAMPLE_STATEMENT_TEXT).lines
    first = lines[4]

    assert first.type == LineType.TRANSACTION
    assert first.starts_transaction
    assert first.date == "2025-12-10"
    assert first.content == "Hotel - BOOKING.COM WITH KLM 367 Miles 0 XP"


def test_segment_lines_including_en_dash_routes():
    assert tokenize_line("AMS - BER KL1775 gespaarde Miles 276 Miles 5 XP", 1).type == LineType.FLIGHT_SEGMENT
    assert (
        tokenize_line("KEF – AMS TRANSAVIA HOLLAND – gespaarde Miles 250 Miles 0 XP", 1).type
        == LineType.FLIGHT_SEGMENT
    )


def test_trip_headers_with_uxp_are_summary_lines_without_date():
    line = tokenize_line("30 nov 2025 Mijn reis naar Berlijn 1312 Miles 16 XP 16 UXP", 7, Language.NL)
    assert line.type == LineType.SUMMARY
    assert line.date is None

    saf = tokenize_line("Sustainable Aviation Fuel 176 Miles 3 XP 3 UXP", 8, Language.NL)
    assert saf.type == LineType.SUMMARY


def test_date_only_line_is_not_a_transaction_but_looks_like_one():
    line = tokenize_line("op 21 nov 2025", 3, Language.NL)
    assert line.type == LineType.UNKNOWN
    assert not line.starts_transaction

    assert looks_like_new_transaction("op 29 nov 2025", Language.NL)
    assert not looks_like_new_transaction("BOOKING.COM WITH KLM 367 Miles 0 XP", Language.NL)


def test_sections_split_header_from_transactions():
    sections = tokenize(SAMPLE_STATEMENT_TEXT).sections

    assert [line.line_number for line in sections.header] == [1, 2, 3]
    assert sections.summary[0].line_number == 4
    assert sections.transactions[0].line_number == 5


def test_transaction_groups_keep_continuation_lines():
    lines = tokenize(SAMPLE_STATEMENT_TEXT).lines
    groups = transaction_groups(lines)

    first = groups[0]
    assert first[0].date == "2025-12-10"
    assert [line.text for line in first[1:]] == ["BOOKING.COM WITH KLM 367 Miles 0 XP", "op 21 nov 2025"]
