from __future__ import annotations

import time
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from skystatus.core.logging import get_logger, log_event, log_exception, monotonic_ms
from skystatus.modules.statement.balances import extract_balances
from skystatus.modules.statement.conflicts import ConflictConfig, detect_conflicts, mark_duplicates
from skystatus.modules.statement.currencies import detect_currency
from skystatus.modules.statement.dates import Clock, iso_timestamp, month_key
from skystatus.modules.statement.flights import extract_flights
from skystatus.modules.statement.miles import extract_miles, mark_miles_changes, merge_flight_miles
from skystatus.modules.statement.status import detect_status_extended
from skystatus.modules.statement.tokenizer import split_lines, tokenize
from skystatus.modules.statement.types import (
    ConflictType,
    Currency,
    FlightMatchStatus,
    FlightRecord,
    ImportConflict,
    ImportSummary,
    MilesMatchStatus,
    MilesRecord,
    ParsedFlight,
    ParsedMiles,
    ParseMeta,
    StatementImportResult,
    UXPBreakdown,
    WarningCollector,
    XPBreakdown,
    XPExtraction,
)
from skystatus.modules.statement.validators import validate_parsed_flight, validate_parsed_miles
from skystatus.modules.statement.xp import extract_xp

logger = get_logger(__name__)


class EmptyStatementError(ValueError):
    pass


def extract_pdf_pages(body: bytes) -> list[str]:
    reader = PdfReader(BytesIO(body))
    return [
        (page.extract_text() or "").replace("\u202f", " ").replace("\xa0", " ")
        for page in reader.pages
    ]


def failed_result(error: str, *, clock: Clock | None = None, pdf_page_count: int = 0) -> StatementImportResult:
    return StatementImportResult(
        success=False,
        error=error,
        meta=ParseMeta(parse_date=iso_timestamp(clock), pdf_page_count=pdf_page_count, warnings=[error]),
    )


def build_summary(
    flights: list[ParsedFlight],
    miles: list[ParsedMiles],
    xp: XPExtraction,
    official_xp: int | None,
    official_uxp: int | None,
    conflicts: list[ImportConflict],
) -> ImportSummary:
    dates = sorted(flight.date for flight in flights if flight.date)
    summary = ImportSummary()
    summary.flights = {
        "total": len(flights),
        "new": sum(1 for f in flights if f.status == FlightMatchStatus.NEW),
        "duplicates": sum(1 for f in flights if f.status == FlightMatchStatus.DUPLICATE),
        "conflicts": sum(1 for c in conflicts if c.type == ConflictType.FLIGHT),
    }
    summary.miles = {
        "total": len(miles),
        "new": sum(1 for m in miles if m.status == MilesMatchStatus.NEW),
        "updated": sum(1 for m in miles if m.status == MilesMatchStatus.HAS_CHANGES),
        "unchanged": sum(1 for m in miles if m.status == MilesMatchStatus.UNCHANGED),
    }
    summary.xp = {
        "total": xp.from_flights + xp.from_saf + xp.from_bonus,
        "from_flights": xp.from_flights,
        "from_saf": xp.from_saf,
        "from_bonus": xp.from_bonus,
        "official": official_xp or 0,
    }
    summary.uxp = {"total": xp.total_uxp, "official": official_uxp or 0}
    summary.date_range = {
        "from": dates[0] if dates else "",
        "to": dates[-1] if dates else "",
        "months": len({month_key(d) for d in dates}),
    }
    return summary


def _validate(flights: list[ParsedFlight], miles: list[ParsedMiles], collector: WarningCollector) -> None:
    for flight in flights:
        result = validate_parsed_flight(flight)
        collector.extend([f"{flight.id}: {e}" for e in result.errors], code="invalid_flight")
        collector.extend([f"{flight.id}: {w}" for w in result.warnings], code="flight_warning")
    for month in miles:
        result = validate_parsed_miles(month)
        collector.extend([f"{month.month}: {e}" for e in result.errors], code="invalid_miles")
        collector.extend([f"{month.month}: {w}" for w in result.warnings], code="miles_warning")


def _parse(
    text: str,
    *,
    existing_flights: list[FlightRecord],
    existing_miles: list[MilesRecord],
    user_currency: Currency,
    config: ConflictConfig,
    collector: WarningCollector,
    clock: Clock | None,
    pdf_page_count: int,
) -> StatementImportResult:
    if not text.strip():
        raise EmptyStatementError("Statement contains no text")

    tokenized = tokenize(text)
    language = tokenized.language
    raw_lines = split_lines(text)

    flights = extract_flights(raw_lines, language, collector)
    miles = merge_flight_miles(extract_miles(raw_lines, language), flights)
    xp = extract_xp(raw_lines, flights, language)
    status = detect_status_extended(tokenized.lines, language)
    balances = extract_balances(tokenized.lines, language)

    mark_duplicates(flights, existing_flights, config)
    mark_miles_changes(miles, existing_miles)
    conflicts = detect_conflicts(flights, miles, existing_flights, existing_miles, config)
    _validate(flights, miles, collector)

    if status is None:
        collector.warn("status_not_found", "No status line found on the statement")
    if balances.xp is None:
        collector.warn("balance_not_found", "No official XP balance found; using the computed total")

    computed_xp = xp.from_flights + xp.from_saf + xp.from_bonus
    official_xp = balances.xp if balances.xp is not None else computed_xp

    return StatementImportResult(
        success=True,
        flights=flights,
        miles=miles,
        status=status,
        xp=XPBreakdown(
            official=official_xp,
            from_flights=xp.from_flights,
            from_saf=xp.from_saf,
            from_bonus=xp.from_bonus,
            discrepancy=official_xp - computed_xp,
            bonus_by_month=dict(xp.bonus_xp_by_month),
        ),
        uxp=UXPBreakdown(
            detected=balances.uxp is not None,
            official=balances.uxp or 0,
            from_flights=sum(flight.uxp for flight in flights),
        ),
        official_miles_balance=balances.miles,
        balance_confidence=balances.confidence,
        conflicts=conflicts,
        summary=build_summary(flights, miles, xp, balances.xp, balances.uxp, conflicts),
        meta=ParseMeta(
            language=language,
            detected_currency=detect_currency(text) or user_currency,
            parse_date=iso_timestamp(clock),
            pdf_page_count=pdf_page_count,
            warnings=collector.messages(),
        ),
    )


def parse_statement_text(
    text: str,
    *,
    existing_flights: list[FlightRecord] | None = None,
    existing_miles: list[MilesRecord] | None = None,
    user_currency: Currency | str = Currency.EUR,
    config: ConflictConfig | None = None,
    collector: WarningCollector | None = None,
    clock: Clock | None = None,
    pdf_page_count: int = 0,
) -> StatementImportResult:
    """Parse page-joined statement text and classify it against the member's records.

    Never raises: any unexpected error becomes a result with ``success=False``.
    """
    collector = collector if collector is not None else WarningCollector()
    start = time.monotonic()
    log_event(logger, "statement.parse.start", chars=len(text), pdf_page_count=pdf_page_count or None)
    try:
        result = _parse(
            text,
            existing_flights=list(existing_flights or []),
            existing_miles=list(existing_miles or []),
            user_currency=Currency(user_currency),
            config=config or ConflictConfig(),
            collector=collector,
            clock=clock,
            pdf_page_count=pdf_page_count,
        )
    except Exception as exc:
        log_exception(logger, "statement.parse.failure", duration_ms=monotonic_ms(start))
        return failed_result(f"Failed to parse statement text: {exc}", clock=clock, pdf_page_count=pdf_page_count)

    log_event(
        logger,
        "statement.parse.finish",
        language=result.meta.language.value,
        flights=len(result.flights),
        months=len(result.miles),
        conflicts=len(result.conflicts),
        warnings=len(result.meta.warnings),
        duration_ms=monotonic_ms(start),
    )
    return result


def parse_statement_pdf(
    body: bytes,
    *,
    existing_flights: list[FlightRecord] | None = None,
    existing_miles: list[MilesRecord] | None = None,
    user_currency: Currency | str = Currency.EUR,
    config: ConflictConfig | None = None,
    collector: WarningCollector | None = None,
    clock: Clock | None = None,
) -> StatementImportResult:
    try:
        pages = extract_pdf_pages(body)
    except (PyPdfError, ValueError, OSError) as exc:
        log_exception(logger, "statement.parse.failure", stage="pdf", size_bytes=len(body))
        return failed_result(f"Failed to read PDF: {exc}", clock=clock)

    return parse_statement_text(
        "\n".join(pages),
        existing_flights=existing_flights,
        existing_miles=existing_miles,
        user_currency=user_currency,
        config=config,
        collector=collector,
        clock=clock,
        pdf_page_count=len(pages),
    )
