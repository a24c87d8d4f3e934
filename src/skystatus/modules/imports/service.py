from __future__ import annotations

import dataclasses
import enum
import hashlib
import time
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from skystatus.core.config import settings
from skystatus.core.db import SessionLocal
from skystatus.core.logging import get_logger, log_event, log_exception, monotonic_ms
from skystatus.core.storage import StorageError, get_storage
from skystatus.modules.imports.backup import (
    FLIGHT_FIELDS,
    LEDGER_FIELDS,
    MILES_FIELDS,
    QUALIFICATION_FIELDS,
    BackupError,
    ImportBackup,
    clear_backup,
    create_backup,
    restore_backup,
)
from skystatus.modules.imports.models import (
    Flight,
    ImportRun,
    ImportRunStatus,
    ManualLedgerEntry,
    MilesMonth,
    Qualification,
)
from skystatus.modules.members.models import Member
from skystatus.modules.statement.conflicts import (
    ConflictConfig,
    UnknownConflictError,
    apply_resolutions,
    resolve_import,
)
from skystatus.modules.statement.dates import Clock
from skystatus.modules.statement.parser import parse_statement_pdf, parse_statement_text
from skystatus.modules.statement.types import (
    ConflictResolution,
    FlightRecord,
    MilesRecord,
    ResolvedImportData,
    StatementImportResult,
    StatusLevel,
)

logger = get_logger(__name__)


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _jsonable(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    return {key: value.value if isinstance(value, enum.Enum) else value for key, value in pairs}


def to_jsonable(obj: Any) -> Any:
    """Plain JSON structure for a pipeline dataclass (enums become their values)."""
    return dataclasses.asdict(obj, dict_factory=_jsonable)


def conflict_config() -> ConflictConfig:
    return ConflictConfig(
        fuzzy_threshold=settings.fuzzy_threshold,
        date_tolerance_days=settings.date_tolerance_days,
        include_manual_entries=settings.include_manual_entries,
    )


def existing_flights_for(session: Session, *, member_id: uuid.UUID) -> list[FlightRecord]:
    rows = session.scalars(
        select(Flight)
        .where(Flight.member_id == member_id)
        .order_by(Flight.date.desc(), Flight.external_id)
    )
    return [
        FlightRecord(
            id=row.external_id,
            date=row.date,
            flight_number=row.flight_number,
            route=row.route,
            airline=row.airline,
            earned_xp=row.earned_xp,
            earned_miles=row.earned_miles,
            saf_xp=row.saf_xp,
            uxp=row.uxp,
            ticket_price=float(row.ticket_price) if row.ticket_price is not None else None,
            currency=row.currency,
            is_manual=row.is_manual,
        )
        for row in rows
    ]


def existing_miles_for(session: Session, *, member_id: uuid.UUID) -> list[MilesRecord]:
    rows = session.scalars(
        select(MilesMonth).where(MilesMonth.member_id == member_id).order_by(MilesMonth.month.desc())
    )
    return [
        MilesRecord(id=str(row.id), **{name: getattr(row, name) for name in MILES_FIELDS})
        for row in rows
    ]


def _looks_like_pdf(body: bytes) -> bool:
    return body.lstrip()[:5] == b"%PDF-"


def run_statement(
    session: Session, *, member: Member, body: bytes, clock: Clock | None = None
) -> StatementImportResult:
    """Phase 1 against the member's current records; never writes."""
    options: dict[str, Any] = {
        "existing_flights": existing_flights_for(session, member_id=member.id),
        "existing_miles": existing_miles_for(session, member_id=member.id),
        "user_currency": member.currency,
        "config": conflict_config(),
        "clock": clock,
    }
    if _looks_like_pdf(body):
        return parse_statement_pdf(body, **options)
    return parse_statement_text(body.decode("utf-8", errors="replace"), **options)


def create_import_run(
    session: Session,
    *,
    member: Member,
    filename: str,
    content_type: str | None,
    body: bytes,
) -> ImportRun:
    if not body:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty upload")
    if len(body) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Statement is too large"
        )

    key = f"imports/{member.id}/{uuid.uuid4()}-{filename}"
    stored = get_storage().put(key=key, body=body)

    run = ImportRun(
        member_id=member.id,
        filename=filename,
        content_type=content_type,
        byte_size=stored.byte_size,
        sha256=_sha256_hex(body),
        storage_key=stored.key,
        status=ImportRunStatus.UPLOADED,
    )
    session.add(run)
    session.commit()
    session.refresh(run)
    return run


def get_import_run(session: Session, *, member: Member, import_run_id: uuid.UUID) -> ImportRun:
    run = session.scalar(
        select(ImportRun).where(ImportRun.id == import_run_id, ImportRun.member_id == member.id)
    )
    if not run:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Import not found")
    return run


def _store_result(run: ImportRun, result: StatementImportResult) -> None:
    payload = to_jsonable(result)
    run.conflicts = payload.pop("conflicts")
    run.result = payload
    run.language = result.meta.language if result.success else None
    if result.success:
        run.status = ImportRunStatus.PARSED
        run.error_message = None
    else:
        run.status = ImportRunStatus.FAILED
        run.error_message = result.error


def parse_import_run(*, import_run_id: str, clock: Clock | None = None) -> None:
    with SessionLocal() as session:
        run = session.scalar(select(ImportRun).where(ImportRun.id == uuid.UUID(import_run_id)))
        if not run:
            return
        if run.status in (ImportRunStatus.COMMITTED, ImportRunStatus.RESTORED):
            return
        member = session.scalar(select(Member).where(Member.id == run.member_id))
        if not member:
            return

        start = time.monotonic()
        log_event(
            logger,
            "import.parse.start",
            import_run_id=import_run_id,
            filename=run.filename,
            byte_size=run.byte_size,
            sha256=run.sha256,
        )
        try:
            body = get_storage().get(key=run.storage_key)
        except StorageError as e:
            run.status = ImportRunStatus.FAILED
            run.error_message = str(e)
            session.commit()
            return

        result = run_statement(session, member=member, body=body, clock=clock)
        _store_result(run, result)
        session.commit()
        log_event(
            logger,
            "import.parse.finish",
            import_run_id=import_run_id,
            status=run.status.value,
            flights=len(result.flights),
            months=len(result.miles),
            conflicts=len(result.conflicts),
            duration_ms=monotonic_ms(start),
        )


def _add_flights(
    session: Session, *, member_id: uuid.UUID, run_id: uuid.UUID, records: list[FlightRecord]
) -> int:
    known = set(session.scalars(select(Flight.external_id).where(Flight.member_id == member_id)))
    added = 0
    for record in records:
        if record.id in known:
            continue
        session.add(
            Flight(
                member_id=member_id,
                source_import_id=run_id,
                external_id=record.id,
                date=record.date,
                flight_number=record.flight_number,
                route=record.route,
                airline=record.airline,
                earned_xp=record.earned_xp,
                earned_miles=record.earned_miles,
                saf_xp=record.saf_xp,
                uxp=record.uxp,
                is_manual=False,
            )
        )
        known.add(record.id)
        added += 1
    return added


def _merge_miles(session: Session, *, member_id: uuid.UUID, records: list[MilesRecord]) -> int:
    rows = {
        row.month: row
        for row in session.scalars(select(MilesMonth).where(MilesMonth.member_id == member_id))
    }
    for record in records:
        row = rows.get(record.month)
        if row is None:
            row = MilesMonth(member_id=member_id, month=record.month)
            session.add(row)
            rows[record.month] = row
        for name in MILES_FIELDS:
            setattr(row, name, getattr(record, name))
    return len(records)


def _apply_qualification(session: Session, *, member_id: uuid.UUID, resolved: ResolvedImportData) -> bool:
    settings_in = resolved.qualification_settings
    if settings_in is None or not settings_in.cycle_start_month:
        return False
    row = session.scalar(select(Qualification).where(Qualification.member_id == member_id))
    if row is None:
        row = Qualification(member_id=member_id)
        session.add(row)
    row.cycle_start_month = settings_in.cycle_start_month
    row.cycle_start_date = settings_in.cycle_start_date
    row.starting_status = settings_in.starting_status
    row.starting_xp = settings_in.starting_xp
    row.starting_uxp = 0
    row.rollover_xp = settings_in.starting_xp
    return True


def _apply_bonus_xp(session: Session, *, member_id: uuid.UUID, bonus_xp_by_month: dict[str, int]) -> None:
    # The statement is authoritative for the months it covers.
    for month, xp in bonus_xp_by_month.items():
        entry = session.scalar(
            select(ManualLedgerEntry).where(
                ManualLedgerEntry.member_id == member_id, ManualLedgerEntry.month == month
            )
        )
        if entry is None:
            entry = ManualLedgerEntry(
                member_id=member_id, month=month, amex_xp=0, bonus_saf_xp=0, correction_xp=0
            )
            session.add(entry)
        entry.misc_xp = xp


def commit_import(
    session: Session,
    *,
    member: Member,
    import_run: ImportRun,
    resolutions: dict[str, ConflictResolution],
    clock: Clock | None = None,
) -> ResolvedImportData:
    """Apply conflict resolutions and persist the import after snapshotting current records.

    Either everything lands in one transaction or nothing does; no snapshot, no commit.
    """
    if import_run.status == ImportRunStatus.COMMITTED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Import already committed")
    if import_run.status != ImportRunStatus.PARSED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=import_run.error_message or "Import has not been parsed",
        )

    body = get_storage().get(key=import_run.storage_key)
    result = run_statement(session, member=member, body=body, clock=clock)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    try:
        conflicts = apply_resolutions(result.conflicts, resolutions)
    except UnknownConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    resolved = resolve_import(result, conflicts, clock=clock)

    try:
        create_backup(session, member_id=member.id, source=import_run.filename, clock=clock)
    except BackupError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    try:
        flights_added = _add_flights(
            session, member_id=member.id, run_id=import_run.id, records=resolved.flights_to_add
        )
        months = _merge_miles(session, member_id=member.id, records=resolved.miles_to_merge)
        qualification = _apply_qualification(session, member_id=member.id, resolved=resolved)
        _apply_bonus_xp(session, member_id=member.id, bonus_xp_by_month=resolved.bonus_xp_by_month)
        _store_result(import_run, result)
        import_run.status = ImportRunStatus.COMMITTED
        import_run.committed_at = datetime.now(UTC)
        session.commit()
    except Exception:
        session.rollback()
        log_exception(logger, "import.commit.failure", import_run_id=str(import_run.id))
        raise

    log_event(
        logger,
        "import.commit",
        import_run_id=str(import_run.id),
        flights_added=flights_added,
        months_merged=months,
        qualification_updated=qualification,
        bonus_months=len(resolved.bonus_xp_by_month),
        resolutions=len(resolutions),
    )
    return resolved


def _restore_rows(session: Session, *, member_id: uuid.UUID, backup: ImportBackup) -> None:
    for model in (Flight, MilesMonth, Qualification, ManualLedgerEntry):
        session.execute(delete(model).where(model.member_id == member_id))

    for data in backup.flights:
        fields = {name: data.get(name) for name in FLIGHT_FIELDS}
        if fields["ticket_price"] is not None:
            fields["ticket_price"] = Decimal(fields["ticket_price"])
        session.add(Flight(member_id=member_id, **fields))
    for data in backup.miles_records:
        session.add(MilesMonth(member_id=member_id, **{name: data.get(name) for name in MILES_FIELDS}))
    if backup.qualification_settings:
        fields = {name: backup.qualification_settings.get(name) for name in QUALIFICATION_FIELDS}
        fields["starting_status"] = StatusLevel(fields["starting_status"])
        session.add(Qualification(member_id=member_id, **fields))
    for month, data in backup.manual_ledger.items():
        session.add(
            ManualLedgerEntry(
                member_id=member_id,
                month=month,
                **{name: int(data.get(name) or 0) for name in LEDGER_FIELDS},
            )
        )


def undo_last_import(session: Session, *, member: Member) -> ImportBackup:
    backup = restore_backup(member.id)
    if backup is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No backup to restore")

    try:
        _restore_rows(session, member_id=member.id, backup=backup)
        last_run = session.scalar(
            select(ImportRun)
            .where(ImportRun.member_id == member.id, ImportRun.status == ImportRunStatus.COMMITTED)
            .order_by(ImportRun.committed_at.desc())
            .limit(1)
        )
        if last_run is not None:
            last_run.status = ImportRunStatus.RESTORED
        session.commit()
    except Exception:
        session.rollback()
        log_exception(logger, "import.undo.failure", member_id=str(member.id))
        raise

    clear_backup(member.id)
    log_event(
        logger,
        "import.undo",
        member_id=str(member.id),
        backup_timestamp=backup.timestamp,
        source=backup.source,
        flights=len(backup.flights),
        months=len(backup.miles_records),
    )
    return backup


def list_flights(session: Session, *, member: Member) -> list[Flight]:
    return list(
        session.scalars(
            select(Flight)
            .where(Flight.member_id == member.id)
            .order_by(Flight.date.desc(), Flight.external_id)
        )
    )


def list_miles(session: Session, *, member: Member) -> list[MilesMonth]:
    return list(
        session.scalars(
            select(MilesMonth).where(MilesMonth.member_id == member.id).order_by(MilesMonth.month.desc())
        )
    )
