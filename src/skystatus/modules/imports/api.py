from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.orm import Session

from skystatus.api.deps import get_current_member
from skystatus.core.db import db_session
from skystatus.core.logging import get_logger, log_event
from skystatus.modules.imports.backup import clear_backup, get_backup_age, get_backup_info
from skystatus.modules.imports.schemas import (
    BackupOut,
    CommitIn,
    CommitOut,
    FlightOut,
    ImportRunOut,
    MilesMonthOut,
    ParseTextIn,
    RestoreOut,
)
from skystatus.modules.imports.service import (
    commit_import,
    create_import_run,
    get_import_run,
    list_flights,
    list_miles,
    run_statement,
    to_jsonable,
    undo_last_import,
)
from skystatus.modules.members.models import Member
from skystatus.worker.tasks import parse_statement_task

router = APIRouter(tags=["imports"])
logger = get_logger(__name__)


@router.post("/imports", response_model=ImportRunOut, status_code=201)
async def upload_statement(
    upload: UploadFile = File(...),
    session: Session = Depends(db_session),
    member: Member = Depends(get_current_member),
) -> ImportRunOut:
    body = await upload.read()
    filename = upload.filename or "statement.pdf"
    log_event(
        logger,
        "upload.received",
        filename=filename,
        content_type=upload.content_type,
        byte_size=len(body),
    )
    run = create_import_run(
        session,
        member=member,
        filename=filename,
        content_type=upload.content_type,
        body=body,
    )
    async_result = parse_statement_task.delay(str(run.id))
    log_event(
        logger,
        "celery.task.enqueued",
        task_name="parse_statement",
        celery_task_id=async_result.id,
        import_run_id=str(run.id),
    )
    session.refresh(run)
    return ImportRunOut.model_validate(run, from_attributes=True)


@router.post("/imports/parse-text")
def parse_text(
    payload: ParseTextIn,
    session: Session = Depends(db_session),
    member: Member = Depends(get_current_member),
) -> dict[str, Any]:
    result = run_statement(session, member=member, body=payload.text.encode("utf-8"))
    return to_jsonable(result)


@router.get("/imports/backup", response_model=BackupOut)
def backup_status(member: Member = Depends(get_current_member)) -> BackupOut:
    info = get_backup_info(member.id)
    if info is None:
        return BackupOut(exists=False)
    return BackupOut(
        exists=True,
        timestamp=info.timestamp,
        source=info.source,
        flights=info.flights,
        months=info.months,
        age=get_backup_age(member.id),
    )


@router.post("/imports/backup/restore", response_model=RestoreOut)
def restore(
    session: Session = Depends(db_session),
    member: Member = Depends(get_current_member),
) -> RestoreOut:
    backup = undo_last_import(session, member=member)
    return RestoreOut(
        restored_from=backup.timestamp,
        source=backup.source,
        flights=len(backup.flights),
        months=len(backup.miles_records),
    )


@router.delete("/imports/backup", status_code=204)
def discard_backup(member: Member = Depends(get_current_member)) -> Response:
    clear_backup(member.id)
    return Response(status_code=204)


@router.get("/imports/{import_run_id}", response_model=ImportRunOut)
def get_import(
    import_run_id: uuid.UUID,
    session: Session = Depends(db_session),
    member: Member = Depends(get_current_member),
) -> ImportRunOut:
    run = get_import_run(session, member=member, import_run_id=import_run_id)
    return ImportRunOut.model_validate(run, from_attributes=True)


@router.post("/imports/{import_run_id}/commit", response_model=CommitOut)
def commit(
    import_run_id: uuid.UUID,
    payload: CommitIn,
    session: Session = Depends(db_session),
    member: Member = Depends(get_current_member),
) -> CommitOut:
    run = get_import_run(session, member=member, import_run_id=import_run_id)
    resolved = commit_import(session, member=member, import_run=run, resolutions=payload.resolutions)
    qualification = resolved.qualification_settings
    return CommitOut(
        import_run_id=run.id,
        flights_added=resolved.import_meta.flights_added,
        miles_updated=resolved.import_meta.miles_updated,
        qualification_updated=qualification is not None and bool(qualification.cycle_start_month),
        starting_status=qualification.starting_status if qualification else None,
        cycle_start_month=qualification.cycle_start_month if qualification else None,
        bonus_xp_by_month=resolved.bonus_xp_by_month,
        timestamp=resolved.import_meta.timestamp,
    )


@router.get("/flights", response_model=list[FlightOut])
def flights(
    session: Session = Depends(db_session),
    member: Member = Depends(get_current_member),
) -> list[FlightOut]:
    return [
        FlightOut.model_validate(flight, from_attributes=True)
        for flight in list_flights(session, member=member)
    ]


@router.get("/miles", response_model=list[MilesMonthOut])
def miles(
    session: Session = Depends(db_session),
    member: Member = Depends(get_current_member),
) -> list[MilesMonthOut]:
    return [
        MilesMonthOut.model_validate(month, from_attributes=True)
        for month in list_miles(session, member=member)
    ]
