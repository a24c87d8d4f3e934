"""Single-slot undo snapshot of a member's records, taken before every import commit.

The snapshot is a JSON blob in object storage under ``<backup_key>/<member_id>.json``.
Each new backup overwrites the previous one; there is no history.
"""

from __future__ import annotations

import enum
import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from skystatus.core.config import settings
from skystatus.core.logging import get_logger, log_event, log_exception
from skystatus.core.storage import StorageError, get_storage
from skystatus.modules.imports.models import Flight, ManualLedgerEntry, MilesMonth, Qualification
from skystatus.modules.statement.dates import Clock, iso_timestamp, utc_now

logger = get_logger(__name__)

FLIGHT_FIELDS = (
    "external_id",
    "date",
    "flight_number",
    "route",
    "airline",
    "earned_xp",
    "earned_miles",
    "saf_xp",
    "uxp",
    "ticket_price",
    "currency",
    "is_manual",
)
MILES_FIELDS = (
    "month",
    "flight_miles",
    "subscription_miles",
    "amex_miles",
    "hotel_miles",
    "other_miles",
    "purchased_miles",
    "transfer_miles",
    "miles_debit",
    "total_miles",
)
QUALIFICATION_FIELDS = (
    "cycle_start_month",
    "cycle_start_date",
    "starting_status",
    "starting_xp",
    "starting_uxp",
    "rollover_xp",
)
LEDGER_FIELDS = ("amex_xp", "bonus_saf_xp", "misc_xp", "correction_xp")


class BackupError(RuntimeError):
    pass


@dataclass(frozen=True)
class ImportBackup:
    flights: list[dict[str, Any]]
    miles_records: list[dict[str, Any]]
    qualification_settings: dict[str, Any] | None
    manual_ledger: dict[str, dict[str, int]]
    timestamp: str
    source: str

    def to_json(self) -> bytes:
        payload = {
            "flights": self.flights,
            "miles_records": self.miles_records,
            "qualification_settings": self.qualification_settings,
            "manual_ledger": self.manual_ledger,
            "timestamp": self.timestamp,
            "source": self.source,
        }
        return json.dumps(payload, ensure_ascii=True).encode("utf-8")

    @classmethod
    def from_json(cls, body: bytes) -> ImportBackup:
        data = json.loads(body.decode("utf-8"))
        return cls(
            flights=list(data.get("flights") or []),
            miles_records=list(data.get("miles_records") or []),
            qualification_settings=data.get("qualification_settings"),
            manual_ledger=dict(data.get("manual_ledger") or {}),
            timestamp=str(data["timestamp"]),
            source=str(data.get("source") or ""),
        )


@dataclass(frozen=True)
class BackupInfo:
    timestamp: str
    source: str
    flights: int
    months: int


def backup_storage_key(member_id: uuid.UUID) -> str:
    return f"{settings.backup_key}/{member_id}.json"


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    return value


def _row(obj: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    return {name: _plain(getattr(obj, name)) for name in fields}


def snapshot(session: Session, *, member_id: uuid.UUID, source: str, clock: Clock | None = None) -> ImportBackup:
    flights = session.scalars(
        select(Flight).where(Flight.member_id == member_id).order_by(Flight.date, Flight.external_id)
    )
    miles = session.scalars(
        select(MilesMonth).where(MilesMonth.member_id == member_id).order_by(MilesMonth.month)
    )
    qualification = session.scalar(select(Qualification).where(Qualification.member_id == member_id))
    ledger = session.scalars(
        select(ManualLedgerEntry)
        .where(ManualLedgerEntry.member_id == member_id)
        .order_by(ManualLedgerEntry.month)
    )
    return ImportBackup(
        flights=[_row(f, FLIGHT_FIELDS) for f in flights],
        miles_records=[_row(m, MILES_FIELDS) for m in miles],
        qualification_settings=_row(qualification, QUALIFICATION_FIELDS) if qualification else None,
        manual_ledger={entry.month: _row(entry, LEDGER_FIELDS) for entry in ledger},
        timestamp=iso_timestamp(clock),
        source=source,
    )


def create_backup(
    session: Session, *, member_id: uuid.UUID, source: str, clock: Clock | None = None
) -> ImportBackup:
    backup = snapshot(session, member_id=member_id, source=source, clock=clock)
    key = backup_storage_key(member_id)
    try:
        get_storage().put(key=key, body=backup.to_json())
    except StorageError as e:
        log_exception(logger, "backup.create.failure", member_id=str(member_id), storage_key=key)
        raise BackupError("Could not create backup before import") from e
    log_event(
        logger,
        "backup.create",
        member_id=str(member_id),
        source=source,
        flights=len(backup.flights),
        months=len(backup.miles_records),
    )
    return backup


def has_backup(member_id: uuid.UUID) -> bool:
    return get_storage().exists(key=backup_storage_key(member_id))


def restore_backup(member_id: uuid.UUID) -> ImportBackup | None:
    """Load the stored snapshot; ``None`` when the member has none."""
    key = backup_storage_key(member_id)
    storage = get_storage()
    if not storage.exists(key=key):
        return None
    body = storage.get(key=key)
    try:
        return ImportBackup.from_json(body)
    except (ValueError, KeyError) as e:
        log_exception(logger, "backup.restore.failure", member_id=str(member_id), storage_key=key)
        raise BackupError("Stored backup is unreadable") from e


def get_backup_info(member_id: uuid.UUID) -> BackupInfo | None:
    backup = restore_backup(member_id)
    if backup is None:
        return None
    return BackupInfo(
        timestamp=backup.timestamp,
        source=backup.source,
        flights=len(backup.flights),
        months=len(backup.miles_records),
    )


def clear_backup(member_id: uuid.UUID) -> None:
    get_storage().delete(key=backup_storage_key(member_id))
    log_event(logger, "backup.clear", member_id=str(member_id))


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def describe_age(timestamp: str, now: datetime) -> str:
    taken = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    minutes = int((now - taken).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return _plural(days, "day")
    if hours > 0:
        return _plural(hours, "hour")
    if minutes > 0:
        return _plural(minutes, "minute")
    return "just now"


def get_backup_age(member_id: uuid.UUID, clock: Clock | None = None) -> str | None:
    info = get_backup_info(member_id)
    if info is None:
        return None
    return describe_age(info.timestamp, (clock or utc_now)())
