from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from skystatus.modules.imports.models import ImportRunStatus
from skystatus.modules.statement.types import ConflictResolution, Language, StatusLevel


class ImportRunOut(BaseModel):
    id: uuid.UUID
    member_id: uuid.UUID
    filename: str
    content_type: str | None
    byte_size: int
    sha256: str
    status: ImportRunStatus
    language: Language | None
    result: dict[str, Any] | None
    conflicts: list[dict[str, Any]] | None
    error_message: str | None
    committed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ParseTextIn(BaseModel):
    text: str = Field(min_length=1)


class CommitIn(BaseModel):
    resolutions: dict[str, ConflictResolution] = Field(default_factory=dict)


class CommitOut(BaseModel):
    import_run_id: uuid.UUID
    flights_added: int
    miles_updated: int
    qualification_updated: bool
    starting_status: StatusLevel | None = None
    cycle_start_month: str | None = None
    bonus_xp_by_month: dict[str, int]
    timestamp: str


class BackupOut(BaseModel):
    exists: bool
    timestamp: str | None = None
    source: str | None = None
    flights: int = 0
    months: int = 0
    age: str | None = None


class RestoreOut(BaseModel):
    restored_from: str
    source: str
    flights: int
    months: int


class FlightOut(BaseModel):
    id: uuid.UUID
    external_id: str
    date: str
    flight_number: str
    route: str
    airline: str
    earned_xp: int
    earned_miles: int
    saf_xp: int
    uxp: int
    is_manual: bool
    source_import_id: uuid.UUID | None


class MilesMonthOut(BaseModel):
    id: uuid.UUID
    month: str
    flight_miles: int
    subscription_miles: int
    amex_miles: int
    hotel_miles: int
    other_miles: int
    purchased_miles: int
    transfer_miles: int
    miles_debit: int
    total_miles: int
