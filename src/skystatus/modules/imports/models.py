from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skystatus.core.models import Base, Timestamped, UUIDPrimaryKey, member_fk
from skystatus.modules.statement.types import Language, StatusLevel


class ImportRunStatus(str, enum.Enum):
    UPLOADED = "UPLOADED"
    PARSED = "PARSED"
    FAILED = "FAILED"
    COMMITTED = "COMMITTED"
    RESTORED = "RESTORED"


class ImportRun(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "imports_run"

    member_id: Mapped[uuid.UUID] = member_fk()

    filename: Mapped[str] = mapped_column(String(512))
    content_type: Mapped[str | None] = mapped_column(String(200), nullable=True)
    byte_size: Mapped[int] = mapped_column(Integer)
    sha256: Mapped[str] = mapped_column(String(64), index=True)
    storage_key: Mapped[str] = mapped_column(String(1024), unique=True)

    status: Mapped[ImportRunStatus] = mapped_column(
        Enum(ImportRunStatus, native_enum=False), index=True
    )
    language: Mapped[Language | None] = mapped_column(
        Enum(Language, native_enum=False), nullable=True
    )
    result: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    conflicts: Mapped[list | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    committed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    member = relationship("Member")


class Flight(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "imports_flight"
    __table_args__ = (UniqueConstraint("member_id", "external_id", name="uq_imports_flight_external"),)

    member_id: Mapped[uuid.UUID] = member_fk()
    source_import_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("imports_run.id", ondelete="SET NULL"), nullable=True
    )

    external_id: Mapped[str] = mapped_column(String(128))
    date: Mapped[str] = mapped_column(String(10), index=True)
    flight_number: Mapped[str] = mapped_column(String(16))
    route: Mapped[str] = mapped_column(String(16))
    airline: Mapped[str] = mapped_column(String(64))
    earned_xp: Mapped[int] = mapped_column(Integer, default=0)
    earned_miles: Mapped[int] = mapped_column(Integer, default=0)
    saf_xp: Mapped[int] = mapped_column(Integer, default=0)
    uxp: Mapped[int] = mapped_column(Integer, default=0)
    ticket_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    is_manual: Mapped[bool] = mapped_column(Boolean, default=False)


class MilesMonth(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "imports_miles_month"
    __table_args__ = (UniqueConstraint("member_id", "month", name="uq_imports_miles_month"),)

    member_id: Mapped[uuid.UUID] = member_fk()

    month: Mapped[str] = mapped_column(String(7))
    flight_miles: Mapped[int] = mapped_column(Integer, default=0)
    subscription_miles: Mapped[int] = mapped_column(Integer, default=0)
    amex_miles: Mapped[int] = mapped_column(Integer, default=0)
    hotel_miles: Mapped[int] = mapped_column(Integer, default=0)
    other_miles: Mapped[int] = mapped_column(Integer, default=0)
    purchased_miles: Mapped[int] = mapped_column(Integer, default=0)
    transfer_miles: Mapped[int] = mapped_column(Integer, default=0)
    miles_debit: Mapped[int] = mapped_column(Integer, default=0)
    total_miles: Mapped[int] = mapped_column(Integer, default=0)


class Qualification(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "imports_qualification"
    __table_args__ = (UniqueConstraint("member_id", name="uq_imports_qualification_member"),)

    member_id: Mapped[uuid.UUID] = member_fk()

    cycle_start_month: Mapped[str] = mapped_column(String(7))
    cycle_start_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    starting_status: Mapped[StatusLevel] = mapped_column(Enum(StatusLevel, native_enum=False))
    starting_xp: Mapped[int] = mapped_column(Integer, default=0)
    starting_uxp: Mapped[int] = mapped_column(Integer, default=0)
    rollover_xp: Mapped[int] = mapped_column(Integer, default=0)


class ManualLedgerEntry(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "imports_manual_ledger"
    __table_args__ = (UniqueConstraint("member_id", "month", name="uq_imports_manual_ledger_month"),)

    member_id: Mapped[uuid.UUID] = member_fk()

    month: Mapped[str] = mapped_column(String(7))
    amex_xp: Mapped[int] = mapped_column(Integer, default=0)
    bonus_saf_xp: Mapped[int] = mapped_column(Integer, default=0)
    misc_xp: Mapped[int] = mapped_column(Integer, default=0)
    correction_xp: Mapped[int] = mapped_column(Integer, default=0)
