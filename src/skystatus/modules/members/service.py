from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from skystatus.core.config import settings
from skystatus.core.security import hash_password, verify_password
from skystatus.modules.members.models import Member
from skystatus.modules.statement.types import Currency


def get_member_by_email(session: Session, *, email: str) -> Member | None:
    return session.scalar(select(Member).where(Member.email == email))


def create_member(
    session: Session,
    *,
    email: str,
    password: str,
    display_name: str | None = None,
    flying_blue_number: str | None = None,
    currency: Currency | None = None,
) -> Member:
    existing = get_member_by_email(session, email=email)
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    member = Member(
        email=email,
        display_name=display_name,
        flying_blue_number=flying_blue_number,
        currency=(currency or Currency(settings.default_currency)).value,
        password_hash=hash_password(password),
        is_active=True,
    )
    session.add(member)
    session.commit()
    session.refresh(member)
    return member


def authenticate_member(session: Session, *, email: str, password: str) -> Member:
    member = get_member_by_email(session, email=email)
    if not member or not member.is_active or not verify_password(password, member.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return member
