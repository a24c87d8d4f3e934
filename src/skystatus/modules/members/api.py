from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from skystatus.api.deps import get_current_member
from skystatus.core.db import db_session
from skystatus.core.security import create_access_token
from skystatus.modules.members.models import Member
from skystatus.modules.members.schemas import MemberCreate, MemberOut, TokenOut
from skystatus.modules.members.service import authenticate_member, create_member

router = APIRouter(tags=["members"])


@router.post("/auth/register", response_model=MemberOut, status_code=201)
def register(payload: MemberCreate, session: Session = Depends(db_session)) -> MemberOut:
    member = create_member(
        session,
        email=str(payload.email),
        password=payload.password,
        display_name=payload.display_name,
        flying_blue_number=payload.flying_blue_number,
        currency=payload.currency,
    )
    return MemberOut.model_validate(member, from_attributes=True)


@router.post("/auth/token", response_model=TokenOut)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(db_session),
) -> TokenOut:
    member = authenticate_member(session, email=form_data.username, password=form_data.password)
    return TokenOut(access_token=create_access_token(member_id=str(member.id)))


@router.get("/auth/me", response_model=MemberOut)
def me(member: Member = Depends(get_current_member)) -> MemberOut:
    return MemberOut.model_validate(member, from_attributes=True)
