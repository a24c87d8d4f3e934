from __future__ import annotations

import uuid

from pydantic import BaseModel, EmailStr, Field

from skystatus.modules.statement.types import Currency


class MemberOut(BaseModel):
    id: uuid.UUID
    email: EmailStr
    display_name: str | None
    flying_blue_number: str | None
    currency: str
    is_active: bool


class MemberCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    display_name: str | None = None
    flying_blue_number: str | None = None
    currency: Currency | None = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
