from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator


class CustomerCreate(BaseModel):
    name: str
    code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    birthdate: Optional[date] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return v or None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    birthdate: Optional[date] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return v or None


class CustomerResponse(BaseModel):
    id: int
    code: Optional[str] = None
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    birthdate: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
