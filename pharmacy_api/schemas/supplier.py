from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator


class SupplierCreate(BaseModel):
    name: str
    phone: str
    address: str
    contact_person: str
    email: Optional[EmailStr] = None
    tax_code: Optional[str] = None

    @field_validator("name", "phone", "address", "contact_person")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return v or None


class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    tax_code: Optional[str] = None

    @field_validator("name", "phone", "address", "contact_person")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> str:
        # Omit a field to keep it; null would clear a required column
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return v or None


class SupplierResponse(BaseModel):
    id: int
    code: Optional[str] = None
    name: str
    phone: str
    address: str
    contact_person: str
    email: Optional[str] = None
    tax_code: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
