from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pharmacy_api.schemas.customer import CustomerResponse
from pharmacy_api.schemas.medicine import MedicineSummary


class InvoiceItemCreate(BaseModel):
    medicine_id: int
    quantity: int = Field(ge=1)
    # Defaults to the medicine's retail price
    price: Optional[Decimal] = Field(default=None, ge=0)
    # Defaults to quantity * price
    total: Optional[Decimal] = Field(default=None, ge=0)


class InvoiceCreate(BaseModel):
    code: Optional[str] = None
    customer_id: Optional[int] = None
    payment_method: str = Field(min_length=1)
    status: str = "COMPLETED"
    note: Optional[str] = None
    # Defaults to the sum of item totals
    total: Optional[Decimal] = Field(default=None, ge=0)
    items: List[InvoiceItemCreate] = Field(min_length=1)

    @field_validator("code")
    @classmethod
    def code_not_numeric(cls, v: Optional[str]) -> Optional[str]:
        # Numeric keys address invoices by id, so a numeric code could never be looked up
        v = (v or "").strip()
        if v.isdecimal():
            raise ValueError("must contain a non-digit character")
        # Blank means assign one from the id
        return v or None


class InvoiceUpdate(BaseModel):
    """Header fields only; items change only by deleting the invoice."""

    note: Optional[str] = None
    payment_method: Optional[str] = Field(default=None, min_length=1)
    status: Optional[str] = Field(default=None, min_length=1)


class InvoiceItemResponse(BaseModel):
    id: int
    medicine_id: int
    medicine: Optional[MedicineSummary] = None
    quantity: int
    price: Decimal
    total: Decimal

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: int
    code: Optional[str] = None
    customer_id: Optional[int] = None
    customer: Optional[CustomerResponse] = None
    user_id: int
    date: Optional[datetime] = None
    payment_method: str
    status: str
    total: Decimal
    note: Optional[str] = None
    items: List[InvoiceItemResponse] = []

    class Config:
        from_attributes = True
