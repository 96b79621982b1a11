from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pharmacy_api.schemas.medicine import MedicineSummary


class ImportItemCreate(BaseModel):
    medicine_id: int
    lot_number: str
    expiry_date: date
    quantity: int = Field(ge=1)
    price: Decimal = Field(ge=0)
    # Defaults to quantity * price
    total: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("lot_number")
    @classmethod
    def lot_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class ImportCreate(BaseModel):
    supplier_id: int
    status: str = "COMPLETED"
    note: Optional[str] = None
    items: List[ImportItemCreate] = Field(min_length=1)


class ImportUpdate(BaseModel):
    note: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1)


class ImportItemResponse(BaseModel):
    id: int
    medicine_id: int
    medicine: Optional[MedicineSummary] = None
    lot_number: str
    expiry_date: date
    price: Decimal
    quantity: int
    total: Decimal

    class Config:
        from_attributes = True


class ImportSupplier(BaseModel):
    id: int
    code: Optional[str] = None
    name: str

    class Config:
        from_attributes = True


class ImportResponse(BaseModel):
    id: int
    code: Optional[str] = None
    supplier_id: int
    supplier: Optional[ImportSupplier] = None
    user_id: int
    date: Optional[datetime] = None
    status: str
    total: Decimal
    note: Optional[str] = None
    items: List[ImportItemResponse] = []

    class Config:
        from_attributes = True
