from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MedicineBase(BaseModel):
    name: str
    category: str
    description: Optional[str] = None
    active_ingredient: Optional[str] = None
    dosage: Optional[str] = None
    manufacturer: Optional[str] = None
    import_price: Decimal = Field(default=Decimal("0"), ge=0)
    retail_price: Decimal = Field(default=Decimal("0"), ge=0)
    expiry_date: Optional[date] = None
    lot_number: Optional[str] = None

    @field_validator("name", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class MedicineCreate(MedicineBase):
    # Opening stock, recorded as an INITIAL inventory log
    stock: int = Field(default=0, ge=0)


class MedicineUpdate(BaseModel):
    """Stock is deliberately absent: it changes only through imports, sales and adjustments."""

    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    active_ingredient: Optional[str] = None
    dosage: Optional[str] = None
    manufacturer: Optional[str] = None
    import_price: Optional[Decimal] = Field(default=None, ge=0)
    retail_price: Optional[Decimal] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    lot_number: Optional[str] = None

    @field_validator("name", "category")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("import_price", "retail_price")
    @classmethod
    def price_not_null(cls, v: Optional[Decimal]) -> Decimal:
        if v is None:
            raise ValueError("must not be null")
        return v


class MedicineResponse(BaseModel):
    id: int
    code: Optional[str] = None
    name: str
    category: str
    description: Optional[str] = None
    active_ingredient: Optional[str] = None
    dosage: Optional[str] = None
    manufacturer: Optional[str] = None
    import_price: Decimal
    retail_price: Decimal
    stock: int
    expiry_date: Optional[date] = None
    lot_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MedicineSummary(BaseModel):
    id: int
    code: Optional[str] = None
    name: str

    class Config:
        from_attributes = True
