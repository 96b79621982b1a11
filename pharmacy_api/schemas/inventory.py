import enum
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from pharmacy_api.schemas.medicine import MedicineResponse


class AdjustType(str, enum.Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


class StockLevel(str, enum.Enum):
    ALL = "all"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InventoryAdjust(BaseModel):
    medicine_id: int
    adjust_type: AdjustType
    # For `set` this is the target stock and may be 0
    quantity: int = Field(ge=0)
    reason: Optional[str] = None

    @model_validator(mode="after")
    def positive_for_relative_adjustments(self):
        if self.adjust_type != AdjustType.SET and self.quantity < 1:
            raise ValueError("quantity must be at least 1 for add/subtract")
        return self


class InventoryLogResponse(BaseModel):
    id: int
    medicine_id: int
    medicine_name: Optional[str] = None
    user_id: int
    type: str
    label: str
    quantity: int
    reference: Optional[str] = None
    note: Optional[str] = None
    date: Optional[datetime] = None

    @classmethod
    def from_log(cls, log) -> "InventoryLogResponse":
        return cls(
            id=log.id,
            medicine_id=log.medicine_id,
            medicine_name=log.medicine.name if log.medicine else None,
            user_id=log.user_id,
            type=log.type,
            label=log.log_type.label,
            quantity=log.quantity,
            reference=log.reference,
            note=log.note,
            date=log.date,
        )


class AdjustmentResult(BaseModel):
    medicine: MedicineResponse
    # None when a `set` adjustment already matched the current stock
    log: Optional[InventoryLogResponse] = None


class InventoryRow(BaseModel):
    id: int
    code: Optional[str] = None
    name: str
    category: str
    stock: int
    level: StockLevel
    expiry_date: Optional[date] = None
    lot_number: Optional[str] = None
    manufacturer: Optional[str] = None
    updated_at: Optional[datetime] = None


class StockReconciliation(BaseModel):
    medicine_id: int
    stock: int
    ledger_total: int
    consistent: bool
