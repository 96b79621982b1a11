from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from pharmacy_api.schemas.medicine import MedicineSummary


class _PairRef(BaseModel):
    """A pair of medicines given by id, or by exact name as a convenience."""

    medicine_from_id: Optional[int] = None
    medicine_from_name: Optional[str] = None
    medicine_to_id: Optional[int] = None
    medicine_to_name: Optional[str] = None


class InteractionCreate(_PairRef):
    severity: str = Field(min_length=1)
    description: str = Field(min_length=1)
    recommendation: Optional[str] = None

    @model_validator(mode="after")
    def both_sides_given(self):
        if self.medicine_from_id is None and not self.medicine_from_name:
            raise ValueError("medicine_from_id or medicine_from_name is required")
        if self.medicine_to_id is None and not self.medicine_to_name:
            raise ValueError("medicine_to_id or medicine_to_name is required")
        return self


class InteractionUpdate(_PairRef):
    severity: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    recommendation: Optional[str] = None


class InteractionCheck(_PairRef):
    @model_validator(mode="after")
    def both_sides_given(self):
        if self.medicine_from_id is None and not self.medicine_from_name:
            raise ValueError("Both medicines are required")
        if self.medicine_to_id is None and not self.medicine_to_name:
            raise ValueError("Both medicines are required")
        return self


class InteractionResponse(BaseModel):
    id: int
    medicine_from: MedicineSummary
    medicine_to: MedicineSummary
    severity: str
    description: str
    recommendation: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InteractionCheckResult(BaseModel):
    found: bool
    interaction: Optional[InteractionResponse] = None
