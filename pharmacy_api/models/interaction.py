"""
Drug interaction between two medicines.

The pair is unordered: (A, B) and (B, A) are the same interaction. Uniqueness
is enforced in services.interaction_service, which checks both orderings.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmacy_api.db.base import Base


class Interaction(Base):
    __tablename__ = "interactions"
    __table_args__ = (
        CheckConstraint("medicine_from_id <> medicine_to_id", name="ck_interactions_distinct_pair"),
    )

    id = Column(Integer, primary_key=True, index=True)
    medicine_from_id = Column(Integer, ForeignKey("medicines.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_to_id = Column(Integer, ForeignKey("medicines.id", ondelete="CASCADE"), nullable=False, index=True)
    severity = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    recommendation = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    medicine_from = relationship("Medicine", foreign_keys=[medicine_from_id])
    medicine_to = relationship("Medicine", foreign_keys=[medicine_to_id])
