"""
Medicine catalogue row.

`stock` is the authoritative on-hand quantity. It is only ever changed by
services.stock_service.apply_delta, which writes the matching InventoryLog.
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmacy_api.db.base import Base


class Medicine(Base):
    __tablename__ = "medicines"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_medicines_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=True, index=True)  # MED-<1000+id>, assigned after insert
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    active_ingredient = Column(Text, nullable=True)
    dosage = Column(String(100), nullable=True)
    manufacturer = Column(String(255), nullable=True)
    import_price = Column(Numeric(12, 2), nullable=False, default=0)
    retail_price = Column(Numeric(12, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    # Lot/expiry of the most recent import, for display
    expiry_date = Column(Date, nullable=True)
    lot_number = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    inventory_logs = relationship("InventoryLog", back_populates="medicine")

    def __repr__(self):
        return f"<Medicine {self.code} stock={self.stock}>"
