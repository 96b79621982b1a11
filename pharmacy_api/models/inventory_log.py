"""
InventoryLog: append-only audit trail of stock deltas.

One row per stock change, carrying the signed delta and its cause. Rows are
inserted by services.stock_service and never updated or deleted; ORM
listeners reject flushing a modified or deleted row.
"""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, event
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmacy_api.db.base import Base


class InventoryLogType(str, enum.Enum):
    IMPORT = "IMPORT"
    SALE = "SALE"
    RETURN = "RETURN"
    ADJUSTMENT_ADD = "ADJUSTMENT_ADD"
    ADJUSTMENT_SUBTRACT = "ADJUSTMENT_SUBTRACT"
    IMPORT_CANCEL = "IMPORT_CANCEL"
    INITIAL = "INITIAL"

    @property
    def sign(self) -> int:
        """Required sign of the quantity delta for this log type."""
        return _SIGNS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_SIGNS = {
    InventoryLogType.IMPORT: 1,
    InventoryLogType.SALE: -1,
    InventoryLogType.RETURN: 1,
    InventoryLogType.ADJUSTMENT_ADD: 1,
    InventoryLogType.ADJUSTMENT_SUBTRACT: -1,
    InventoryLogType.IMPORT_CANCEL: -1,
    InventoryLogType.INITIAL: 1,
}

_LABELS = {
    InventoryLogType.IMPORT: "Stock import",
    InventoryLogType.SALE: "Sale",
    InventoryLogType.RETURN: "Sale returned",
    InventoryLogType.ADJUSTMENT_ADD: "Adjustment (increase)",
    InventoryLogType.ADJUSTMENT_SUBTRACT: "Adjustment (decrease)",
    InventoryLogType.IMPORT_CANCEL: "Import cancelled",
    InventoryLogType.INITIAL: "Opening stock",
}

assert set(_SIGNS) == set(InventoryLogType) == set(_LABELS)


class InventoryLog(Base):
    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(String(50), nullable=False)  # InventoryLogType value
    quantity = Column(Integer, nullable=False)  # signed delta
    reference = Column(String(100), nullable=True, index=True)  # invoice/import code
    note = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    medicine = relationship("Medicine", back_populates="inventory_logs")
    user = relationship("User")

    @property
    def log_type(self) -> InventoryLogType:
        return InventoryLogType(self.type)

    def __repr__(self):
        return f"<InventoryLog medicine={self.medicine_id} {self.type} {self.quantity:+d}>"


class InventoryLogImmutableError(Exception):
    pass


@event.listens_for(InventoryLog, "before_update")
def _reject_log_update(mapper, connection, target):
    raise InventoryLogImmutableError(f"InventoryLog {target.id} is append-only")


@event.listens_for(InventoryLog, "before_delete")
def _reject_log_delete(mapper, connection, target):
    raise InventoryLogImmutableError(f"InventoryLog {target.id} is append-only")
