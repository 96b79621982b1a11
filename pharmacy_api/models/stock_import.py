"""Goods receipt from a supplier. Each item adds stock to one medicine."""
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Date, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmacy_api.db.base import Base


class Import(Base):
    __tablename__ = "imports"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=True, index=True)  # IMP-<id:06d>
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status = Column(String(50), nullable=False, default="COMPLETED")
    total = Column(Numeric(12, 2), nullable=False, default=0)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    supplier = relationship("Supplier", back_populates="imports")
    user = relationship("User")
    items = relationship(
        "ImportItem",
        back_populates="stock_import",
        order_by="ImportItem.id",
        cascade="all, delete-orphan",
    )


class ImportItem(Base):
    __tablename__ = "import_items"

    id = Column(Integer, primary_key=True, index=True)
    import_id = Column(Integer, ForeignKey("imports.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    lot_number = Column(String(100), nullable=False)
    expiry_date = Column(Date, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    stock_import = relationship("Import", back_populates="items")
    medicine = relationship("Medicine")
