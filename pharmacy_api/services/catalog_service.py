"""Medicines, customers and suppliers: CRUD and searchable listings."""
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from pharmacy_api.core.audit import AuditLog
from pharmacy_api.core.permissions import ActorContext, STOCK_MANAGERS, ensure_role
from pharmacy_api.db.session import unit_of_work
from pharmacy_api.models.customer import Customer
from pharmacy_api.models.interaction import Interaction
from pharmacy_api.models.inventory_log import InventoryLogType
from pharmacy_api.models.invoice import Invoice
from pharmacy_api.models.medicine import Medicine
from pharmacy_api.models.supplier import Supplier
from pharmacy_api.schemas.customer import CustomerCreate, CustomerUpdate
from pharmacy_api.schemas.medicine import MedicineCreate, MedicineUpdate
from pharmacy_api.schemas.supplier import SupplierCreate, SupplierUpdate
from pharmacy_api.services.common import assign_code, flush_or_conflict, paginate
from pharmacy_api.services.lookup import (
    ensure_customer_deletable,
    ensure_medicine_deletable,
    ensure_supplier_deletable,
    get_customer,
    get_medicine,
    get_supplier,
)
from pharmacy_api.services.stock_service import apply_delta

logger = logging.getLogger(__name__)


def _apply_updates(obj, updates) -> dict:
    changes = updates.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(obj, field, value)
    return changes


# ==============================================================================
# MEDICINES
# ==============================================================================

def create_medicine(db: Session, actor: ActorContext, data: MedicineCreate) -> Medicine:
    """Create a medicine. Opening stock is booked as one INITIAL log row."""
    ensure_role(actor, STOCK_MANAGERS, "create", "medicine")
    with unit_of_work(db):
        medicine = Medicine(**data.model_dump(exclude={"stock"}), stock=0)
        db.add(medicine)
        assign_code(db, medicine, "medicine")
        if data.stock > 0:
            apply_delta(
                db, medicine.id, data.stock, InventoryLogType.INITIAL, actor,
                reference=medicine.code, note="Opening stock",
            )
    db.refresh(medicine)
    AuditLog.log_action("create", "medicine", medicine.code, actor.user_id, changes={"stock": medicine.stock})
    return medicine


def update_medicine(db: Session, actor: ActorContext, medicine_id: int, data: MedicineUpdate) -> Medicine:
    ensure_role(actor, STOCK_MANAGERS, "update", "medicine")
    with unit_of_work(db):
        medicine = get_medicine(db, medicine_id)
        changes = _apply_updates(medicine, data)
        flush_or_conflict(db, "Medicine")
    db.refresh(medicine)
    AuditLog.log_action("update", "medicine", medicine.code, actor.user_id, changes=changes)
    return medicine


def delete_medicine(db: Session, actor: ActorContext, medicine_id: int) -> None:
    """Delete a medicine with no stock history, together with its interactions."""
    ensure_role(actor, STOCK_MANAGERS, "delete", "medicine")
    with unit_of_work(db):
        medicine = get_medicine(db, medicine_id)
        ensure_medicine_deletable(db, medicine)
        code = medicine.code
        db.query(Interaction).filter(
            or_(Interaction.medicine_from_id == medicine_id, Interaction.medicine_to_id == medicine_id)
        ).delete(synchronize_session=False)
        db.delete(medicine)
    AuditLog.log_action("delete", "medicine", code, actor.user_id)


def list_medicines(
    db: Session,
    page: int,
    limit: int,
    search: Optional[str] = None,
    category: Optional[str] = None,
):
    q = db.query(Medicine)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(Medicine.name.ilike(pattern), Medicine.code.ilike(pattern)))
    if category:
        q = q.filter(Medicine.category == category)
    return paginate(q.order_by(Medicine.created_at.desc(), Medicine.id.desc()), page, limit)


# ==============================================================================
# CUSTOMERS
# ==============================================================================

def create_customer(db: Session, actor: ActorContext, data: CustomerCreate) -> Customer:
    with unit_of_work(db):
        customer = Customer(**data.model_dump())
        db.add(customer)
        assign_code(db, customer, "customer")
    db.refresh(customer)
    AuditLog.log_action("create", "customer", customer.code, actor.user_id)
    return customer


def update_customer(db: Session, actor: ActorContext, customer_id: int, data: CustomerUpdate) -> Customer:
    with unit_of_work(db):
        customer = get_customer(db, customer_id)
        changes = _apply_updates(customer, data)
    db.refresh(customer)
    AuditLog.log_action("update", "customer", customer.code, actor.user_id, changes=changes)
    return customer


def delete_customer(db: Session, actor: ActorContext, customer_id: int) -> None:
    """Refused with ConflictError while any invoice references the customer."""
    with unit_of_work(db):
        customer = get_customer(db, customer_id)
        ensure_customer_deletable(db, customer)
        code = customer.code
        db.delete(customer)
    AuditLog.log_action("delete", "customer", code, actor.user_id)


def list_customers(db: Session, page: int, limit: int, search: Optional[str] = None):
    q = db.query(Customer)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Customer.name.ilike(pattern),
            Customer.code.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.email.ilike(pattern),
        ))
    return paginate(q.order_by(Customer.created_at.desc(), Customer.id.desc()), page, limit)


def list_customer_invoices(db: Session, customer_id: int, page: int, limit: int):
    get_customer(db, customer_id)
    q = db.query(Invoice).filter(Invoice.customer_id == customer_id)
    return paginate(q.order_by(Invoice.date.desc(), Invoice.id.desc()), page, limit)


# ==============================================================================
# SUPPLIERS
# ==============================================================================

def create_supplier(db: Session, actor: ActorContext, data: SupplierCreate) -> Supplier:
    ensure_role(actor, STOCK_MANAGERS, "create", "supplier")
    with unit_of_work(db):
        supplier = Supplier(**data.model_dump())
        db.add(supplier)
        assign_code(db, supplier, "supplier")
    db.refresh(supplier)
    AuditLog.log_action("create", "supplier", supplier.code, actor.user_id)
    return supplier


def update_supplier(db: Session, actor: ActorContext, supplier_id: int, data: SupplierUpdate) -> Supplier:
    ensure_role(actor, STOCK_MANAGERS, "update", "supplier")
    with unit_of_work(db):
        supplier = get_supplier(db, supplier_id)
        changes = _apply_updates(supplier, data)
    db.refresh(supplier)
    AuditLog.log_action("update", "supplier", supplier.code, actor.user_id, changes=changes)
    return supplier


def delete_supplier(db: Session, actor: ActorContext, supplier_id: int) -> None:
    """Refused with ConflictError while any import references the supplier."""
    ensure_role(actor, STOCK_MANAGERS, "delete", "supplier")
    with unit_of_work(db):
        supplier = get_supplier(db, supplier_id)
        ensure_supplier_deletable(db, supplier)
        code = supplier.code
        db.delete(supplier)
    AuditLog.log_action("delete", "supplier", code, actor.user_id)


def list_suppliers(db: Session, page: int, limit: int, search: Optional[str] = None):
    q = db.query(Supplier)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Supplier.name.ilike(pattern),
            Supplier.code.ilike(pattern),
            Supplier.phone.ilike(pattern),
            Supplier.email.ilike(pattern),
        ))
    return paginate(q.order_by(Supplier.created_at.desc(), Supplier.id.desc()), page, limit)
