"""
Reference resolution and precondition checks shared by the workflows.

Lookups resolve by id and raise NotFoundError. Name-based medicine lookup
exists only as a convenience for interaction forms and refuses to guess
when several medicines share a name.
"""
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from pharmacy_api.core.exceptions import ConflictError, NotFoundError
from pharmacy_api.models.customer import Customer
from pharmacy_api.models.interaction import Interaction
from pharmacy_api.models.inventory_log import InventoryLog
from pharmacy_api.models.invoice import Invoice, InvoiceItem
from pharmacy_api.models.medicine import Medicine
from pharmacy_api.models.stock_import import Import, ImportItem
from pharmacy_api.models.supplier import Supplier


def get_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = db.get(Medicine, medicine_id)
    if medicine is None:
        raise NotFoundError.for_entity("Medicine", medicine_id)
    return medicine


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError.for_entity("Customer", customer_id)
    return customer


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError.for_entity("Supplier", supplier_id)
    return supplier


def get_invoice(db: Session, key: int | str) -> Invoice:
    """Resolve an invoice by numeric id or by its code (e.g. INV-00012)."""
    invoice = _by_id_or_code(db, Invoice, key)
    if invoice is None:
        raise NotFoundError.for_entity("Invoice", key)
    return invoice


def get_import(db: Session, key: int | str) -> Import:
    """Resolve an import by numeric id or by its code (e.g. IMP-000004)."""
    stock_import = _by_id_or_code(db, Import, key)
    if stock_import is None:
        raise NotFoundError.for_entity("Import", key)
    return stock_import


def get_interaction(db: Session, interaction_id: int) -> Interaction:
    interaction = db.get(Interaction, interaction_id)
    if interaction is None:
        raise NotFoundError.for_entity("Interaction", interaction_id)
    return interaction


def _by_id_or_code(db: Session, model, key: int | str):
    # Codes are never all-digit, see InvoiceCreate.code
    if isinstance(key, int) or key.isdecimal():
        return db.get(model, int(key))
    return db.query(model).filter(model.code == key).first()


def resolve_medicine_by_name(db: Session, name: str) -> Medicine:
    """Exact-name lookup. Raises ConflictError if the name is ambiguous."""
    matches = db.query(Medicine).filter(Medicine.name == name.strip()).limit(2).all()
    if not matches:
        raise NotFoundError(f"Medicine '{name}' not found")
    if len(matches) > 1:
        raise ConflictError(f"Medicine name '{name}' is ambiguous; select the medicine by id")
    return matches[0]


def resolve_medicine(db: Session, medicine_id: Optional[int], name: Optional[str]) -> Medicine:
    """Id wins over name when both are given."""
    if medicine_id is not None:
        return get_medicine(db, medicine_id)
    return resolve_medicine_by_name(db, name or "")


def find_interaction_pair(
    db: Session,
    medicine_a_id: int,
    medicine_b_id: int,
    exclude_id: Optional[int] = None,
) -> Optional[Interaction]:
    """Find an interaction for the unordered pair {a, b}, in either stored order."""
    q = db.query(Interaction).filter(
        or_(
            (Interaction.medicine_from_id == medicine_a_id) & (Interaction.medicine_to_id == medicine_b_id),
            (Interaction.medicine_from_id == medicine_b_id) & (Interaction.medicine_to_id == medicine_a_id),
        )
    )
    if exclude_id is not None:
        q = q.filter(Interaction.id != exclude_id)
    return q.first()


def ensure_customer_deletable(db: Session, customer: Customer) -> None:
    count = db.query(Invoice).filter(Invoice.customer_id == customer.id).count()
    if count > 0:
        raise ConflictError(f"Customer {customer.code} has {count} invoice(s) and cannot be deleted")


def ensure_supplier_deletable(db: Session, supplier: Supplier) -> None:
    count = db.query(Import).filter(Import.supplier_id == supplier.id).count()
    if count > 0:
        raise ConflictError(f"Supplier {supplier.code} has {count} import(s) and cannot be deleted")


def ensure_medicine_deletable(db: Session, medicine: Medicine) -> None:
    sold = db.query(InvoiceItem).filter(InvoiceItem.medicine_id == medicine.id).count()
    imported = db.query(ImportItem).filter(ImportItem.medicine_id == medicine.id).count()
    if sold or imported:
        raise ConflictError(
            f"Medicine {medicine.code} is referenced by {sold} invoice item(s) "
            f"and {imported} import item(s) and cannot be deleted"
        )
    movements = db.query(InventoryLog).filter(InventoryLog.medicine_id == medicine.id).count()
    if movements:
        raise ConflictError(
            f"Medicine {medicine.code} has {movements} inventory log row(s) and cannot be deleted"
        )
