"""
Invoice workflows: sale, cancellation, header edits and listings.

create_invoice and delete_invoice each run as one unit of work. A sale that
cannot be fully served leaves no invoice, no item and no stock change behind.
Deleting an invoice returns exactly the quantities its items deducted.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from pharmacy_api.core.audit import AuditLog
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.db.session import unit_of_work
from pharmacy_api.models.customer import Customer
from pharmacy_api.models.inventory_log import InventoryLogType
from pharmacy_api.models.invoice import Invoice, InvoiceItem
from pharmacy_api.schemas.invoice import InvoiceCreate, InvoiceUpdate
from pharmacy_api.services.common import assign_code, paginate
from pharmacy_api.services.lookup import get_customer, get_invoice, get_medicine
from pharmacy_api.services.stock_service import apply_delta

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def line_total(quantity: int, price: Decimal) -> Decimal:
    return (Decimal(quantity) * Decimal(price)).quantize(CENT)


def create_invoice(db: Session, actor: ActorContext, data: InvoiceCreate) -> Invoice:
    """Record a sale and deduct every item from stock.

    Raises:
        NotFoundError: customer or a medicine does not exist.
        InsufficientStockError: any item exceeds available stock (whole sale rolled back).
    """
    with unit_of_work(db):
        customer = get_customer(db, data.customer_id) if data.customer_id is not None else None

        lines = []
        for item in data.items:
            medicine = get_medicine(db, item.medicine_id)
            price = item.price if item.price is not None else Decimal(medicine.retail_price)
            total = item.total if item.total is not None else line_total(item.quantity, price)
            lines.append(InvoiceItem(medicine_id=medicine.id, quantity=item.quantity, price=price, total=total))

        invoice = Invoice(
            code=data.code or None,
            customer_id=customer.id if customer else None,
            user_id=actor.user_id,
            payment_method=data.payment_method,
            status=data.status,
            note=data.note,
            total=data.total if data.total is not None else sum((line.total for line in lines), Decimal("0")),
            items=lines,
        )
        db.add(invoice)
        code = assign_code(db, invoice, "invoice")

        buyer = customer.name if customer else "walk-in customer"
        for line in lines:
            apply_delta(
                db, line.medicine_id, -line.quantity, InventoryLogType.SALE, actor,
                reference=code, note=f"Sale to {buyer}",
            )

    AuditLog.log_action(
        "create", "invoice", code, actor.user_id,
        changes={"items": len(lines), "total": str(invoice.total)},
    )
    logger.info("Invoice %s created with %d item(s)", code, len(lines))
    return load_invoice(db, invoice.id)


def delete_invoice(db: Session, actor: ActorContext, key: int | str) -> None:
    """Delete an invoice and return its quantities to stock (unconditionally)."""
    with unit_of_work(db):
        invoice = get_invoice(db, key)
        code = invoice.code
        restored = [(item.medicine_id, item.quantity) for item in invoice.items]
        buyer = invoice.customer.name if invoice.customer else "walk-in customer"

        # Items go first through the delete-orphan cascade
        db.delete(invoice)
        db.flush()

        for medicine_id, quantity in restored:
            apply_delta(
                db, medicine_id, quantity, InventoryLogType.RETURN, actor,
                reference=code, note=f"Cancelled invoice {code} of {buyer}",
                enforce_non_negative=False,
            )

    AuditLog.log_action("delete", "invoice", code, actor.user_id, changes={"restored_items": len(restored)})
    logger.info("Invoice %s deleted, %d item(s) restored", code, len(restored))


def update_invoice(db: Session, actor: ActorContext, key: int | str, data: InvoiceUpdate) -> Invoice:
    """Edit header fields (note, payment method, status). Items are immutable."""
    with unit_of_work(db):
        invoice = get_invoice(db, key)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(invoice, field, value)
    AuditLog.log_action("update", "invoice", invoice.code, actor.user_id, changes=changes)
    return load_invoice(db, invoice.id)


def load_invoice(db: Session, key: int | str) -> Invoice:
    return (
        db.query(Invoice)
        .options(selectinload(Invoice.items).selectinload(InvoiceItem.medicine), selectinload(Invoice.customer))
        .filter(Invoice.id == get_invoice(db, key).id)
        .one()
    )


def list_invoices(
    db: Session,
    page: int,
    limit: int,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    q = (
        db.query(Invoice)
        .outerjoin(Customer, Invoice.customer_id == Customer.id)
        .options(selectinload(Invoice.customer), selectinload(Invoice.items))
    )
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Invoice.code.ilike(pattern),
            Customer.name.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    if start_date:
        q = q.filter(Invoice.date >= start_date)
    if end_date:
        q = q.filter(Invoice.date <= end_date)
    return paginate(q.order_by(Invoice.date.desc(), Invoice.id.desc()), page, limit)
