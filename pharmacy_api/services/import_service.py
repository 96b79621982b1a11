"""
Import (goods receipt) workflows.

create_import adds every item to stock and stamps the medicine with the lot
and expiry of the newest receipt. delete_import takes the same quantities
back out and fails as a whole if any of them has already been sold.
"""
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from pharmacy_api.core.audit import AuditLog
from pharmacy_api.core.permissions import ActorContext, STOCK_MANAGERS, ensure_role
from pharmacy_api.db.session import unit_of_work
from pharmacy_api.models.inventory_log import InventoryLogType
from pharmacy_api.models.stock_import import Import, ImportItem
from pharmacy_api.models.supplier import Supplier
from pharmacy_api.schemas.stock_import import ImportCreate, ImportUpdate
from pharmacy_api.services.common import assign_code, paginate
from pharmacy_api.services.invoice_service import line_total
from pharmacy_api.services.lookup import get_import, get_medicine, get_supplier
from pharmacy_api.services.stock_service import apply_delta

logger = logging.getLogger(__name__)


def create_import(db: Session, actor: ActorContext, data: ImportCreate) -> Import:
    """Receive goods from a supplier.

    Raises:
        ForbiddenError: actor is not ADMIN or INVENTORY_MANAGER.
        NotFoundError: supplier or any medicine does not exist (nothing is written).
    """
    ensure_role(actor, STOCK_MANAGERS, "create", "import")
    with unit_of_work(db):
        supplier = get_supplier(db, data.supplier_id)

        lines = []
        for item in data.items:
            medicine = get_medicine(db, item.medicine_id)
            total = item.total if item.total is not None else line_total(item.quantity, item.price)
            lines.append(ImportItem(
                medicine_id=medicine.id,
                lot_number=item.lot_number,
                expiry_date=item.expiry_date,
                price=item.price,
                quantity=item.quantity,
                total=total,
            ))

        stock_import = Import(
            supplier_id=supplier.id,
            user_id=actor.user_id,
            status=data.status,
            note=data.note,
            total=sum((line.total for line in lines), Decimal("0")),
            items=lines,
        )
        db.add(stock_import)
        code = assign_code(db, stock_import, "import")

        for line in lines:
            apply_delta(
                db, line.medicine_id, line.quantity, InventoryLogType.IMPORT, actor,
                reference=code, note=f"Import from {supplier.name}",
            )
            medicine = get_medicine(db, line.medicine_id)
            medicine.lot_number = line.lot_number
            medicine.expiry_date = line.expiry_date
        db.flush()

    AuditLog.log_action(
        "create", "import", code, actor.user_id,
        changes={"items": len(lines), "total": str(stock_import.total)},
    )
    logger.info("Import %s created with %d item(s)", code, len(lines))
    return load_import(db, stock_import.id)


def delete_import(db: Session, actor: ActorContext, key: int | str) -> None:
    """Cancel an import, removing its quantities from stock.

    Raises:
        InsufficientStockError: stock of some medicine is already below what the
            import contributed; nothing is changed.
    """
    ensure_role(actor, STOCK_MANAGERS, "delete", "import")
    with unit_of_work(db):
        stock_import = get_import(db, key)
        code = stock_import.code
        removed = [(item.medicine_id, item.quantity) for item in stock_import.items]

        for medicine_id, quantity in removed:
            apply_delta(
                db, medicine_id, -quantity, InventoryLogType.IMPORT_CANCEL, actor,
                reference=code, note=f"Cancelled import {code}",
            )

        db.delete(stock_import)
        db.flush()

    AuditLog.log_action("delete", "import", code, actor.user_id, changes={"removed_items": len(removed)})
    logger.info("Import %s deleted, %d item(s) removed from stock", code, len(removed))


def update_import(db: Session, actor: ActorContext, key: int | str, data: ImportUpdate) -> Import:
    ensure_role(actor, STOCK_MANAGERS, "update", "import")
    with unit_of_work(db):
        stock_import = get_import(db, key)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(stock_import, field, value)
    AuditLog.log_action("update", "import", stock_import.code, actor.user_id, changes=changes)
    return load_import(db, stock_import.id)


def load_import(db: Session, key: int | str) -> Import:
    return (
        db.query(Import)
        .options(selectinload(Import.items).selectinload(ImportItem.medicine), selectinload(Import.supplier))
        .filter(Import.id == get_import(db, key).id)
        .one()
    )


def list_imports(
    db: Session,
    page: int,
    limit: int,
    search: Optional[str] = None,
    on_date: Optional[date] = None,
):
    q = (
        db.query(Import)
        .outerjoin(Supplier, Import.supplier_id == Supplier.id)
        .options(selectinload(Import.supplier), selectinload(Import.items))
    )
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(Import.code.ilike(pattern), Supplier.name.ilike(pattern)))
    if on_date:
        start = datetime.combine(on_date, time.min)
        q = q.filter(Import.date >= start, Import.date < start + timedelta(days=1))
    return paginate(q.order_by(Import.date.desc(), Import.id.desc()), page, limit)
