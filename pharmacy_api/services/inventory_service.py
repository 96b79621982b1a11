"""Manual stock adjustments, stock-level listing and the inventory log."""
import logging
from typing import Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from pharmacy_api.core.audit import AuditLog
from pharmacy_api.core.config import settings
from pharmacy_api.core.exceptions import NotFoundError, ValidationError
from pharmacy_api.core.permissions import ActorContext, STOCK_MANAGERS, ensure_role
from pharmacy_api.db.session import unit_of_work
from pharmacy_api.models.inventory_log import InventoryLog, InventoryLogType
from pharmacy_api.models.medicine import Medicine
from pharmacy_api.schemas.inventory import AdjustType, InventoryAdjust, StockLevel
from pharmacy_api.services.common import paginate
from pharmacy_api.services.stock_service import apply_delta

logger = logging.getLogger(__name__)


def _lock_medicine(db: Session, medicine_id: int) -> Medicine:
    # FOR UPDATE is dropped by SQLite, whose writers are already serialised
    medicine = (
        db.query(Medicine)
        .filter(Medicine.id == medicine_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if medicine is None:
        raise NotFoundError.for_entity("Medicine", medicine_id)
    return medicine


def adjustment_delta(adjust_type: AdjustType, quantity: int, current_stock: int) -> Tuple[int, Optional[InventoryLogType]]:
    """Translate an adjustment request into (delta, log type). Delta 0 means nothing to do."""
    if adjust_type == AdjustType.ADD:
        return quantity, InventoryLogType.ADJUSTMENT_ADD
    elif adjust_type == AdjustType.SUBTRACT:
        return -quantity, InventoryLogType.ADJUSTMENT_SUBTRACT
    elif adjust_type == AdjustType.SET:
        delta = quantity - current_stock
        if delta > 0:
            return delta, InventoryLogType.ADJUSTMENT_ADD
        if delta < 0:
            return delta, InventoryLogType.ADJUSTMENT_SUBTRACT
        return 0, None
    raise ValidationError(f"Invalid adjustment type: {adjust_type}")


def adjust_stock(db: Session, actor: ActorContext, data: InventoryAdjust) -> Tuple[Medicine, Optional[InventoryLog]]:
    """Apply an add/subtract/set adjustment.

    Returns the medicine and the log row written, or None for the log when a
    `set` already matched the current stock.
    """
    ensure_role(actor, STOCK_MANAGERS, "adjust", "inventory")
    with unit_of_work(db):
        medicine = _lock_medicine(db, data.medicine_id)
        before = medicine.stock
        delta, log_type = adjustment_delta(data.adjust_type, data.quantity, before)
        log = None
        if delta:
            log = apply_delta(
                db, medicine.id, delta, log_type, actor,
                note=data.reason or "Manual stock adjustment",
            )

    db.refresh(medicine)
    if log is None:
        logger.info("Adjustment on medicine %s left stock unchanged at %s", medicine.id, before)
        return medicine, None

    db.refresh(log)
    AuditLog.log_action(
        "adjust", "inventory", medicine.code, actor.user_id,
        changes={"type": log_type.value, "delta": delta, "before": before, "after": medicine.stock},
    )
    return medicine, log


def stock_level(stock: int) -> StockLevel:
    if stock <= settings.LOW_STOCK_THRESHOLD:
        return StockLevel.LOW
    if stock <= settings.HIGH_STOCK_THRESHOLD:
        return StockLevel.MEDIUM
    return StockLevel.HIGH


def list_inventory(
    db: Session,
    page: int,
    limit: int,
    search: Optional[str] = None,
    category: Optional[str] = None,
    level: StockLevel = StockLevel.ALL,
):
    q = db.query(Medicine)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Medicine.name.ilike(pattern),
            Medicine.code.ilike(pattern),
            Medicine.category.ilike(pattern),
        ))
    if category and category != "all":
        q = q.filter(Medicine.category == category)

    if level == StockLevel.LOW:
        q = q.filter(Medicine.stock <= settings.LOW_STOCK_THRESHOLD)
    elif level == StockLevel.MEDIUM:
        q = q.filter(
            Medicine.stock > settings.LOW_STOCK_THRESHOLD,
            Medicine.stock <= settings.HIGH_STOCK_THRESHOLD,
        )
    elif level == StockLevel.HIGH:
        q = q.filter(Medicine.stock > settings.HIGH_STOCK_THRESHOLD)

    return paginate(q.order_by(Medicine.name.asc(), Medicine.id.asc()), page, limit)


def list_logs(
    db: Session,
    page: int,
    limit: int,
    search: Optional[str] = None,
    log_type: Optional[str] = None,
    medicine_id: Optional[int] = None,
):
    q = db.query(InventoryLog).join(Medicine, InventoryLog.medicine_id == Medicine.id).options(
        joinedload(InventoryLog.medicine)
    )
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(Medicine.name.ilike(pattern), InventoryLog.reference.ilike(pattern)))
    if log_type and log_type != "all":
        try:
            q = q.filter(InventoryLog.type == InventoryLogType(log_type).value)
        except ValueError:
            raise ValidationError(f"Unknown inventory log type: {log_type}")
    if medicine_id is not None:
        q = q.filter(InventoryLog.medicine_id == medicine_id)
    return paginate(q.order_by(InventoryLog.date.desc(), InventoryLog.id.desc()), page, limit)
