"""
Stock mutation. The only code path that changes Medicine.stock.

apply_delta() performs the check and the write in one conditional UPDATE
(`... WHERE id = :id AND stock >= :needed`) and decides by affected-row count,
so two concurrent sales cannot both pass the check. It then inserts exactly
one InventoryLog row with the same delta.

Nothing here commits. Callers run inside db.session.unit_of_work so that a
failure on any item rolls back every earlier delta and log row.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from pharmacy_api.core.exceptions import InsufficientStockError, ValidationError
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.models.inventory_log import InventoryLog, InventoryLogType
from pharmacy_api.models.medicine import Medicine
from pharmacy_api.services.lookup import get_medicine

logger = logging.getLogger(__name__)


def apply_delta(
    db: Session,
    medicine_id: int,
    delta: int,
    log_type: InventoryLogType,
    actor: ActorContext,
    reference: Optional[str] = None,
    note: Optional[str] = None,
    enforce_non_negative: bool = True,
) -> InventoryLog:
    """Apply a signed stock delta and record it.

    Args:
        delta: Nonzero; its sign must match log_type (SALE is negative, IMPORT positive...).
        enforce_non_negative: False only for restorations, which are unconditional.

    Raises:
        ValidationError: delta is zero, not an int, or has the wrong sign for log_type.
        NotFoundError: medicine does not exist.
        InsufficientStockError: a subtractive delta would drive stock below zero.
    """
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise ValidationError(f"Stock delta must be a nonzero integer, got {delta!r}")
    if (delta > 0) != (log_type.sign > 0):
        raise ValidationError(f"{log_type.value} requires a {'positive' if log_type.sign > 0 else 'negative'} delta")

    medicine = get_medicine(db, medicine_id)

    q = db.query(Medicine).filter(Medicine.id == medicine_id)
    if enforce_non_negative and delta < 0:
        q = q.filter(Medicine.stock >= -delta)
    updated = q.update({Medicine.stock: Medicine.stock + delta}, synchronize_session=False)

    if updated == 0:
        available = db.query(Medicine.stock).filter(Medicine.id == medicine_id).scalar()
        logger.info(
            "Rejected %s of %d for medicine %s: stock %s",
            log_type.value, delta, medicine_id, available,
        )
        raise InsufficientStockError(medicine_id, available, -delta)

    # The in-session copy still holds the pre-update value
    db.expire(medicine, ["stock"])

    log = InventoryLog(
        medicine_id=medicine_id,
        user_id=actor.user_id,
        type=log_type.value,
        quantity=delta,
        reference=reference,
        note=note,
    )
    db.add(log)
    db.flush()
    logger.debug("Applied %s %+d to medicine %s (ref=%s)", log_type.value, delta, medicine_id, reference)
    return log


def ledger_balance(db: Session, medicine_id: int) -> int:
    """Sum of all logged deltas for a medicine."""
    total = (
        db.query(func.coalesce(func.sum(InventoryLog.quantity), 0))
        .filter(InventoryLog.medicine_id == medicine_id)
        .scalar()
    )
    return int(total)


def verify_stock(db: Session, medicine_id: int) -> dict:
    """Compare the stock field against the inventory log for one medicine."""
    medicine = get_medicine(db, medicine_id)
    ledger_total = ledger_balance(db, medicine_id)
    consistent = medicine.stock == ledger_total
    if not consistent:
        logger.warning(
            "Stock/ledger mismatch for medicine %s: stock=%s ledger=%s",
            medicine_id, medicine.stock, ledger_total,
        )
    return {
        "medicine_id": medicine_id,
        "stock": medicine.stock,
        "ledger_total": ledger_total,
        "consistent": consistent,
    }
