"""Inventory: stock levels, manual adjustments, the movement log and reconciliation."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import Pagination, get_actor, get_db
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.schemas.common import Page, PageMeta
from pharmacy_api.schemas.inventory import (
    AdjustmentResult,
    InventoryAdjust,
    InventoryLogResponse,
    InventoryRow,
    StockLevel,
    StockReconciliation,
)
from pharmacy_api.schemas.medicine import MedicineResponse
from pharmacy_api.services import inventory_service
from pharmacy_api.services.stock_service import verify_stock

router = APIRouter()


@router.get("", response_model=Page[InventoryRow])
def list_inventory(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    level: StockLevel = Query(StockLevel.ALL, alias="stock"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = inventory_service.list_inventory(
        db, pagination.page, pagination.limit, search, category, level
    )
    data = [
        InventoryRow(
            id=m.id,
            code=m.code,
            name=m.name,
            category=m.category,
            stock=m.stock,
            level=inventory_service.stock_level(m.stock),
            expiry_date=m.expiry_date,
            lot_number=m.lot_number,
            manufacturer=m.manufacturer,
            updated_at=m.updated_at,
        )
        for m in rows
    ]
    return Page[InventoryRow](data=data, meta=PageMeta.build(total, pagination.page, pagination.limit))


@router.post("/adjust", response_model=AdjustmentResult)
def adjust_inventory(data: InventoryAdjust, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    medicine, log = inventory_service.adjust_stock(db, actor, data)
    return AdjustmentResult(
        medicine=MedicineResponse.model_validate(medicine),
        log=InventoryLogResponse.from_log(log) if log else None,
    )


@router.get("/logs", response_model=Page[InventoryLogResponse])
def list_inventory_logs(
    search: Optional[str] = Query(None),
    log_type: Optional[str] = Query(None, alias="type"),
    medicine_id: Optional[int] = Query(None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = inventory_service.list_logs(
        db, pagination.page, pagination.limit, search, log_type, medicine_id
    )
    return Page[InventoryLogResponse](
        data=[InventoryLogResponse.from_log(log) for log in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )


@router.get("/{medicine_id}/reconcile", response_model=StockReconciliation)
def reconcile_stock(medicine_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    """Compare the stock field with the sum of its logged movements."""
    return StockReconciliation(**verify_stock(db, medicine_id))
