"""
Imports (goods receipts from suppliers). ADMIN or INVENTORY_MANAGER only for writes.

Addressed by numeric id or by code (IMP-000004).
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import Pagination, get_actor, get_db
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.schemas.common import Page, PageMeta, SuccessResponse
from pharmacy_api.schemas.stock_import import ImportCreate, ImportResponse, ImportUpdate
from pharmacy_api.services import import_service

router = APIRouter()


@router.get("", response_model=Page[ImportResponse])
def list_imports(
    search: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = import_service.list_imports(db, pagination.page, pagination.limit, search, on_date)
    return Page[ImportResponse](
        data=[ImportResponse.model_validate(imp) for imp in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )


@router.post("", response_model=ImportResponse, status_code=201)
def create_import(data: ImportCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return import_service.create_import(db, actor, data)


@router.get("/{key}", response_model=ImportResponse)
def read_import(key: str, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return import_service.load_import(db, key)


@router.put("/{key}", response_model=ImportResponse)
def update_import(
    key: str,
    data: ImportUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return import_service.update_import(db, actor, key, data)


@router.delete("/{key}", response_model=SuccessResponse)
def delete_import(key: str, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    import_service.delete_import(db, actor, key)
    return SuccessResponse()
