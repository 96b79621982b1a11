"""Suppliers: CRUD. Mutations need ADMIN or INVENTORY_MANAGER."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import Pagination, get_actor, get_db
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.schemas.common import Page, PageMeta, SuccessResponse
from pharmacy_api.schemas.supplier import SupplierCreate, SupplierResponse, SupplierUpdate
from pharmacy_api.services import catalog_service
from pharmacy_api.services.lookup import get_supplier

router = APIRouter()


@router.get("", response_model=Page[SupplierResponse])
def list_suppliers(
    search: Optional[str] = Query(None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = catalog_service.list_suppliers(db, pagination.page, pagination.limit, search)
    return Page[SupplierResponse](
        data=[SupplierResponse.model_validate(s) for s in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )


@router.post("", response_model=SupplierResponse, status_code=201)
def create_supplier(data: SupplierCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return catalog_service.create_supplier(db, actor, data)


@router.get("/{supplier_id}", response_model=SupplierResponse)
def read_supplier(supplier_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return get_supplier(db, supplier_id)


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    data: SupplierUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return catalog_service.update_supplier(db, actor, supplier_id, data)


@router.delete("/{supplier_id}", response_model=SuccessResponse)
def delete_supplier(supplier_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    catalog_service.delete_supplier(db, actor, supplier_id)
    return SuccessResponse()
