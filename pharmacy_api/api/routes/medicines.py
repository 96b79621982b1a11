"""Medicines: catalogue CRUD. Stock is read-only here; see /inventory."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import Pagination, get_actor, get_db
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.schemas.common import Page, PageMeta, SuccessResponse
from pharmacy_api.schemas.medicine import MedicineCreate, MedicineResponse, MedicineUpdate
from pharmacy_api.services import catalog_service
from pharmacy_api.services.lookup import get_medicine

router = APIRouter()


@router.get("", response_model=Page[MedicineResponse])
def list_medicines(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = catalog_service.list_medicines(db, pagination.page, pagination.limit, search, category)
    return Page[MedicineResponse](
        data=[MedicineResponse.model_validate(m) for m in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )


@router.post("", response_model=MedicineResponse, status_code=201)
def create_medicine(data: MedicineCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return catalog_service.create_medicine(db, actor, data)


@router.get("/{medicine_id}", response_model=MedicineResponse)
def read_medicine(medicine_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return get_medicine(db, medicine_id)


@router.put("/{medicine_id}", response_model=MedicineResponse)
def update_medicine(
    medicine_id: int,
    data: MedicineUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return catalog_service.update_medicine(db, actor, medicine_id, data)


@router.delete("/{medicine_id}", response_model=SuccessResponse)
def delete_medicine(medicine_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    catalog_service.delete_medicine(db, actor, medicine_id)
    return SuccessResponse()
