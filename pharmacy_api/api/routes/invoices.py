"""
Invoices (sales).

POST deducts stock for every item in one transaction; DELETE restores it.
Invoices are addressed by numeric id or by code (INV-00012).
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import Pagination, get_actor, get_db
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.schemas.common import Page, PageMeta, SuccessResponse
from pharmacy_api.schemas.invoice import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from pharmacy_api.services import invoice_service

router = APIRouter()


@router.get("", response_model=Page[InvoiceResponse])
def list_invoices(
    search: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = invoice_service.list_invoices(
        db, pagination.page, pagination.limit, search, start_date, end_date
    )
    return Page[InvoiceResponse](
        data=[InvoiceResponse.model_validate(inv) for inv in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(data: InvoiceCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return invoice_service.create_invoice(db, actor, data)


@router.get("/{key}", response_model=InvoiceResponse)
def read_invoice(key: str, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return invoice_service.load_invoice(db, key)


@router.put("/{key}", response_model=InvoiceResponse)
def update_invoice(
    key: str,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return invoice_service.update_invoice(db, actor, key, data)


@router.delete("/{key}", response_model=SuccessResponse)
def delete_invoice(key: str, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    invoice_service.delete_invoice(db, actor, key)
    return SuccessResponse()
