"""Customers: CRUD and per-customer invoice history."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import Pagination, get_actor, get_db
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.schemas.common import Page, PageMeta, SuccessResponse
from pharmacy_api.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from pharmacy_api.schemas.invoice import InvoiceResponse
from pharmacy_api.services import catalog_service
from pharmacy_api.services.lookup import get_customer

router = APIRouter()


@router.get("", response_model=Page[CustomerResponse])
def list_customers(
    search: Optional[str] = Query(None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = catalog_service.list_customers(db, pagination.page, pagination.limit, search)
    return Page[CustomerResponse](
        data=[CustomerResponse.model_validate(c) for c in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(data: CustomerCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return catalog_service.create_customer(db, actor, data)


@router.get("/{customer_id}", response_model=CustomerResponse)
def read_customer(customer_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return get_customer(db, customer_id)


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return catalog_service.update_customer(db, actor, customer_id, data)


@router.delete("/{customer_id}", response_model=SuccessResponse)
def delete_customer(customer_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    """Refused while the customer has invoices."""
    catalog_service.delete_customer(db, actor, customer_id)
    return SuccessResponse()


@router.get("/{customer_id}/invoices", response_model=Page[InvoiceResponse])
def list_customer_invoices(
    customer_id: int,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = catalog_service.list_customer_invoices(db, customer_id, pagination.page, pagination.limit)
    return Page[InvoiceResponse](
        data=[InvoiceResponse.model_validate(inv) for inv in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )
