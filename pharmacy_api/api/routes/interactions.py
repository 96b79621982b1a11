"""Drug interactions. Anyone signed in can read and check; only ADMIN edits."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import Pagination, get_actor, get_db
from pharmacy_api.core.permissions import ActorContext
from pharmacy_api.schemas.common import Page, PageMeta, SuccessResponse
from pharmacy_api.schemas.interaction import (
    InteractionCheck,
    InteractionCheckResult,
    InteractionCreate,
    InteractionResponse,
    InteractionUpdate,
)
from pharmacy_api.services import interaction_service

router = APIRouter()


@router.get("", response_model=Page[InteractionResponse])
def list_interactions(
    search: Optional[str] = Query(None),
    severity: Optional[str] = Query(None),
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    rows, total = interaction_service.list_interactions(
        db, pagination.page, pagination.limit, search, severity
    )
    return Page[InteractionResponse](
        data=[InteractionResponse.model_validate(i) for i in rows],
        meta=PageMeta.build(total, pagination.page, pagination.limit),
    )


@router.post("/check", response_model=InteractionCheckResult)
def check_interaction(data: InteractionCheck, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    found = interaction_service.check_interaction(db, data)
    if found is None:
        return InteractionCheckResult(found=False)
    return InteractionCheckResult(found=True, interaction=InteractionResponse.model_validate(found))


@router.post("", response_model=InteractionResponse, status_code=201)
def create_interaction(
    data: InteractionCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return interaction_service.create_interaction(db, actor, data)


@router.get("/{interaction_id}", response_model=InteractionResponse)
def read_interaction(interaction_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return interaction_service.load_interaction(db, interaction_id)


@router.put("/{interaction_id}", response_model=InteractionResponse)
def update_interaction(
    interaction_id: int,
    data: InteractionUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return interaction_service.update_interaction(db, actor, interaction_id, data)


@router.delete("/{interaction_id}", response_model=SuccessResponse)
def delete_interaction(interaction_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    interaction_service.delete_interaction(db, actor, interaction_id)
    return SuccessResponse()
