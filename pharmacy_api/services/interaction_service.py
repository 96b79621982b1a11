"""Drug interactions. One row per unordered medicine pair; ADMIN-only edits."""
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased, joinedload

from pharmacy_api.core.audit import AuditLog
from pharmacy_api.core.exceptions import ConflictError, ValidationError
from pharmacy_api.core.permissions import ActorContext, INTERACTION_EDITORS, ensure_role
from pharmacy_api.db.session import unit_of_work
from pharmacy_api.models.interaction import Interaction
from pharmacy_api.models.medicine import Medicine
from pharmacy_api.schemas.interaction import InteractionCheck, InteractionCreate, InteractionUpdate
from pharmacy_api.services.common import paginate
from pharmacy_api.services.lookup import find_interaction_pair, get_interaction, resolve_medicine

logger = logging.getLogger(__name__)


def _ensure_unique_pair(db: Session, from_id: int, to_id: int, exclude_id: Optional[int] = None) -> None:
    if from_id == to_id:
        raise ValidationError("A medicine cannot interact with itself")
    existing = find_interaction_pair(db, from_id, to_id, exclude_id=exclude_id)
    if existing is not None:
        raise ConflictError(f"Interaction already exists (id {existing.id})")


def create_interaction(db: Session, actor: ActorContext, data: InteractionCreate) -> Interaction:
    ensure_role(actor, INTERACTION_EDITORS, "create", "interaction")
    with unit_of_work(db):
        med_from = resolve_medicine(db, data.medicine_from_id, data.medicine_from_name)
        med_to = resolve_medicine(db, data.medicine_to_id, data.medicine_to_name)
        _ensure_unique_pair(db, med_from.id, med_to.id)

        interaction = Interaction(
            medicine_from_id=med_from.id,
            medicine_to_id=med_to.id,
            severity=data.severity,
            description=data.description,
            recommendation=data.recommendation,
        )
        db.add(interaction)
        db.flush()
    AuditLog.log_action("create", "interaction", interaction.id, actor.user_id)
    return load_interaction(db, interaction.id)


def update_interaction(db: Session, actor: ActorContext, interaction_id: int, data: InteractionUpdate) -> Interaction:
    """Update fields; a changed pair is checked for duplicates in both orders."""
    ensure_role(actor, INTERACTION_EDITORS, "update", "interaction")
    with unit_of_work(db):
        interaction = get_interaction(db, interaction_id)

        from_id = interaction.medicine_from_id
        to_id = interaction.medicine_to_id
        if data.medicine_from_id is not None or data.medicine_from_name:
            from_id = resolve_medicine(db, data.medicine_from_id, data.medicine_from_name).id
        if data.medicine_to_id is not None or data.medicine_to_name:
            to_id = resolve_medicine(db, data.medicine_to_id, data.medicine_to_name).id
        _ensure_unique_pair(db, from_id, to_id, exclude_id=interaction.id)

        interaction.medicine_from_id = from_id
        interaction.medicine_to_id = to_id
        for field in ("severity", "description", "recommendation"):
            value = getattr(data, field)
            if value is not None:
                setattr(interaction, field, value)
    AuditLog.log_action("update", "interaction", interaction_id, actor.user_id)
    return load_interaction(db, interaction_id)


def delete_interaction(db: Session, actor: ActorContext, interaction_id: int) -> None:
    ensure_role(actor, INTERACTION_EDITORS, "delete", "interaction")
    with unit_of_work(db):
        db.delete(get_interaction(db, interaction_id))
    AuditLog.log_action("delete", "interaction", interaction_id, actor.user_id)


def check_interaction(db: Session, data: InteractionCheck) -> Optional[Interaction]:
    """Look up the interaction between two medicines, in either order."""
    med_a = resolve_medicine(db, data.medicine_from_id, data.medicine_from_name)
    med_b = resolve_medicine(db, data.medicine_to_id, data.medicine_to_name)
    found = find_interaction_pair(db, med_a.id, med_b.id)
    return load_interaction(db, found.id) if found else None


def load_interaction(db: Session, interaction_id: int) -> Interaction:
    return (
        db.query(Interaction)
        .options(joinedload(Interaction.medicine_from), joinedload(Interaction.medicine_to))
        .filter(Interaction.id == get_interaction(db, interaction_id).id)
        .one()
    )


def list_interactions(
    db: Session,
    page: int,
    limit: int,
    search: Optional[str] = None,
    severity: Optional[str] = None,
):
    med_from = aliased(Medicine)
    med_to = aliased(Medicine)
    q = (
        db.query(Interaction)
        .join(med_from, Interaction.medicine_from_id == med_from.id)
        .join(med_to, Interaction.medicine_to_id == med_to.id)
        .options(joinedload(Interaction.medicine_from), joinedload(Interaction.medicine_to))
    )
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            med_from.name.ilike(pattern),
            med_to.name.ilike(pattern),
            Interaction.description.ilike(pattern),
        ))
    if severity and severity != "all":
        q = q.filter(Interaction.severity == severity)
    return paginate(q.order_by(Interaction.created_at.desc(), Interaction.id.desc()), page, limit)
