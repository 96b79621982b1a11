"""
Role checks for workflow and CRUD operations.

Every mutating service call receives an explicit ActorContext. Services
check roles themselves so the rules hold no matter which surface calls them.
"""
import enum
from dataclasses import dataclass

from pharmacy_api.core.audit import AuditLog
from pharmacy_api.core.exceptions import ForbiddenError


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    INVENTORY_MANAGER = "INVENTORY_MANAGER"
    PHARMACIST = "PHARMACIST"
    USER = "USER"


# Medicine, supplier, import and adjustment mutations
STOCK_MANAGERS = (Role.ADMIN, Role.INVENTORY_MANAGER)
# Interaction mutations
INTERACTION_EDITORS = (Role.ADMIN,)


@dataclass(frozen=True)
class ActorContext:
    user_id: int
    role: Role


def ensure_role(actor: ActorContext, allowed: tuple, action: str, resource_type: str) -> None:
    """Raise ForbiddenError unless actor.role is one of `allowed`."""
    if actor.role in allowed:
        return
    AuditLog.log_access_denied(
        action=action,
        resource_type=resource_type,
        user_id=actor.user_id,
        reason=f"role {actor.role.value} not in {[r.value for r in allowed]}",
    )
    raise ForbiddenError(f"Role {actor.role.value} may not {action} {resource_type}")
