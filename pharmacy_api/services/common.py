"""Helpers shared by the services: document codes and pagination."""
from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from pharmacy_api.core.exceptions import ConflictError

_CODE_FORMATS = {
    "medicine": lambda n: f"MED-{1000 + n}",
    "customer": lambda n: f"KH-{n:04d}",
    "supplier": lambda n: f"SUP-{1000 + n}",
    "invoice": lambda n: f"INV-{n:05d}",
    "import": lambda n: f"IMP-{n:06d}",
}


def flush_or_conflict(db: Session, what: str) -> None:
    """Flush, turning unique-constraint violations into ConflictError."""
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError(f"{what} conflicts with an existing record") from exc


def assign_code(db: Session, obj, kind: str) -> str:
    """
    Give a freshly added row its document code.

    Codes derive from the primary key, so they are assigned after the insert
    flush. Counting rows first would hand two concurrent requests the same code.
    """
    flush_or_conflict(db, kind.capitalize())
    if not obj.code:
        obj.code = _CODE_FORMATS[kind](obj.id)
        flush_or_conflict(db, kind.capitalize())
    return obj.code


def paginate(query: Query, page: int, limit: int) -> Tuple[list, int]:
    """Return (rows for the page, total row count). Page numbers start at 1."""
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, total
