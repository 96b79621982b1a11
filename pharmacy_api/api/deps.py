"""FastAPI dependencies: DB session, current user and ActorContext from JWT.

JWT is accepted from:
1. Authorization header (API clients), which takes precedence
2. httpOnly cookie (web frontend)
"""
from typing import Generator, Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from pharmacy_api.core.config import settings
from pharmacy_api.core.exceptions import UnauthorizedError
from pharmacy_api.core.permissions import ActorContext, Role
from pharmacy_api.core.security import decode_access_token
from pharmacy_api.db.session import SessionLocal
from pharmacy_api.models.user import User

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    token = None
    if credentials:
        token = credentials.credentials
    elif settings.TOKEN_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.TOKEN_COOKIE_NAME]

    if not token:
        raise UnauthorizedError("Not authenticated")

    sub = decode_access_token(token)
    if not sub:
        raise UnauthorizedError("Invalid or expired token")

    try:
        return int(sub)
    except ValueError:
        raise UnauthorizedError("Invalid token")


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """Load current user from DB."""
    user = db.get(User, user_id)
    if not user:
        raise UnauthorizedError("User not found")
    return user


def get_actor(current_user: User = Depends(get_current_user)) -> ActorContext:
    """The role is read from the database, not the token, so demotions apply immediately."""
    try:
        role = Role(current_user.role)
    except ValueError:
        role = Role.USER
    return ActorContext(user_id=current_user.id, role=role)


class Pagination:
    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        self.page = page
        self.limit = limit
