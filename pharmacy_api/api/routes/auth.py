"""Auth: login/logout, current user, and staff accounts created by an ADMIN.

- Passwords hashed with bcrypt
- Token returned in the body and set as an httpOnly, SameSite cookie
"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from pharmacy_api.api.deps import get_actor, get_current_user, get_db
from pharmacy_api.core.audit import AuditLog
from pharmacy_api.core.config import settings
from pharmacy_api.core.exceptions import ConflictError, UnauthorizedError
from pharmacy_api.core.permissions import ActorContext, Role, ensure_role
from pharmacy_api.core.security import create_access_token, get_password_hash, verify_password
from pharmacy_api.db.session import unit_of_work
from pharmacy_api.models.user import User
from pharmacy_api.schemas.user import Token, UserCreate, UserLogin, UserResponse

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


@router.post("/login", response_model=Token)
def login(data: UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """Generic error on failure: never say which field was wrong."""
    user = db.query(User).filter(User.username == data.username).first()
    if not user or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("login", data.username, _client_ip(request), False, reason="invalid credentials")
        raise UnauthorizedError("Invalid username or password")

    token = create_access_token(subject=str(user.id), role=user.role)
    response.set_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("login", user.username, _client_ip(request), True)
    return Token(access_token=token)


@router.post("/logout")
def logout(request: Request, response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("logout", current_user.username, _client_ip(request), True)
    return {"success": True}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    """ADMIN creates a staff account with a role."""
    ensure_role(actor, (Role.ADMIN,), "create", "user")
    with unit_of_work(db):
        taken = db.query(User).filter(or_(User.username == data.username, User.email == data.email)).first()
        if taken:
            raise ConflictError("Username or email already registered")
        user = User(
            name=data.name,
            username=data.username,
            email=data.email,
            hashed_password=get_password_hash(data.password),
            role=data.role.value,
        )
        db.add(user)
    db.refresh(user)
    AuditLog.log_action("create", "user", user.id, actor.user_id, changes={"role": user.role})
    return user
