from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator

from pharmacy_api.core.config import settings
from pharmacy_api.core.permissions import Role


class UserCreate(BaseModel):
    name: str
    username: str
    email: EmailStr
    password: str
    role: Role = Role.USER

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < settings.MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
        return v

    @field_validator("username", "name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class UserLogin(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    username: str
    email: str
    role: str

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
