"""Pydantic DTOs for sign-in and user management."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.entities import UserRole


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, examples=["admin@archivo.local"])
    password: str = Field(..., min_length=1, max_length=128)


class UserCreate(BaseModel):
    """Schema for an administrator registering another account."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.VIEWER
    display_name: str | None = Field(None, max_length=255)


class UserResponse(BaseModel):
    id: str
    email: str
    role: UserRole
    display_name: str | None
    is_active: bool
    created_at: datetime
    can_edit: bool = False

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
