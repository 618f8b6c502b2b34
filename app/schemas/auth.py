"""
Authentication and staff account schemas.
"""

from pydantic import EmailStr, Field

from app.models.user import UserRole
from app.schemas.base import BaseSchema
from app.schemas.user import UserResponse


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=6)


class TokenPair(BaseSchema):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenPair):
    """Token pair plus the profile the front desk uses to pick its views."""

    user: UserResponse


class RefreshTokenRequest(BaseSchema):
    refresh_token: str


class EmployeeCreate(BaseSchema):
    """Staff account opened by an administrator."""

    email: EmailStr
    password: str = Field(..., min_length=8, description="Mínimo 8 caracteres")
    full_name: str = Field(..., min_length=2, max_length=255)
    role: UserRole = UserRole.RECEPTIONIST


class EmployeeUpdate(BaseSchema):
    full_name: str | None = Field(None, min_length=2, max_length=255)
    password: str | None = Field(None, min_length=8)
    role: UserRole | None = None
    is_active: bool | None = None
