"""
User schemas for responses.
"""

from datetime import datetime
from pydantic import EmailStr

from app.models.user import UserRole
from app.schemas.base import BaseSchema


class UserResponse(BaseSchema):
    """User response schema (public data)."""
    
    id: int
    email: EmailStr
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserSummary(BaseSchema):
    """Minimal user reference embedded in other responses."""
    
    id: int
    full_name: str
