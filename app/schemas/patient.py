"""
Patient schemas for request/response validation.
"""

from datetime import datetime
from pydantic import EmailStr, Field

from app.schemas.base import BaseSchema


class PatientBase(BaseSchema):
    """Base patient schema."""
    
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    identification: str = Field(..., min_length=1, max_length=50)
    phone: str | None = Field(None, max_length=50)
    email: EmailStr | None = None


class PatientCreate(PatientBase):
    """Schema for creating a patient."""


class PatientResponse(PatientBase):
    """Patient response schema."""
    
    id: int
    created_at: datetime
    updated_at: datetime


class PatientSummary(BaseSchema):
    """Patient reference embedded in quotes and discount requests."""
    
    id: int
    first_name: str
    last_name: str
    identification: str
    phone: str | None = None
    email: str | None = None


class PatientListResponse(BaseSchema):
    """Paginated patient list response."""
    
    items: list[PatientResponse]
    total: int
    page: int
    per_page: int
    pages: int
