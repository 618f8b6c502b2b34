"""
Lens schemas for request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from pydantic import Field

from app.schemas.base import BaseSchema


class LensBase(BaseSchema):
    """Base lens schema."""
    
    identifier: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    brand: str | None = Field(None, max_length=100)
    price: Decimal = Field(..., ge=0)


class LensCreate(LensBase):
    """Schema for creating a lens."""


class LensResponse(LensBase):
    """Lens response schema."""
    
    id: int
    created_at: datetime
    updated_at: datetime


class LensSnapshot(BaseSchema):
    """Read-only lens snapshot embedded in quote items."""
    
    id: int
    identifier: str
    description: str | None = None
    brand: str | None = None
    price: Decimal


class LensListResponse(BaseSchema):
    """Paginated lens list response."""
    
    items: list[LensResponse]
    total: int
    page: int
    per_page: int
    pages: int
