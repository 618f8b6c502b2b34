"""
Discount request schemas for request/response validation.

Prices are never accepted from the caller: the original price comes from the
lens and the discounted price is derived from it.
"""

from datetime import date, datetime
from decimal import Decimal
from pydantic import Field

from app.schemas.base import BaseSchema
from app.schemas.lens import LensSnapshot
from app.schemas.patient import PatientSummary
from app.schemas.user import UserSummary
from app.models.discount_request import DiscountStatus


class DiscountRequestCreate(BaseSchema):
    """Schema for creating a discount request."""
    
    lens_id: int
    patient_id: int | None = None
    is_global: bool = False
    discount_percentage: Decimal = Field(..., gt=0, le=100)
    reason: str | None = Field(None, max_length=500)
    expiry_date: date | None = None


class DiscountRequestUpdate(BaseSchema):
    """Schema for updating a pending discount request."""
    
    lens_id: int | None = None
    patient_id: int | None = None
    is_global: bool | None = None
    discount_percentage: Decimal | None = Field(None, gt=0, le=100)
    reason: str | None = Field(None, max_length=500)
    expiry_date: date | None = None


class DiscountApproval(BaseSchema):
    """Approval payload."""
    
    approval_notes: str | None = Field(None, max_length=500)


class DiscountRejection(BaseSchema):
    """Rejection payload. Emptiness is checked by the state machine."""
    
    rejection_reason: str | None = Field(None, max_length=500)


class DiscountRequestResponse(BaseSchema):
    """Discount request response schema."""
    
    id: int
    user_id: int | None
    requester: UserSummary | None
    lens_id: int
    lens: LensSnapshot
    patient_id: int | None
    patient: PatientSummary | None
    is_global: bool
    status: DiscountStatus
    discount_percentage: Decimal
    original_price: Decimal
    discounted_price: Decimal
    reason: str | None
    rejection_reason: str | None
    approval_notes: str | None
    approved_by: int | None
    approved_at: datetime | None
    expiry_date: date | None
    is_expired: bool
    is_valid: bool
    is_trusted: bool
    created_at: datetime
    updated_at: datetime


class DiscountRequestListResponse(BaseSchema):
    """Paginated discount request list response."""
    
    items: list[DiscountRequestResponse]
    total: int
    page: int
    per_page: int
    pages: int
