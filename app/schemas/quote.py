"""
Quote schemas for request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from pydantic import Field

from app.schemas.base import BaseSchema
from app.schemas.lens import LensSnapshot
from app.schemas.patient import PatientSummary
from app.schemas.sale import SaleResponse
from app.models.quote import QuoteStatus


class QuoteItemCreate(BaseSchema):
    """
    Schema for creating a quote item.

    When ``price`` is omitted the lens is priced from its best approved
    discount for the patient, or its list price.
    """
    
    lens_id: int
    quantity: int = Field(default=1, gt=0)
    price: Decimal | None = Field(default=None, ge=0)
    discount: Decimal = Field(default=Decimal("0.00"), ge=0)
    notes: str | None = None


class QuoteItemResponse(BaseSchema):
    """Quote item response schema."""
    
    id: int
    quote_id: int
    lens_id: int
    lens: LensSnapshot
    quantity: int
    price: Decimal
    original_price: Decimal
    discount: Decimal
    discount_request_id: int | None
    total: Decimal
    notes: str | None


class QuoteCreate(BaseSchema):
    """Schema for creating a quote."""
    
    patient_id: int | None = None
    expiration_date: date | None = None
    notes: str | None = None
    items: list[QuoteItemCreate] = Field(..., min_length=1)


class QuoteResponse(BaseSchema):
    """Quote response schema."""
    
    id: int
    quote_number: str
    patient_id: int | None
    patient: PatientSummary | None
    created_by: int | None
    status: QuoteStatus
    effective_status: QuoteStatus
    expiration_date: date
    notes: str | None
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    is_expired: bool
    can_convert: bool
    totals_consistent: bool
    sale_id: int | None
    pdf_token: str | None
    items: list[QuoteItemResponse]
    created_at: datetime
    updated_at: datetime


class QuoteListResponse(BaseSchema):
    """Paginated quote list response."""
    
    items: list[QuoteResponse]
    total: int
    page: int
    per_page: int
    pages: int


class QuoteConversionResponse(BaseSchema):
    """Result of converting a quote to a sale."""
    
    quote: QuoteResponse
    sale: SaleResponse


class PdfTokenResponse(BaseSchema):
    """Download token issued for a quote PDF."""
    
    quote_id: int
    quote_number: str
    pdf_token: str
    pdf_url: str


class ExpireOverdueResponse(BaseSchema):
    """Result of persisting expiry for overdue quotes."""
    
    expired: int
