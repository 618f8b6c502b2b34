"""
Sale schemas for responses.
"""

from datetime import datetime
from decimal import Decimal

from app.schemas.base import BaseSchema
from app.models.sale import SaleStatus, PaymentStatus


class SaleItemResponse(BaseSchema):
    """Sale item response schema."""
    
    id: int
    lens_id: int
    quantity: int
    price: Decimal
    discount: Decimal
    total: Decimal
    notes: str | None


class SaleResponse(BaseSchema):
    """Sale response schema."""
    
    id: int
    sale_number: str
    quote_id: int | None
    patient_id: int | None
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: SaleStatus
    payment_status: PaymentStatus
    notes: str | None
    items: list[SaleItemResponse]
    created_at: datetime
