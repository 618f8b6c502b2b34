"""
Database models module.
All SQLAlchemy models are exported from here for easy imports.
"""

from app.models.user import User, UserRole
from app.models.patient import Patient
from app.models.lens import Lens
from app.models.discount_request import DiscountRequest, DiscountStatus
from app.models.quote import Quote, QuoteItem, QuoteStatus
from app.models.sale import Sale, SaleItem


__all__ = [
    "User",
    "UserRole",
    "Patient",
    "Lens",
    "DiscountRequest",
    "DiscountStatus",
    "Quote",
    "QuoteItem",
    "QuoteStatus",
    "Sale",
    "SaleItem",
]
