"""
Pydantic schemas for request/response validation.
"""

from app.schemas.user import (
    UserResponse,
    UserSummary,
)
from app.schemas.patient import (
    PatientCreate,
    PatientResponse,
)
from app.schemas.lens import (
    LensCreate,
    LensResponse,
)
from app.schemas.quote import (
    QuoteCreate,
    QuoteItemCreate,
    QuoteResponse,
    QuoteListResponse,
)
from app.schemas.discount_request import (
    DiscountRequestCreate,
    DiscountRequestUpdate,
    DiscountRequestResponse,
    DiscountRequestListResponse,
)
from app.schemas.sale import (
    SaleResponse,
)
from app.schemas.auth import (
    TokenPair,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    EmployeeCreate,
    EmployeeUpdate,
)

__all__ = [
    # User
    "UserResponse",
    "UserSummary",
    # Patient
    "PatientCreate",
    "PatientResponse",
    # Lens
    "LensCreate",
    "LensResponse",
    # Quote
    "QuoteCreate",
    "QuoteItemCreate",
    "QuoteResponse",
    "QuoteListResponse",
    # Discount request
    "DiscountRequestCreate",
    "DiscountRequestUpdate",
    "DiscountRequestResponse",
    "DiscountRequestListResponse",
    # Sale
    "SaleResponse",
    # Auth
    "TokenPair",
    "LoginRequest",
    "LoginResponse",
    "RefreshTokenRequest",
    "EmployeeCreate",
    "EmployeeUpdate",
]
