"""
Discount request state machine and derived pricing.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from app.core.exceptions import (
    DataIntegrity,
    InvalidScope,
    InvalidTransition,
    MissingReason,
)
from app.domain.totals import to_money


class DiscountStatus(str, Enum):
    """Discount request status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({DiscountStatus.APPROVED, DiscountStatus.REJECTED})

MIN_PERCENTAGE = Decimal("0")
MAX_PERCENTAGE = Decimal("100")


def discounted_price(original_price: Any, discount_percentage: Any) -> Decimal:
    """original_price * (1 - percentage / 100), half-up to cents."""
    original = Decimal(str(original_price))
    percentage = Decimal(str(discount_percentage))
    if not MIN_PERCENTAGE < percentage <= MAX_PERCENTAGE:
        raise ValueError(f"discount percentage out of range: {percentage}")
    if original < 0:
        raise ValueError(f"original price must not be negative: {original}")
    return to_money(original * (1 - percentage / 100))


def ensure_scope(patient_id: int | None, is_global: bool) -> None:
    """Exactly one of patient scope or global scope must hold."""
    if bool(is_global) == (patient_id is not None):
        raise InvalidScope()


def ensure_pending(request: Any, action: str) -> None:
    current = DiscountStatus(request.status)
    if current != DiscountStatus.PENDING:
        raise InvalidTransition("la solicitud de descuento", current.value, action)


def ensure_reason(reason: str | None) -> None:
    if reason is None or not reason.strip():
        raise MissingReason()


def approve(
    request: Any,
    approver_id: int | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> Any:
    """pending -> approved, recording who approved and when."""
    ensure_pending(request, "aprobar")
    request.status = DiscountStatus.APPROVED
    request.approved_by = approver_id
    request.approved_at = now or datetime.now(timezone.utc)
    request.approval_notes = notes or request.reason or "Aprobado por administrador."
    return request


def reject(request: Any, reason: str | None) -> Any:
    """pending -> rejected. The reason is mandatory and stored as given."""
    ensure_reason(reason)
    ensure_pending(request, "rechazar")
    request.status = DiscountStatus.REJECTED
    request.rejection_reason = reason.strip()
    return request


def is_expired(request: Any, today: date | None = None) -> bool:
    expiry = getattr(request, "expiry_date", None)
    return expiry is not None and (today or date.today()) > expiry


def is_valid(request: Any, today: date | None = None) -> bool:
    """Approved and not expired: only then does it authorize a price."""
    return (
        DiscountStatus(request.status) == DiscountStatus.APPROVED
        and not is_expired(request, today)
    )


def check_integrity(request: Any) -> None:
    """
    Verify derived and status-dependent fields of a stored request.

    Raises:
        DataIntegrity: on the first inconsistent field.
    """
    try:
        expected = discounted_price(request.original_price, request.discount_percentage)
    except ValueError as exc:
        if Decimal(str(request.original_price)) < 0:
            raise DataIntegrity(
                "DiscountRequest", "original_price", request.original_price, ">= 0"
            ) from exc
        raise DataIntegrity(
            "DiscountRequest",
            "discount_percentage",
            request.discount_percentage,
            "entre 0 (excluido) y 100",
        ) from exc
    stored = to_money(request.discounted_price)
    if stored != expected:
        raise DataIntegrity("DiscountRequest", "discounted_price", stored, expected)

    if bool(request.is_global) == (request.patient_id is not None):
        raise DataIntegrity(
            "DiscountRequest",
            "is_global",
            request.is_global,
            "exactamente uno de is_global / patient_id",
        )

    rejected = DiscountStatus(request.status) == DiscountStatus.REJECTED
    if rejected != bool(request.rejection_reason):
        raise DataIntegrity(
            "DiscountRequest",
            "rejection_reason",
            request.rejection_reason,
            "presente solo si la solicitud está rechazada",
        )


def is_trusted(request: Any) -> bool:
    try:
        check_integrity(request)
    except DataIntegrity:
        return False
    return True
