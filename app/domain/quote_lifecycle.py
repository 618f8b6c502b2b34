"""
Quote state machine.

One stored status per quote plus a pure ``effective_status`` derivation for
expiry. Commands check their preconditions before touching the quote, so a
rejected command never leaves a partial change behind.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol

from app.core.exceptions import (
    CollaboratorFailure,
    DomainError,
    ExportUnavailable,
    InvalidTransition,
    NotConvertible,
)


logger = logging.getLogger(__name__)


class QuoteStatus(str, Enum):
    """Quote status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"  # Converted to sale


TERMINAL_STATUSES = frozenset({
    QuoteStatus.REJECTED,
    QuoteStatus.EXPIRED,
    QuoteStatus.CONVERTED,
})

# Statuses that lapse into EXPIRED once the expiration date has passed.
EXPIRABLE_STATUSES = frozenset({QuoteStatus.PENDING, QuoteStatus.APPROVED})

# Explicit commands and the stored statuses they may start from.
TRANSITIONS: dict[str, tuple[frozenset, QuoteStatus]] = {
    "approve": (frozenset({QuoteStatus.PENDING}), QuoteStatus.APPROVED),
    "reject": (frozenset({QuoteStatus.PENDING}), QuoteStatus.REJECTED),
    "convert": (EXPIRABLE_STATUSES, QuoteStatus.CONVERTED),
}


class SaleCreator(Protocol):
    """Collaborator that turns a quote into a sale record."""

    async def create(self, quote: Any) -> Any: ...


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def is_expired(expiration_date: date | datetime | None, today: date | datetime | None = None) -> bool:
    """A quote without an expiration date never expires."""
    if expiration_date is None:
        return False
    return _as_date(today) > _as_date(expiration_date)


def effective_status(
    stored: QuoteStatus,
    expiration_date: date | datetime | None,
    today: date | datetime | None = None,
) -> QuoteStatus:
    """Status as perceived at read time, accounting for expiry."""
    stored = QuoteStatus(stored)
    if stored in EXPIRABLE_STATUSES and is_expired(expiration_date, today):
        return QuoteStatus.EXPIRED
    return stored


def compute_expiry(quote: Any, today: date | datetime | None = None) -> QuoteStatus:
    """Effective status of a quote. Never mutates it."""
    return effective_status(quote.status, quote.expiration_date, today)


def is_terminal(status: QuoteStatus) -> bool:
    return QuoteStatus(status) in TERMINAL_STATUSES


_ACTION_LABELS = {
    "approve": "aprobar",
    "reject": "rechazar",
    "convert": "convertir",
}


def check_transition(quote: Any, action: str, today: date | datetime | None = None) -> QuoteStatus:
    """Target status of ``action`` on ``quote``, or InvalidTransition. Never mutates."""
    allowed, target = TRANSITIONS[action]
    current = compute_expiry(quote, today)
    if current not in allowed:
        raise InvalidTransition("la cotización", current.value, _ACTION_LABELS[action])
    return target


def approve(quote: Any, today: date | datetime | None = None) -> Any:
    """pending -> approved."""
    quote.status = check_transition(quote, "approve", today)
    return quote


def reject(quote: Any, today: date | datetime | None = None) -> Any:
    """pending -> rejected."""
    quote.status = check_transition(quote, "reject", today)
    return quote


def ensure_convertible(quote: Any, today: date | datetime | None = None) -> None:
    """
    Check both conversion preconditions.

    Raises:
        NotConvertible: with reason ``status`` when the stored status is not
            pending/approved, or ``expired`` when the expiration date passed.
    """
    if QuoteStatus(quote.status) not in EXPIRABLE_STATUSES:
        raise NotConvertible(NotConvertible.STATUS)
    if is_expired(quote.expiration_date, today):
        raise NotConvertible(NotConvertible.EXPIRED)


def can_convert(quote: Any, today: date | datetime | None = None) -> bool:
    try:
        ensure_convertible(quote, today)
    except NotConvertible:
        return False
    return True


async def convert_to_sale(
    quote: Any,
    sale_creator: SaleCreator,
    today: date | datetime | None = None,
) -> Any:
    """
    Convert a quote into a sale.

    The sale is requested first; the quote only becomes ``converted`` once
    the sale creator returns. Any failure leaves the stored status as it was.
    """
    ensure_convertible(quote, today)
    previous = quote.status

    try:
        sale = await sale_creator.create(quote)
    except DomainError:
        raise
    except Exception as exc:
        logger.error(
            "Sale creation failed for quote %s: %s",
            getattr(quote, "quote_number", None),
            exc,
        )
        raise CollaboratorFailure("sale", f"Error al crear la venta: {exc}") from exc

    if quote.status != previous:
        # The quote changed while the sale was being created.
        raise InvalidTransition("la cotización", QuoteStatus(quote.status).value, "convertir")

    quote.status = QuoteStatus.CONVERTED
    return sale


def ensure_editable(quote: Any, today: date | datetime | None = None) -> None:
    """Items can only change while the quote is effectively pending."""
    current = compute_expiry(quote, today)
    if current != QuoteStatus.PENDING:
        raise InvalidTransition("la cotización", current.value, "modificar")


def ensure_exportable(quote: Any) -> str:
    """Return the PDF token of a quote, or raise ExportUnavailable."""
    token = getattr(quote, "pdf_token", None)
    if not token:
        raise ExportUnavailable()
    return token
