"""
Quote totals calculator.

Pure functions over line items: anything exposing ``quantity``, ``price``
and ``discount`` (models, schemas, plain namespaces) can be totalled.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable

from app.core.exceptions import DataIntegrity

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Round a number to cents, half-up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    """Monetary totals of a quote."""

    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
        }


def line_total(quantity: Any, price: Any, discount: Any = 0) -> Decimal:
    """Total of a single line: quantity * price - discount."""
    gross = Decimal(str(quantity)) * Decimal(str(price))
    return to_money(gross - Decimal(str(discount)))


def calculate_totals(items: Iterable[Any], tax_rate: Any) -> Totals:
    """
    Compute subtotal, tax, discount and total for a sequence of items.

    Sums are exact; rounding to cents happens once per field, after
    summation. The total is clamped to zero.
    """
    subtotal = Decimal("0")
    discount = Decimal("0")
    for item in items:
        subtotal += Decimal(str(item.quantity)) * Decimal(str(item.price))
        discount += Decimal(str(item.discount or 0))

    subtotal = to_money(subtotal)
    discount = to_money(discount)
    tax = to_money(subtotal * Decimal(str(tax_rate)))
    total = max(subtotal + tax - discount, ZERO)

    return Totals(
        subtotal=subtotal,
        tax=tax,
        discount=discount,
        total=to_money(total),
    )


def check_totals(quote: Any, tax_rate: Any) -> None:
    """
    Compare a quote's stored totals with a fresh calculation.

    Raises:
        DataIntegrity: naming the first field that disagrees.
    """
    expected = calculate_totals(quote.items, tax_rate)
    for name, value in expected.as_dict().items():
        stored = to_money(getattr(quote, name) or 0)
        if stored != value:
            raise DataIntegrity("Quote", name, stored, value)


def totals_match(quote: Any, tax_rate: Any) -> bool:
    try:
        check_totals(quote, tax_rate)
    except DataIntegrity:
        return False
    return True
