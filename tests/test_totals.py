"""
Totals calculator tests.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.exceptions import DataIntegrity
from app.domain.totals import (
    calculate_totals,
    check_totals,
    line_total,
    to_money,
    totals_match,
)


TAX_RATE = Decimal("0.19")


def item(quantity, price, discount=0):
    return SimpleNamespace(quantity=quantity, price=price, discount=discount)


def test_single_line_with_discount():
    totals = calculate_totals([item(2, 100, 10)], TAX_RATE)

    assert totals.subtotal == Decimal("200.00")
    assert totals.discount == Decimal("10.00")
    assert totals.tax == Decimal("38.00")
    assert totals.total == Decimal("228.00")


def test_empty_items_are_all_zero():
    totals = calculate_totals([], TAX_RATE)

    assert totals.as_dict() == {
        "subtotal": Decimal("0.00"),
        "tax": Decimal("0.00"),
        "discount": Decimal("0.00"),
        "total": Decimal("0.00"),
    }


@pytest.mark.parametrize(
    "items",
    [
        [item(1, "19.99")],
        [item(3, "33.33", "0.01"), item(1, "0.05")],
        [item(7, "12.345", "1.115"), item(2, "0.335", "0.005")],
    ],
)
def test_total_is_subtotal_plus_tax_minus_discount(items):
    totals = calculate_totals(items, TAX_RATE)

    assert totals.total == totals.subtotal + totals.tax - totals.discount
    assert totals.total >= 0


def test_rounding_happens_once_after_summation():
    # Three lines of 0.005 sum to 0.015, which rounds half-up to 0.02.
    totals = calculate_totals([item(1, "0.005")] * 3, Decimal("0"))

    assert totals.subtotal == Decimal("0.02")


def test_total_never_negative():
    totals = calculate_totals([item(1, 10, 50)], TAX_RATE)

    assert totals.total == Decimal("0.00")


def test_half_up_rounding():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money("2.344") == Decimal("2.34")


def test_line_total():
    assert line_total(2, "100", "10") == Decimal("190.00")


def test_check_totals_detects_mismatch():
    quote = SimpleNamespace(
        items=[item(2, 100, 10)],
        subtotal=Decimal("200.00"),
        tax=Decimal("38.00"),
        discount=Decimal("10.00"),
        total=Decimal("230.00"),
    )

    with pytest.raises(DataIntegrity) as exc_info:
        check_totals(quote, TAX_RATE)

    assert exc_info.value.field == "total"
    assert not totals_match(quote, TAX_RATE)


def test_check_totals_accepts_consistent_quote():
    quote = SimpleNamespace(
        items=[item(2, 100, 10)],
        subtotal=Decimal("200.00"),
        tax=Decimal("38.00"),
        discount=Decimal("10.00"),
        total=Decimal("228.00"),
    )

    check_totals(quote, TAX_RATE)
    assert totals_match(quote, TAX_RATE)
