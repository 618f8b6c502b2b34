"""
Sale model: the binding record created when a quote is converted.
"""

from typing import Optional, List, TYPE_CHECKING
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Integer, Numeric, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.totals import line_total
from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.quote import Quote


class SaleStatus(str, Enum):
    """Sale status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class Sale(BaseModel):
    """
    Sale model.

    Attributes:
        sale_number: Unique sale number (auto-generated)
        quote_id: Quote the sale was converted from
        patient_id: Patient, copied from the quote
        created_by: Employee who converted the quote
        subtotal / tax / discount / total: Copied from the quote
        amount_paid: Amount received so far
        balance: Remaining amount due
        status: Sale status
        payment_status: Payment status
        notes: Conversion notes
    """

    __tablename__ = "sales"

    sale_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    quote_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("quotes.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    patient_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    subtotal: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)

    status: Mapped[SaleStatus] = mapped_column(
        SQLEnum(SaleStatus),
        default=SaleStatus.PENDING,
        nullable=False,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    quote: Mapped[Optional["Quote"]] = relationship(
        "Quote",
        back_populates="sale",
    )
    items: Mapped[List["SaleItem"]] = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Sale(id={self.id}, number='{self.sale_number}', total={self.total})>"


class SaleItem(BaseModel):
    """Sale line item, copied from a quote item."""

    __tablename__ = "sale_items"

    sale_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lens_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lenses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sale: Mapped["Sale"] = relationship(
        "Sale",
        back_populates="items",
    )

    @property
    def total(self) -> Decimal:
        return line_total(self.quantity, self.price, self.discount)
