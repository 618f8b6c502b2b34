"""
Quote (Cotización) model: a priced lens offer to a patient.
Can be converted to a Sale while pending or approved and not expired.
"""

from typing import Optional, List, TYPE_CHECKING
from decimal import Decimal
from datetime import date
from sqlalchemy import String, Text, ForeignKey, Integer, Numeric, Date, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.config import settings
from app.domain import quote_lifecycle
from app.domain.quote_lifecycle import QuoteStatus
from app.domain.totals import calculate_totals, line_total, totals_match
from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.lens import Lens
    from app.models.patient import Patient
    from app.models.sale import Sale
    from app.models.user import User


class Quote(BaseModel):
    """
    Quote model.

    Attributes:
        quote_number: Unique quote number (auto-generated)
        patient_id: Optional foreign key to the patient
        created_by: Foreign key to the employee who issued it
        status: Stored quote status
        expiration_date: Last day the quote can be converted
        notes: Additional notes
        subtotal: Sum of quantity * price over items
        tax: Tax on the subtotal
        discount: Sum of item discounts
        total: subtotal + tax - discount
        pdf_token: Last download token issued for the PDF
    """

    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    patient_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[QuoteStatus] = mapped_column(
        SQLEnum(QuoteStatus),
        default=QuoteStatus.PENDING,
        nullable=False,
        index=True,
    )
    expiration_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Totals (calculated from items)
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    tax: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    total: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )

    # PDF export
    pdf_token: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
    )

    # Relationships
    patient: Mapped[Optional["Patient"]] = relationship(
        "Patient",
        foreign_keys=[patient_id],
        lazy="selectin",
    )
    creator: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[created_by],
        lazy="selectin",
    )
    items: Mapped[List["QuoteItem"]] = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItem.id",
        lazy="selectin",
    )
    sale: Mapped[Optional["Sale"]] = relationship(
        "Sale",
        back_populates="quote",
        uselist=False,
        lazy="selectin",
    )

    @property
    def sale_id(self) -> Optional[int]:
        """Sale created on conversion, if any."""
        return self.sale.id if self.sale else None

    @property
    def effective_status(self) -> QuoteStatus:
        """Stored status with expiry applied as of today."""
        return quote_lifecycle.compute_expiry(self)

    @property
    def is_expired(self) -> bool:
        return self.effective_status == QuoteStatus.EXPIRED

    @property
    def can_convert(self) -> bool:
        """Check if quote can be converted to a sale."""
        return quote_lifecycle.can_convert(self)

    @property
    def totals_consistent(self) -> bool:
        """Whether stored totals match a recalculation from items."""
        return totals_match(self, settings.TAX_RATE)

    def calculate_totals(self, items: Optional[List["QuoteItem"]] = None) -> None:
        """Recalculate quote totals from items, replacing stored values."""
        totals = calculate_totals(self.items if items is None else items, settings.TAX_RATE)
        self.subtotal = totals.subtotal
        self.tax = totals.tax
        self.discount = totals.discount
        self.total = totals.total

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, number='{self.quote_number}', total={self.total})>"


class QuoteItem(BaseModel):
    """
    Quote line item model.

    Attributes:
        quote_id: Foreign key to the quote
        lens_id: Foreign key to the quoted lens
        quantity: Number of units
        price: Unit price at quote time
        original_price: Lens list price at quote time
        discount: Discount amount for the line
        discount_request_id: Approved discount that set the price, if any
        notes: Free-text notes
    """

    __tablename__ = "quote_items"

    quote_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lens_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lenses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    original_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    discount_request_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("discount_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    quote: Mapped["Quote"] = relationship(
        "Quote",
        back_populates="items",
    )
    lens: Mapped["Lens"] = relationship(
        "Lens",
        lazy="selectin",
    )

    @property
    def total(self) -> Decimal:
        """quantity * price - discount."""
        return line_total(self.quantity, self.price, self.discount)

    def __repr__(self) -> str:
        return f"<QuoteItem(id={self.id}, lens_id={self.lens_id}, total={self.total})>"
