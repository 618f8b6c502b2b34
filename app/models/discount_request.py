"""
Discount request model: a proposed percentage discount on a lens, scoped to a
single patient or global, awaiting administrator approval.
"""

from typing import Optional, TYPE_CHECKING
from decimal import Decimal
from datetime import date, datetime
from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain import discount_lifecycle
from app.domain.discount_lifecycle import DiscountStatus
from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.lens import Lens
    from app.models.patient import Patient
    from app.models.user import User


class DiscountRequest(BaseModel):
    """
    Discount request model.

    Attributes:
        user_id: Employee who requested the discount
        lens_id: Discounted lens
        patient_id: Patient the discount applies to (None when global)
        is_global: Whether the discount applies to every patient
        status: Current status
        discount_percentage: Requested percentage, in (0, 100]
        original_price: Lens price when the request was made
        discounted_price: Derived price after discount
        reason: Requester's justification
        rejection_reason: Approver's reason, set only when rejected
        approval_notes: Approver's notes
        approved_by: Approver user id
        approved_at: Approval timestamp
        expiry_date: Last day the discount may be applied
    """

    __tablename__ = "discount_requests"

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    lens_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    patient_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    is_global: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    status: Mapped[DiscountStatus] = mapped_column(
        SQLEnum(DiscountStatus),
        default=DiscountStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Pricing
    discount_percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=False,
    )
    original_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    discounted_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )

    # Review
    reason: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    approval_notes: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    approved_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    expiry_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    # Relationships
    lens: Mapped["Lens"] = relationship(
        "Lens",
        lazy="selectin",
    )
    patient: Mapped[Optional["Patient"]] = relationship(
        "Patient",
        lazy="selectin",
    )
    requester: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[user_id],
        lazy="selectin",
    )
    approver: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[approved_by],
        lazy="selectin",
    )

    @property
    def is_pending(self) -> bool:
        return self.status == DiscountStatus.PENDING

    @property
    def is_expired(self) -> bool:
        return discount_lifecycle.is_expired(self)

    @property
    def is_valid(self) -> bool:
        """Approved and not expired."""
        return discount_lifecycle.is_valid(self)

    @property
    def is_trusted(self) -> bool:
        """False when a derived field disagrees with its formula."""
        return discount_lifecycle.is_trusted(self)

    def __repr__(self) -> str:
        return (
            f"<DiscountRequest(id={self.id}, lens_id={self.lens_id}, "
            f"status='{self.status}', pct={self.discount_percentage})>"
        )
