"""
Lens model for the product catalogue quoted and discounted at the front desk.
"""

from typing import Optional
from decimal import Decimal
from sqlalchemy import String, Text, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class Lens(BaseModel):
    """
    Lens model.

    Attributes:
        identifier: Internal catalogue code
        description: Commercial description
        brand: Brand name
        price: List price per unit
    """

    __tablename__ = "lenses"

    identifier: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    brand: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Lens(id={self.id}, identifier='{self.identifier}', price={self.price})>"
