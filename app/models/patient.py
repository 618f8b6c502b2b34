"""
Patient model: the customer a quote or discount is issued for.
"""

from typing import Optional
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class Patient(BaseModel):
    """
    Patient model.

    Attributes:
        first_name: Patient's first name
        last_name: Patient's last name
        identification: National identification number
        phone: Contact phone number
        email: Contact email address
    """

    __tablename__ = "patients"

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    identification: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, name='{self.full_name}')>"
