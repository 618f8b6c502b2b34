"""
User model for authentication and authorization.
Each user is a front-office employee: receptionists request discounts and
issue quotes, administrators approve them.
"""

from enum import Enum
from sqlalchemy import String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class UserRole(str, Enum):
    """User role enumeration."""
    ADMIN = "admin"
    RECEPTIONIST = "receptionist"


class User(BaseModel):
    """
    User model representing an employee.

    Attributes:
        email: Unique email for authentication
        hashed_password: Bcrypt hashed password
        full_name: Employee's full name
        role: Authorization role (admin approves, receptionist requests)
        is_active: Whether the account is active
    """

    __tablename__ = "users"

    # Authentication
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Personal info
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Authorization
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        default=UserRole.RECEPTIONIST,
        nullable=False,
    )

    # Account status
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
