"""
Staff account service.

Front-office accounts are never self-registered: administrators open
receptionist and administrator accounts, and the first administrator is
seeded from settings at startup. Only administrators approve or reject
discount requests; at least one administrator always stays active.
"""

import logging

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import (
    TokenPair,
    create_token_pair,
    decode_token,
    get_password_hash,
    verify_password,
)
from app.models.user import User, UserRole
from app.schemas.auth import EmployeeCreate, EmployeeUpdate, LoginRequest


logger = logging.getLogger(__name__)


class AuthService:
    """Login, token renewal and staff account management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _count_active_admins(self) -> int:
        result = await self.db.execute(
            select(func.count(User.id)).where(
                User.role == UserRole.ADMIN,
                User.is_active.is_(True),
            )
        )
        return result.scalar() or 0

    async def login(self, data: LoginRequest) -> tuple[User, TokenPair]:
        """
        Check credentials and issue a token pair.

        Raises:
            HTTPException: 401 on bad credentials, 403 for a deactivated account
        """
        user = await self.get_user_by_email(data.email)

        if not user or not verify_password(data.password, user.hashed_password):
            logger.warning("Failed login for %s", data.email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email o contraseña incorrectos",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cuenta desactivada",
            )

        logger.info("User %s (%s) logged in", user.id, user.role.value)
        return user, create_token_pair(user.id, user.email)

    async def refresh_token(self, refresh_token: str) -> TokenPair:
        """Issue a new pair from a refresh token of a still-active account."""
        token_data = decode_token(refresh_token)

        if token_data is None or token_data.token_type != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token de actualización inválido",
            )

        user = await self.get_user_by_id(token_data.user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Usuario no encontrado",
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cuenta desactivada",
            )

        return create_token_pair(user.id, user.email)

    async def create_employee(self, data: EmployeeCreate, created_by: User) -> User:
        """
        Open a staff account on behalf of an administrator.

        Args:
            data: Account data, including the role
            created_by: Administrator opening the account

        Raises:
            HTTPException: 400 if the email is already in use
        """
        if await self.get_user_by_email(data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ya existe una cuenta con este email",
            )

        user = User(
            email=data.email,
            hashed_password=get_password_hash(data.password),
            full_name=data.full_name,
            role=data.role,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info(
            "User %s created %s account %s", created_by.id, user.role.value, user.id
        )
        return user

    async def list_employees(
        self,
        role: UserRole | None = None,
        is_active: bool | None = None,
    ) -> list[User]:
        query = select(User).order_by(User.full_name, User.id)
        if role:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active.is_(is_active))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_employee(
        self,
        user_id: int,
        data: EmployeeUpdate,
        updated_by: User,
    ) -> User:
        """
        Change the name, role, password or active flag of an account.

        Demoting or deactivating the last active administrator is refused.
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado",
            )

        update_data = data.model_dump(exclude_unset=True)
        loses_admin = user.is_admin and user.is_active and (
            update_data.get("role", user.role) != UserRole.ADMIN
            or update_data.get("is_active", True) is False
        )
        if loses_admin and await self._count_active_admins() <= 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Debe quedar al menos un administrador activo",
            )

        password = update_data.pop("password", None)
        if password:
            user.hashed_password = get_password_hash(password)
        for field, value in update_data.items():
            if value is not None:
                setattr(user, field, value)

        await self.db.flush()
        await self.db.refresh(user)
        logger.info("User %s updated account %s", updated_by.id, user.id)
        return user

    async def ensure_admin(self, email: str, password: str, full_name: str) -> User:
        """
        Make sure the bootstrap administrator exists. Idempotent: an existing
        account with that email is returned unchanged.
        """
        user = await self.get_user_by_email(email)
        if user:
            if not user.is_admin:
                logger.warning("Bootstrap account %s exists without admin role", email)
            return user

        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=UserRole.ADMIN,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("Seeded administrator account %s", email)
        return user


async def seed_first_admin(db: AsyncSession) -> User | None:
    """Create the bootstrap administrator from settings, if configured."""
    if not (settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD):
        return None

    user = await AuthService(db).ensure_admin(
        settings.FIRST_ADMIN_EMAIL,
        settings.FIRST_ADMIN_PASSWORD,
        settings.FIRST_ADMIN_NAME,
    )
    await db.commit()
    return user
