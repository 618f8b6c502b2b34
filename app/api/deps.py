"""
API Dependencies.
Common dependencies for authentication, database sessions, etc.
"""

import logging
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import decode_token
from app.models.user import User
from app.services.auth import AuthService


# Logger
logger = logging.getLogger(__name__)

# Esquema de seguridad Bearer Token
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Obtiene el usuario actual a partir del token JWT.

    Args:
        credentials: Token Bearer JWT
        db: Sesión de base de datos

    Returns:
        Usuario autenticado

    Raises:
        HTTPException: Si el token es inválido o el usuario no existe
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token de autenticación inválido o expirado",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        logger.warning("Intento de acceso sin token")
        raise credentials_exception

    token_data = decode_token(credentials.credentials)

    if token_data is None:
        logger.warning("Token inválido o expirado")
        raise credentials_exception

    if token_data.token_type != "access":
        logger.warning("Tipo de token inválido: %s", token_data.token_type)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Tipo de token inválido",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if token_data.user_id is None:
        logger.warning("Token sin identificador de usuario")
        raise credentials_exception

    user = await AuthService(db).get_user_by_id(token_data.user_id)

    if user is None:
        logger.warning("Usuario %s no encontrado", token_data.user_id)
        raise credentials_exception

    logger.debug("Usuario autenticado: %s", user.email)
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Obtiene el usuario actual activo.

    Raises:
        HTTPException: Si la cuenta está desactivada
    """
    if not current_user.is_active:
        logger.warning("Cuenta desactivada: %s", current_user.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cuenta desactivada",
        )
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Solo administradores."""
    if not current_user.is_admin:
        logger.warning("Acceso de administrador denegado a %s", current_user.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Se requieren permisos de administrador",
        )
    return current_user


# Type aliases for cleaner route signatures
CurrentUser = Annotated[User, Depends(get_current_active_user)]
AdminUser = Annotated[User, Depends(require_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
