"""
Authentication and staff account endpoints.
"""

from fastapi import APIRouter, Query, status

from app.api.deps import AdminUser, CurrentUser, DbSession
from app.models.user import UserRole
from app.schemas.auth import (
    EmployeeCreate,
    EmployeeUpdate,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenPair,
)
from app.schemas.user import UserResponse
from app.services.auth import AuthService


router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Iniciar sesión",
    description="Iniciar sesión con email y contraseña; devuelve los tokens y el perfil",
)
async def login(
    data: LoginRequest,
    db: DbSession,
) -> LoginResponse:
    user, tokens = await AuthService(db).login(data)
    return LoginResponse(
        **tokens.model_dump(),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Renovar el token",
)
async def refresh_token(
    data: RefreshTokenRequest,
    db: DbSession,
) -> TokenPair:
    """Renovar los tokens JWT con el refresh token."""
    tokens = await AuthService(db).refresh_token(data.refresh_token)
    return TokenPair(**tokens.model_dump())


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Perfil actual",
)
async def get_current_user(
    current_user: CurrentUser,
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.post(
    "/employees",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear cuenta de empleado",
    description="Solo administradores: abrir una cuenta de recepcionista o de administrador",
)
async def create_employee(
    data: EmployeeCreate,
    db: DbSession,
    admin: AdminUser,
) -> UserResponse:
    user = await AuthService(db).create_employee(data, admin)
    return UserResponse.model_validate(user)


@router.get(
    "/employees",
    response_model=list[UserResponse],
    summary="Listar empleados",
)
async def list_employees(
    db: DbSession,
    admin: AdminUser,
    role: UserRole | None = Query(None, description="Filtrar por rol"),
    is_active: bool | None = Query(None, description="Filtrar por estado de la cuenta"),
) -> list[UserResponse]:
    users = await AuthService(db).list_employees(role=role, is_active=is_active)
    return [UserResponse.model_validate(user) for user in users]


@router.patch(
    "/employees/{user_id}",
    response_model=UserResponse,
    summary="Modificar cuenta de empleado",
    description="Cambiar nombre, rol, contraseña o estado. Siempre queda un administrador activo.",
)
async def update_employee(
    user_id: int,
    data: EmployeeUpdate,
    db: DbSession,
    admin: AdminUser,
) -> UserResponse:
    user = await AuthService(db).update_employee(user_id, data, admin)
    return UserResponse.model_validate(user)
