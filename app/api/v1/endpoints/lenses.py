"""
Lens catalogue endpoints.
"""

from fastapi import APIRouter, Query, status

from app.api.deps import AdminUser, DbSession, CurrentUser
from app.core.config import settings
from app.schemas.base import page_count
from app.schemas.lens import (
    LensCreate,
    LensResponse,
    LensListResponse,
)
from app.services.lens import LensService


router = APIRouter()


@router.post(
    "",
    response_model=LensResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear un lente",
    description="Agregar un lente al catálogo (solo administradores)",
)
async def create_lens(
    data: LensCreate,
    current_user: AdminUser,
    db: DbSession,
) -> LensResponse:
    service = LensService(db)
    lens = await service.create(data)
    return LensResponse.model_validate(lens)


@router.get(
    "",
    response_model=LensListResponse,
    summary="Listar lentes",
)
async def list_lenses(
    current_user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1, description="Número de página"),
    per_page: int = Query(
        settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE, description="Elementos por página"
    ),
    search: str | None = Query(None, description="Buscar por identificador o descripción"),
    brand: str | None = Query(None, description="Filtrar por marca"),
) -> LensListResponse:
    """Lista paginada del catálogo de lentes."""
    service = LensService(db)

    lenses, total = await service.list(
        skip=(page - 1) * per_page,
        limit=per_page,
        search=search,
        brand=brand,
    )

    return LensListResponse(
        items=[LensResponse.model_validate(lens) for lens in lenses],
        total=total,
        page=page,
        per_page=per_page,
        pages=page_count(total, per_page),
    )


@router.get(
    "/{lens_id}",
    response_model=LensResponse,
    summary="Detalle de un lente",
)
async def get_lens(
    lens_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> LensResponse:
    service = LensService(db)
    lens = await service.get_or_404(lens_id)
    return LensResponse.model_validate(lens)

