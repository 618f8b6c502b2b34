"""
Discount request endpoints.
Requests are raised by any employee and approved or rejected by an administrator.
"""

from datetime import date

from fastapi import APIRouter, Body, Query, status

from app.api.deps import AdminUser, DbSession, CurrentUser
from app.core.config import settings
from app.schemas.base import MessageResponse, page_count
from app.schemas.discount_request import (
    DiscountApproval,
    DiscountRejection,
    DiscountRequestCreate,
    DiscountRequestListResponse,
    DiscountRequestResponse,
    DiscountRequestUpdate,
)
from app.models.discount_request import DiscountStatus
from app.services.discount_request import DiscountRequestService


router = APIRouter()


@router.post(
    "",
    response_model=DiscountRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Solicitar un descuento",
    description="Crear una solicitud de descuento para un paciente o global",
)
async def create_discount_request(
    data: DiscountRequestCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> DiscountRequestResponse:
    """Crear una solicitud de descuento pendiente."""
    service = DiscountRequestService(db)
    request = await service.create(current_user, data)
    return DiscountRequestResponse.model_validate(request)


@router.get(
    "",
    response_model=DiscountRequestListResponse,
    summary="Listar solicitudes de descuento",
)
async def list_discount_requests(
    current_user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1, description="Número de página"),
    per_page: int = Query(
        settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE, description="Elementos por página"
    ),
    status: DiscountStatus | None = Query(None, description="Filtrar por estado"),
    lens_id: int | None = Query(None, description="Filtrar por lente"),
    patient_id: int | None = Query(None, description="Filtrar por paciente"),
    is_global: bool | None = Query(None, description="Solo globales / solo por paciente"),
    date_from: date | None = Query(None, description="Creadas desde"),
    date_to: date | None = Query(None, description="Creadas hasta"),
    search: str | None = Query(None, description="Buscar por lente o paciente"),
) -> DiscountRequestListResponse:
    """Listar solicitudes con paginación y filtros."""
    service = DiscountRequestService(db)

    requests, total = await service.list(
        skip=(page - 1) * per_page,
        limit=per_page,
        status=status,
        lens_id=lens_id,
        patient_id=patient_id,
        is_global=is_global,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )

    return DiscountRequestListResponse(
        items=[DiscountRequestResponse.model_validate(r) for r in requests],
        total=total,
        page=page,
        per_page=per_page,
        pages=page_count(total, per_page),
    )


@router.get(
    "/active",
    response_model=list[DiscountRequestResponse],
    summary="Descuentos vigentes",
    description=(
        "Descuentos aprobados y vigentes para un lente; los del paciente "
        "tienen prioridad sobre los globales"
    ),
)
async def get_active_discounts(
    current_user: CurrentUser,
    db: DbSession,
    lens_id: int = Query(..., description="Lente"),
    patient_id: int | None = Query(None, description="Paciente"),
) -> list[DiscountRequestResponse]:
    service = DiscountRequestService(db)
    discounts = await service.get_active_discounts(lens_id, patient_id)
    return [DiscountRequestResponse.model_validate(d) for d in discounts]


@router.get(
    "/{request_id}",
    response_model=DiscountRequestResponse,
    summary="Detalle de una solicitud",
)
async def get_discount_request(
    request_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> DiscountRequestResponse:
    service = DiscountRequestService(db)
    request = await service.get_or_404(request_id)
    return DiscountRequestResponse.model_validate(request)


@router.patch(
    "/{request_id}",
    response_model=DiscountRequestResponse,
    summary="Modificar una solicitud pendiente",
)
async def update_discount_request(
    request_id: int,
    data: DiscountRequestUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> DiscountRequestResponse:
    """Modificar una solicitud pendiente; el precio se recalcula."""
    service = DiscountRequestService(db)
    request = await service.get_or_404(request_id)
    request = await service.update(request, current_user, data)
    return DiscountRequestResponse.model_validate(request)


@router.delete(
    "/{request_id}",
    response_model=MessageResponse,
    summary="Eliminar una solicitud",
)
async def delete_discount_request(
    request_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    service = DiscountRequestService(db)
    request = await service.get_or_404(request_id)
    await service.delete(request, current_user)
    return MessageResponse(message="Solicitud de descuento eliminada")


@router.post(
    "/{request_id}/approve",
    response_model=DiscountRequestResponse,
    summary="Aprobar una solicitud",
    description="Aprobar una solicitud pendiente (solo administradores)",
)
async def approve_discount_request(
    request_id: int,
    current_user: AdminUser,
    db: DbSession,
    data: DiscountApproval | None = Body(None),
) -> DiscountRequestResponse:
    service = DiscountRequestService(db)
    request = await service.get_or_404(request_id)
    request = await service.approve(
        request, current_user, data.approval_notes if data else None
    )
    return DiscountRequestResponse.model_validate(request)


@router.post(
    "/{request_id}/reject",
    response_model=DiscountRequestResponse,
    summary="Rechazar una solicitud",
    description="Rechazar una solicitud pendiente con un motivo obligatorio (solo administradores)",
)
async def reject_discount_request(
    request_id: int,
    current_user: AdminUser,
    db: DbSession,
    data: DiscountRejection | None = Body(None),
) -> DiscountRequestResponse:
    service = DiscountRequestService(db)
    request = await service.get_or_404(request_id)
    request = await service.reject(
        request, current_user, data.rejection_reason if data else None
    )
    return DiscountRequestResponse.model_validate(request)
