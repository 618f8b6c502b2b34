"""
Patient endpoints.
"""

from fastapi import APIRouter, Query, status

from app.api.deps import DbSession, CurrentUser
from app.core.config import settings
from app.schemas.base import page_count
from app.schemas.patient import (
    PatientCreate,
    PatientResponse,
    PatientListResponse,
)
from app.services.patient import PatientService


router = APIRouter()


@router.post(
    "",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar un paciente",
)
async def create_patient(
    data: PatientCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> PatientResponse:
    """Registrar un nuevo paciente."""
    service = PatientService(db)
    patient = await service.create(data)
    return PatientResponse.model_validate(patient)


@router.get(
    "",
    response_model=PatientListResponse,
    summary="Listar pacientes",
    description="Lista paginada de pacientes",
)
async def list_patients(
    current_user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1, description="Número de página"),
    per_page: int = Query(
        settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE, description="Elementos por página"
    ),
    search: str | None = Query(None, description="Buscar por nombre o identificación"),
) -> PatientListResponse:
    service = PatientService(db)

    patients, total = await service.list(
        skip=(page - 1) * per_page,
        limit=per_page,
        search=search,
    )

    return PatientListResponse(
        items=[PatientResponse.model_validate(p) for p in patients],
        total=total,
        page=page,
        per_page=per_page,
        pages=page_count(total, per_page),
    )


@router.get(
    "/{patient_id}",
    response_model=PatientResponse,
    summary="Detalle de un paciente",
)
async def get_patient(
    patient_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> PatientResponse:
    service = PatientService(db)
    patient = await service.get_or_404(patient_id)
    return PatientResponse.model_validate(patient)
