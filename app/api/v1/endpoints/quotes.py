"""
Quote (Cotización) endpoints.
Creation, line items, status commands, PDF export and conversion to sale.
"""

from datetime import date

from fastapi import APIRouter, Query, Response, status

from app.api.deps import AdminUser, DbSession, CurrentUser
from app.core.config import settings
from app.schemas.base import page_count
from app.schemas.quote import (
    ExpireOverdueResponse,
    PdfTokenResponse,
    QuoteConversionResponse,
    QuoteCreate,
    QuoteItemCreate,
    QuoteListResponse,
    QuoteResponse,
)
from app.schemas.sale import SaleResponse
from app.models.quote import Quote, QuoteStatus
from app.services.pdf import PDFService
from app.services.quote import QuoteService


router = APIRouter()


def pdf_url(quote: Quote) -> str:
    """Public download URL for a quote PDF, authorized by its token."""
    return f"{settings.API_V1_PREFIX}/guest/quotes/{quote.id}/pdf?token={quote.pdf_token}"


def pdf_response(quote: Quote, content: bytes) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{PDFService.filename(quote)}"',
        },
    )


@router.post(
    "",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear una cotización",
    description="Crear una cotización pendiente con sus líneas",
)
async def create_quote(
    data: QuoteCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteResponse:
    """Crear una nueva cotización."""
    service = QuoteService(db)
    quote = await service.create(current_user, data)
    return QuoteResponse.model_validate(quote)


@router.get(
    "",
    response_model=QuoteListResponse,
    summary="Listar cotizaciones",
    description="Lista paginada de cotizaciones; el estado filtra por estado efectivo",
)
async def list_quotes(
    current_user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1, description="Número de página"),
    per_page: int = Query(
        settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE, description="Elementos por página"
    ),
    status: QuoteStatus | None = Query(None, description="Filtrar por estado"),
    patient_id: int | None = Query(None, description="Filtrar por paciente"),
    date_from: date | None = Query(None, description="Creadas desde"),
    date_to: date | None = Query(None, description="Creadas hasta"),
    search: str | None = Query(None, description="Buscar por número o paciente"),
) -> QuoteListResponse:
    """Listar cotizaciones con paginación y filtros."""
    service = QuoteService(db)

    quotes, total = await service.list(
        skip=(page - 1) * per_page,
        limit=per_page,
        status=status,
        patient_id=patient_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )

    return QuoteListResponse(
        items=[QuoteResponse.model_validate(q) for q in quotes],
        total=total,
        page=page,
        per_page=per_page,
        pages=page_count(total, per_page),
    )


@router.post(
    "/expire-overdue",
    response_model=ExpireOverdueResponse,
    summary="Marcar cotizaciones vencidas",
    description="Persistir el estado 'expired' de las cotizaciones vencidas (solo administradores)",
)
async def expire_overdue_quotes(
    current_user: AdminUser,
    db: DbSession,
) -> ExpireOverdueResponse:
    service = QuoteService(db)
    return ExpireOverdueResponse(expired=await service.expire_overdue())


@router.get(
    "/{quote_id}",
    response_model=QuoteResponse,
    summary="Detalle de una cotización",
)
async def get_quote(
    quote_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteResponse:
    """Obtener una cotización por ID."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/items",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Agregar una línea",
)
async def add_quote_item(
    quote_id: int,
    data: QuoteItemCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteResponse:
    """Agregar una línea a una cotización pendiente."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    quote = await service.add_item(quote, data)
    return QuoteResponse.model_validate(quote)


@router.delete(
    "/{quote_id}/items/{item_id}",
    response_model=QuoteResponse,
    summary="Eliminar una línea",
)
async def remove_quote_item(
    quote_id: int,
    item_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteResponse:
    """Eliminar una línea de una cotización pendiente."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    quote = await service.remove_item(quote, item_id)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/approve",
    response_model=QuoteResponse,
    summary="Aprobar la cotización",
)
async def approve_quote(
    quote_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteResponse:
    """Aprobar una cotización pendiente."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    quote = await service.approve(quote)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/reject",
    response_model=QuoteResponse,
    summary="Rechazar la cotización",
)
async def reject_quote(
    quote_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteResponse:
    """Rechazar una cotización pendiente."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    quote = await service.reject(quote)
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/convert",
    response_model=QuoteConversionResponse,
    summary="Convertir en venta",
    description="Convertir una cotización pendiente o aprobada y vigente en una venta",
)
async def convert_to_sale(
    quote_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> QuoteConversionResponse:
    """Convertir la cotización en venta."""
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    quote, sale = await service.convert_to_sale(quote, current_user)
    return QuoteConversionResponse(
        quote=QuoteResponse.model_validate(quote),
        sale=SaleResponse.model_validate(sale),
    )


@router.post(
    "/{quote_id}/pdf-token",
    response_model=PdfTokenResponse,
    summary="Generar enlace de descarga",
    description="Emitir un nuevo token de descarga del PDF",
)
async def issue_pdf_token(
    quote_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> PdfTokenResponse:
    service = QuoteService(db)
    quote = await service.get_or_404(quote_id)
    quote = await service.issue_pdf_token(quote)
    return PdfTokenResponse(
        quote_id=quote.id,
        quote_number=quote.quote_number,
        pdf_token=quote.pdf_token,
        pdf_url=pdf_url(quote),
    )


@router.get(
    "/{quote_id}/pdf",
    summary="Descargar el PDF",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_quote_pdf(
    quote_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> Response:
    """Generar y descargar el PDF de la cotización."""
    quote = await QuoteService(db).get_or_404(quote_id)
    content = await PDFService().generate_quote_pdf(quote)
    return pdf_response(quote, content)
