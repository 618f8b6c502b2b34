"""
Guest endpoints.
Token-authorized access for people without an account.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, Response, status

from app.api.deps import DbSession
from app.api.v1.endpoints.quotes import pdf_response
from app.core.exceptions import ExportUnavailable
from app.domain import quote_lifecycle
from app.services.pdf import PDFService
from app.services.quote import QuoteService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/quotes/{quote_id}/pdf",
    summary="Descargar el PDF con token",
    description="Descarga del PDF autorizada por el último token emitido para la cotización",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_quote_pdf(
    quote_id: int,
    db: DbSession,
    token: str | None = Query(None, description="Token de descarga"),
) -> Response:
    if not token:
        raise ExportUnavailable()

    token_data = PDFService.validate_token(token, quote_id)
    if token_data is None:
        logger.warning("Invalid PDF token for quote %s", quote_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de descarga inválido o expirado",
        )

    quote = await QuoteService(db).get_or_404(quote_id)
    if quote_lifecycle.ensure_exportable(quote) != token:
        logger.warning("Superseded PDF token used for quote %s", quote.quote_number)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de descarga inválido o expirado",
        )

    content = await PDFService().generate_quote_pdf(quote)
    return pdf_response(quote, content)
