"""
Quote service.
Handles quote creation, line items, status commands and conversion to sale.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domain import quote_lifecycle
from app.domain.totals import check_totals
from app.models.lens import Lens
from app.models.patient import Patient
from app.models.quote import Quote, QuoteItem, QuoteStatus
from app.models.sale import Sale
from app.models.user import User
from app.schemas.quote import QuoteCreate, QuoteItemCreate
from app.services.discount_request import DiscountRequestService
from app.services.numbering import generate_document_number
from app.services.pdf import PDFService
from app.services.sale import SaleService


logger = logging.getLogger(__name__)


def effective_status_clause(quote_status: QuoteStatus, today: date):
    """SQL condition matching quotes whose effective status is ``quote_status``."""
    expirable = list(quote_lifecycle.EXPIRABLE_STATUSES)

    if quote_status == QuoteStatus.EXPIRED:
        return or_(
            Quote.status == QuoteStatus.EXPIRED,
            and_(Quote.status.in_(expirable), Quote.expiration_date < today),
        )
    if quote_status in quote_lifecycle.EXPIRABLE_STATUSES:
        return and_(Quote.status == quote_status, Quote.expiration_date >= today)
    return Quote.status == quote_status


class QuoteService:
    """Service for quote operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.discounts = DiscountRequestService(db)

    async def create(self, user: User, data: QuoteCreate) -> Quote:
        """
        Create a new pending quote with items.

        Item prices are snapshotted at creation; totals are derived from them.
        """
        if data.patient_id is not None and not await self.db.get(Patient, data.patient_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Paciente no encontrado",
            )

        expiration_date = data.expiration_date or (
            date.today() + timedelta(days=settings.QUOTE_VALIDITY_DAYS)
        )
        if expiration_date < date.today():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La fecha de expiración debe ser hoy o una fecha futura",
            )

        items = [
            await self._build_item(item_data, data.patient_id)
            for item_data in data.items
        ]

        quote = Quote(
            quote_number=await generate_document_number(self.db, Quote.quote_number, "QUOTE"),
            patient_id=data.patient_id,
            created_by=user.id,
            status=QuoteStatus.PENDING,
            expiration_date=expiration_date,
            notes=data.notes,
        )
        quote.calculate_totals(items)

        self.db.add(quote)
        await self.db.flush()

        for item in items:
            item.quote_id = quote.id
            self.db.add(item)

        quote.pdf_token = PDFService.issue_token(quote)
        await self.db.flush()

        logger.info("Quote %s created by user %s", quote.quote_number, user.id)
        return await self._reload(quote.id)

    async def _build_item(self, data: QuoteItemCreate, patient_id: int | None) -> QuoteItem:
        """Build a quote item, pricing it from the best approved discount when no price is given."""
        lens = await self.db.get(Lens, data.lens_id)
        if not lens:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Lente {data.lens_id} no encontrado",
            )

        discount_request_id = None
        price = data.price
        if price is None:
            best = await self.discounts.get_best_discount(lens.id, patient_id)
            if best:
                price = best.discounted_price
                discount_request_id = best.id
            else:
                price = lens.price

        if Decimal(str(data.discount)) > Decimal(data.quantity) * Decimal(str(price)):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El descuento de la línea del lente {lens.identifier} supera su valor",
            )

        return QuoteItem(
            lens_id=lens.id,
            quantity=data.quantity,
            price=price,
            original_price=lens.price,
            discount=data.discount,
            discount_request_id=discount_request_id,
            notes=data.notes,
        )

    async def _reload(self, quote_id: int) -> Quote:
        """Fetch a quote again, refreshing every loaded relationship."""
        result = await self.db.execute(
            select(Quote)
            .where(Quote.id == quote_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def get_by_id(self, quote_id: int) -> Quote | None:
        """Get quote by ID with all relationships loaded."""
        result = await self.db.execute(
            select(Quote).where(Quote.id == quote_id)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, quote_id: int) -> Quote:
        """Get quote by ID or raise 404."""
        quote = await self.get_by_id(quote_id)
        if not quote:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cotización no encontrada",
            )
        return quote

    async def list(
        self,
        skip: int = 0,
        limit: int = 15,
        status: QuoteStatus | None = None,
        patient_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
        today: date | None = None,
    ) -> tuple[list[Quote], int]:
        """
        List quotes with pagination and filters, newest first.

        The status filter matches the effective status, so an overdue
        pending quote is listed under ``expired`` and not under ``pending``.
        """
        conditions = []

        if status:
            conditions.append(effective_status_clause(status, today or date.today()))
        if patient_id:
            conditions.append(Quote.patient_id == patient_id)
        if date_from:
            conditions.append(
                Quote.created_at >= datetime.combine(date_from, time.min, timezone.utc)
            )
        if date_to:
            conditions.append(
                Quote.created_at
                < datetime.combine(date_to + timedelta(days=1), time.min, timezone.utc)
            )
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                Quote.quote_number.ilike(pattern),
                Patient.first_name.ilike(pattern),
                Patient.last_name.ilike(pattern),
                Patient.identification.ilike(pattern),
            ))

        query = (
            select(Quote)
            .outerjoin(Patient, Quote.patient_id == Patient.id)
            .where(*conditions)
        )
        count_query = (
            select(func.count(Quote.id))
            .outerjoin(Patient, Quote.patient_id == Patient.id)
            .where(*conditions)
        )

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = (
            query
            .order_by(Quote.created_at.desc(), Quote.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        quotes = list(result.scalars().all())

        return quotes, total

    async def add_item(self, quote: Quote, data: QuoteItemCreate) -> Quote:
        """Add an item to a pending quote and reconcile totals."""
        quote_lifecycle.ensure_editable(quote)

        item = await self._build_item(data, quote.patient_id)
        item.quote_id = quote.id
        self.db.add(item)
        await self.db.flush()

        quote = await self._reload(quote.id)
        quote.calculate_totals()
        await self.db.flush()

        return await self._reload(quote.id)

    async def remove_item(self, quote: Quote, item_id: int) -> Quote:
        """Remove an item from a pending quote and reconcile totals."""
        quote_lifecycle.ensure_editable(quote)

        item = next((i for i in quote.items if i.id == item_id), None)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Línea de cotización no encontrada",
            )
        if len(quote.items) == 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Una cotización debe tener al menos una línea",
            )

        quote.items.remove(item)
        quote.calculate_totals()
        await self.db.flush()

        return await self._reload(quote.id)

    async def approve(self, quote: Quote) -> Quote:
        """pending -> approved."""
        check_totals(quote, settings.TAX_RATE)
        quote_lifecycle.approve(quote)
        await self.db.flush()
        logger.info("Quote %s approved", quote.quote_number)
        return await self._reload(quote.id)

    async def reject(self, quote: Quote) -> Quote:
        """pending -> rejected."""
        check_totals(quote, settings.TAX_RATE)
        quote_lifecycle.reject(quote)
        await self.db.flush()
        logger.info("Quote %s rejected", quote.quote_number)
        return await self._reload(quote.id)

    async def convert_to_sale(self, quote: Quote, user: User) -> tuple[Quote, Sale]:
        """
        Convert a pending or approved, unexpired quote into a sale.

        The quote only becomes ``converted`` once the sale exists.
        """
        check_totals(quote, settings.TAX_RATE)
        sale = await quote_lifecycle.convert_to_sale(quote, SaleService(self.db, user.id))
        await self.db.flush()

        logger.info("Quote %s converted to sale %s", quote.quote_number, sale.sale_number)
        return await self._reload(quote.id), sale

    async def issue_pdf_token(self, quote: Quote) -> Quote:
        """Issue a fresh PDF download token for a quote."""
        quote.pdf_token = PDFService.issue_token(quote)
        await self.db.flush()
        return quote

    async def expire_overdue(self, today: date | None = None) -> int:
        """
        Persist ``expired`` for pending/approved quotes past their
        expiration date. Returns the number of quotes updated.
        """
        today = today or date.today()
        result = await self.db.execute(
            update(Quote)
            .where(
                Quote.status.in_(list(quote_lifecycle.EXPIRABLE_STATUSES)),
                Quote.expiration_date < today,
            )
            .values(status=QuoteStatus.EXPIRED)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()

        logger.info("%s overdue quotes marked as expired", result.rowcount)
        return result.rowcount or 0
