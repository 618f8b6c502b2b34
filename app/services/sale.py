"""
Sale service.
Creates sales from quotes; this is the sale-creation collaborator used by
quote conversion.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.quote import Quote
from app.models.sale import Sale, SaleItem, SaleStatus, PaymentStatus
from app.services.numbering import generate_document_number


logger = logging.getLogger(__name__)


class SaleService:
    """Service for sale operations."""

    def __init__(self, db: AsyncSession, created_by: int | None = None):
        self.db = db
        self.created_by = created_by

    async def create(self, quote: Quote) -> Sale:
        """
        Create a sale from a quote, copying its totals and items.

        Runs inside a savepoint: if anything fails, nothing of the sale is
        left in the session.
        """
        async with self.db.begin_nested():
            sale_number = await generate_document_number(self.db, Sale.sale_number, "SALE")

            sale = Sale(
                sale_number=sale_number,
                quote_id=quote.id,
                patient_id=quote.patient_id,
                created_by=self.created_by or quote.created_by,
                subtotal=quote.subtotal,
                tax=quote.tax,
                discount=quote.discount,
                total=quote.total,
                amount_paid=0,
                balance=quote.total,
                status=SaleStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                notes=f"Convertido desde cotización: {quote.quote_number}. {quote.notes or ''}".strip(),
            )
            self.db.add(sale)
            await self.db.flush()

            for quote_item in quote.items:
                self.db.add(SaleItem(
                    sale_id=sale.id,
                    lens_id=quote_item.lens_id,
                    quantity=quote_item.quantity,
                    price=quote_item.price,
                    discount=quote_item.discount,
                    notes=quote_item.notes,
                ))
            await self.db.flush()

        logger.info("Sale %s created from quote %s", sale.sale_number, quote.quote_number)
        return await self.get_by_id(sale.id)

    async def get_by_id(self, sale_id: int) -> Sale | None:
        """Get sale by ID with its items loaded."""
        result = await self.db.execute(
            select(Sale)
            .where(Sale.id == sale_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
