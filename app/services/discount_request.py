"""
Discount request service.
Handles discount request CRUD, approval workflow and active-discount lookup.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain import discount_lifecycle
from app.models.discount_request import DiscountRequest, DiscountStatus
from app.models.lens import Lens
from app.models.patient import Patient
from app.models.user import User
from app.schemas.discount_request import (
    DiscountRequestCreate,
    DiscountRequestUpdate,
)


logger = logging.getLogger(__name__)


class DiscountRequestService:
    """Service for discount request operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_lens_or_404(self, lens_id: int) -> Lens:
        lens = await self.db.get(Lens, lens_id)
        if not lens:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Lente {lens_id} no encontrado",
            )
        return lens

    async def _ensure_patient(self, patient_id: int | None) -> None:
        if patient_id is not None and not await self.db.get(Patient, patient_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Paciente {patient_id} no encontrado",
            )

    async def create(self, requester: User, data: DiscountRequestCreate) -> DiscountRequest:
        """
        Create a pending discount request.

        The original price is read from the lens and the discounted price is
        derived from it; neither is accepted from the caller.
        """
        discount_lifecycle.ensure_scope(data.patient_id, data.is_global)
        lens = await self._get_lens_or_404(data.lens_id)
        await self._ensure_patient(data.patient_id)

        request = DiscountRequest(
            user_id=requester.id,
            lens_id=lens.id,
            patient_id=data.patient_id,
            is_global=data.is_global,
            status=DiscountStatus.PENDING,
            discount_percentage=data.discount_percentage,
            original_price=lens.price,
            discounted_price=discount_lifecycle.discounted_price(
                lens.price, data.discount_percentage
            ),
            reason=data.reason,
            expiry_date=data.expiry_date,
        )

        self.db.add(request)
        await self.db.flush()

        logger.info(
            "Discount request %s created by user %s for lens %s",
            request.id, requester.id, lens.id,
        )
        return await self._reload(request.id)

    async def _reload(self, request_id: int) -> DiscountRequest:
        result = await self.db.execute(
            select(DiscountRequest)
            .where(DiscountRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def get_by_id(self, request_id: int) -> DiscountRequest | None:
        """Get discount request by ID with relationships loaded."""
        result = await self.db.execute(
            select(DiscountRequest).where(DiscountRequest.id == request_id)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, request_id: int) -> DiscountRequest:
        """Get discount request by ID or raise 404."""
        request = await self.get_by_id(request_id)
        if not request:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Solicitud de descuento no encontrada",
            )
        if not request.is_trusted:
            logger.warning("Discount request %s failed integrity check", request.id)
        return request

    async def get_active_discounts(
        self,
        lens_id: int,
        patient_id: int | None = None,
        today: date | None = None,
    ) -> list[DiscountRequest]:
        """
        Approved, unexpired discounts applicable to a lens.

        With a patient, patient-specific discounts take precedence over global
        ones; without one, only global discounts apply. Highest percentage
        first.
        """
        today = today or date.today()
        conditions = [
            DiscountRequest.lens_id == lens_id,
            DiscountRequest.status == DiscountStatus.APPROVED,
            or_(
                DiscountRequest.expiry_date.is_(None),
                DiscountRequest.expiry_date >= today,
            ),
        ]
        if patient_id:
            conditions.append(or_(
                DiscountRequest.patient_id == patient_id,
                DiscountRequest.is_global.is_(True),
            ))
        else:
            conditions.append(DiscountRequest.is_global.is_(True))

        result = await self.db.execute(
            select(DiscountRequest)
            .where(and_(*conditions))
            .order_by(DiscountRequest.discount_percentage.desc())
        )
        discounts = [d for d in result.scalars().all() if d.is_trusted]

        if patient_id:
            specific = [d for d in discounts if d.patient_id == patient_id]
            if specific:
                return specific

        return discounts

    async def get_best_discount(
        self,
        lens_id: int,
        patient_id: int | None = None,
    ) -> DiscountRequest | None:
        """The discount that prices a lens for a patient, if any."""
        discounts = await self.get_active_discounts(lens_id, patient_id)
        return discounts[0] if discounts else None

    async def list(
        self,
        skip: int = 0,
        limit: int = 15,
        status: DiscountStatus | None = None,
        lens_id: int | None = None,
        patient_id: int | None = None,
        is_global: bool | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
    ) -> tuple[list[DiscountRequest], int]:
        """List discount requests with pagination and filters, newest first."""
        conditions = []

        if status:
            conditions.append(DiscountRequest.status == status)
        if lens_id:
            conditions.append(DiscountRequest.lens_id == lens_id)
        if patient_id:
            conditions.append(DiscountRequest.patient_id == patient_id)
        if is_global is not None:
            conditions.append(DiscountRequest.is_global == is_global)
        if date_from:
            conditions.append(
                DiscountRequest.created_at >= datetime.combine(date_from, time.min, timezone.utc)
            )
        if date_to:
            conditions.append(
                DiscountRequest.created_at
                < datetime.combine(date_to + timedelta(days=1), time.min, timezone.utc)
            )
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                Lens.identifier.ilike(pattern),
                Patient.first_name.ilike(pattern),
                Patient.last_name.ilike(pattern),
                Patient.identification.ilike(pattern),
            ))

        query = (
            select(DiscountRequest)
            .join(Lens, DiscountRequest.lens_id == Lens.id)
            .outerjoin(Patient, DiscountRequest.patient_id == Patient.id)
            .where(*conditions)
        )
        count_query = (
            select(func.count(DiscountRequest.id))
            .join(Lens, DiscountRequest.lens_id == Lens.id)
            .outerjoin(Patient, DiscountRequest.patient_id == Patient.id)
            .where(*conditions)
        )

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = (
            query
            .order_by(DiscountRequest.created_at.desc(), DiscountRequest.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        requests = list(result.scalars().all())

        return requests, total

    def _ensure_can_edit(self, request: DiscountRequest, user: User) -> None:
        if not user.is_admin and request.user_id != user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tienes autorización para modificar esta solicitud",
            )

    def _ensure_approver(self, user: User) -> None:
        if not user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo un administrador puede procesar solicitudes de descuento",
            )

    async def update(
        self,
        request: DiscountRequest,
        user: User,
        data: DiscountRequestUpdate,
    ) -> DiscountRequest:
        """
        Update a pending request. Pricing is always recomputed from the
        current lens price and the resulting percentage.
        """
        self._ensure_can_edit(request, user)
        discount_lifecycle.ensure_pending(request, "modificar")

        update_data = data.model_dump(exclude_unset=True)

        patient_id = update_data.get("patient_id", request.patient_id)
        is_global = update_data.get("is_global", request.is_global)
        if is_global is None:
            is_global = request.is_global
        if is_global and "patient_id" not in update_data:
            patient_id = None
        discount_lifecycle.ensure_scope(patient_id, is_global)
        await self._ensure_patient(patient_id)

        lens = await self._get_lens_or_404(update_data.get("lens_id") or request.lens_id)
        percentage = update_data.get("discount_percentage") or request.discount_percentage

        request.lens_id = lens.id
        request.patient_id = patient_id
        request.is_global = is_global
        request.discount_percentage = percentage
        request.original_price = lens.price
        request.discounted_price = discount_lifecycle.discounted_price(lens.price, percentage)
        if "reason" in update_data:
            request.reason = update_data["reason"]
        if "expiry_date" in update_data:
            request.expiry_date = update_data["expiry_date"]

        await self.db.flush()
        return await self._reload(request.id)

    async def approve(
        self,
        request: DiscountRequest,
        approver: User,
        notes: str | None = None,
    ) -> DiscountRequest:
        """Approve a pending request."""
        self._ensure_approver(approver)
        discount_lifecycle.check_integrity(request)
        discount_lifecycle.approve(request, approver_id=approver.id, notes=notes)

        await self.db.flush()
        logger.info("Discount request %s approved by user %s", request.id, approver.id)
        return await self._reload(request.id)

    async def reject(
        self,
        request: DiscountRequest,
        approver: User,
        reason: str | None,
    ) -> DiscountRequest:
        """Reject a pending request with a mandatory reason."""
        self._ensure_approver(approver)
        discount_lifecycle.check_integrity(request)
        discount_lifecycle.reject(request, reason)

        await self.db.flush()
        logger.info("Discount request %s rejected by user %s", request.id, approver.id)
        return await self._reload(request.id)

    async def delete(self, request: DiscountRequest, user: User) -> None:
        """
        Delete a request. Requesters may delete their own pending requests;
        administrators may delete any request.
        """
        self._ensure_can_edit(request, user)
        if not user.is_admin and not request.is_pending:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Solo las solicitudes pendientes pueden ser eliminadas por el solicitante",
            )

        await self.db.delete(request)
        await self.db.flush()
        logger.info("Discount request %s deleted by user %s", request.id, user.id)
