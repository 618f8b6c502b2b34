"""
Lens service.
Handles the lens catalogue.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from fastapi import HTTPException, status

from app.models.lens import Lens
from app.schemas.lens import LensCreate


class LensService:
    """Service for lens catalogue operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: LensCreate) -> Lens:
        """Add a lens to the catalogue. Identifiers are unique."""
        result = await self.db.execute(
            select(Lens).where(Lens.identifier == data.identifier)
        )
        if result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ya existe un lente con este identificador",
            )

        lens = Lens(**data.model_dump())

        self.db.add(lens)
        await self.db.flush()
        await self.db.refresh(lens)

        return lens

    async def get_or_404(self, lens_id: int) -> Lens:
        lens = await self.db.get(Lens, lens_id)
        if not lens:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lente no encontrado",
            )
        return lens

    async def list(
        self,
        skip: int = 0,
        limit: int = 15,
        search: str | None = None,
        brand: str | None = None,
    ) -> tuple[list[Lens], int]:
        """List lenses with pagination, search and brand filter."""
        conditions = []
        if search:
            search_filter = f"%{search}%"
            conditions.append(or_(
                Lens.identifier.ilike(search_filter),
                Lens.description.ilike(search_filter),
            ))
        if brand:
            conditions.append(Lens.brand == brand)

        total_result = await self.db.execute(
            select(func.count(Lens.id)).where(*conditions)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Lens)
            .where(*conditions)
            .order_by(Lens.identifier)
            .offset(skip)
            .limit(limit)
        )
        lenses = list(result.scalars().all())

        return lenses, total
