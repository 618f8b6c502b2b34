"""
Patient service.
Handles patient registration and lookup.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from fastapi import HTTPException, status

from app.models.patient import Patient
from app.schemas.patient import PatientCreate


class PatientService:
    """Service for patient operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: PatientCreate) -> Patient:
        """
        Register a new patient.

        Raises:
            HTTPException: If the identification is already registered
        """
        result = await self.db.execute(
            select(Patient).where(Patient.identification == data.identification)
        )
        if result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ya existe un paciente con esta identificación",
            )

        patient = Patient(**data.model_dump())

        self.db.add(patient)
        await self.db.flush()
        await self.db.refresh(patient)

        return patient

    async def get_or_404(self, patient_id: int) -> Patient:
        patient = await self.db.get(Patient, patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Paciente no encontrado",
            )
        return patient

    async def list(
        self,
        skip: int = 0,
        limit: int = 15,
        search: str | None = None,
    ) -> tuple[list[Patient], int]:
        """
        List patients with pagination and search.

        Args:
            skip: Number of records to skip
            limit: Maximum records to return
            search: Search term for name or identification

        Returns:
            Tuple of (patients list, total count)
        """
        query = select(Patient)
        count_query = select(func.count(Patient.id))

        if search:
            search_filter = f"%{search}%"
            condition = or_(
                Patient.first_name.ilike(search_filter),
                Patient.last_name.ilike(search_filter),
                Patient.identification.ilike(search_filter),
            )
            query = query.where(condition)
            count_query = count_query.where(condition)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Patient.last_name, Patient.first_name).offset(skip).limit(limit)
        result = await self.db.execute(query)
        patients = list(result.scalars().all())

        return patients, total
