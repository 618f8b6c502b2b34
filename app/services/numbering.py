"""
Document number generation.
Format: {PREFIX}-{YYYYMMDD}-{sequence}
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute


async def generate_document_number(
    db: AsyncSession,
    column: InstrumentedAttribute,
    prefix: str,
    today: date | None = None,
) -> str:
    """
    Generate the next document number for the day.

    The sequence restarts every day and is four digits wide.
    """
    day_prefix = f"{prefix}-{(today or date.today()).strftime('%Y%m%d')}-"

    result = await db.execute(
        select(column)
        .where(column.like(f"{day_prefix}%"))
        .order_by(column.desc())
        .limit(1)
    )
    last_number = result.scalar_one_or_none()

    sequence = 1
    if last_number:
        sequence = int(last_number[-4:]) + 1

    return f"{day_prefix}{str(sequence).zfill(4)}"
