from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.core.models import AcademicYear

from .schemas import AcademicYearCreate, AcademicYearResponse


def _to_response(ay: AcademicYear) -> AcademicYearResponse:
    return AcademicYearResponse.model_validate(ay)


def _deactivate_all():
    return update(AcademicYear).values(is_active=False).execution_options(synchronize_session=False)


async def create_academic_year(
    db: AsyncSession,
    payload: AcademicYearCreate,
) -> AcademicYearResponse:
    """Create academic year. If is_active=true, deactivate all other years (same transaction)."""
    existing = await db.execute(select(AcademicYear.id).where(AcademicYear.year == payload.year))
    if existing.scalar_one_or_none():
        raise ConflictError(f"Academic year '{payload.year}' already exists")
    ay = AcademicYear(**payload.model_dump())
    try:
        if payload.is_active:
            await db.execute(_deactivate_all())
        db.add(ay)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Academic year '{payload.year}' already exists")
    await db.refresh(ay)
    return _to_response(ay)


async def list_academic_years(db: AsyncSession) -> List[AcademicYearResponse]:
    result = await db.execute(
        select(AcademicYear).order_by(AcademicYear.year.desc()).execution_options(populate_existing=True)
    )
    return [_to_response(ay) for ay in result.scalars().all()]


async def get_academic_year(db: AsyncSession, academic_year_id: UUID) -> Optional[AcademicYearResponse]:
    result = await db.execute(
        select(AcademicYear).where(AcademicYear.id == academic_year_id).execution_options(populate_existing=True)
    )
    ay = result.scalar_one_or_none()
    return _to_response(ay) if ay else None


async def get_current_academic_year(db: AsyncSession) -> AcademicYearResponse:
    """The single active academic year. NotFoundError when none is active."""
    result = await db.execute(
        select(AcademicYear).where(AcademicYear.is_active.is_(True)).execution_options(populate_existing=True)
    )
    ay = result.scalars().first()
    if not ay:
        raise NotFoundError("No active academic year found")
    return _to_response(ay)


async def set_active_academic_year(db: AsyncSession, academic_year_id: UUID) -> AcademicYearResponse:
    """Deactivate every year, then activate the target, in one transaction.

    Unknown id fails before anything is written, so the previously active year stays active.
    """
    result = await db.execute(select(AcademicYear).where(AcademicYear.id == academic_year_id))
    ay = result.scalar_one_or_none()
    if not ay:
        raise NotFoundError("Academic year not found")
    try:
        await db.execute(_deactivate_all())
        await db.execute(
            update(AcademicYear)
            .where(AcademicYear.id == academic_year_id)
            .values(is_active=True)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(ay)
    return _to_response(ay)
