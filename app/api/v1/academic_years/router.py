from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import AcademicYearCreate, AcademicYearResponse
from . import service

router = APIRouter(prefix="/api/v1/academic-years", tags=["academic-years"])


@router.post(
    "",
    response_model=AcademicYearResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_academic_year(
    payload: AcademicYearCreate,
    db: AsyncSession = Depends(get_db),
) -> AcademicYearResponse:
    """Create academic year. Use is_active=true to make it the only active year."""
    try:
        return await service.create_academic_year(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[AcademicYearResponse])
async def list_academic_years(db: AsyncSession = Depends(get_db)) -> List[AcademicYearResponse]:
    """List academic years, newest first."""
    return await service.list_academic_years(db)


@router.get("/current", response_model=AcademicYearResponse)
async def get_current_academic_year(db: AsyncSession = Depends(get_db)) -> AcademicYearResponse:
    """Get the active academic year. 404 when no year is active."""
    try:
        return await service.get_current_academic_year(db)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{academic_year_id}", response_model=AcademicYearResponse)
async def get_academic_year(
    academic_year_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> AcademicYearResponse:
    ay = await service.get_academic_year(db, academic_year_id)
    if not ay:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found")
    return ay


@router.put("/{academic_year_id}/set-active", response_model=AcademicYearResponse)
async def set_active_academic_year(
    academic_year_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> AcademicYearResponse:
    """Set this academic year as active. All others become inactive."""
    try:
        return await service.set_active_academic_year(db, academic_year_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
