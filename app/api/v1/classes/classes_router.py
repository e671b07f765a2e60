from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_actor
from app.auth.schemas import CurrentActor
from app.core.enums import ClassLevel
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ClassCreate, ClassDetailResponse, ClassResponse, ClassUpdate
from . import service

router = APIRouter(prefix="/api/v1/classes", tags=["classes"])


@router.post(
    "",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_class(
    payload: ClassCreate,
    db: AsyncSession = Depends(get_db),
    actor: CurrentActor = Depends(get_current_actor),
) -> ClassResponse:
    try:
        return await service.create_class(db, payload, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[ClassResponse])
async def list_classes(
    academic_year: Optional[str] = Query(None, alias="academicYear", description="e.g. 2024/2025"),
    level: Optional[ClassLevel] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[ClassResponse]:
    return await service.list_classes(
        db,
        academic_year=academic_year,
        level=level.value if level else None,
    )


@router.get("/{class_id}", response_model=ClassDetailResponse)
async def get_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ClassDetailResponse:
    obj = await service.get_class(db, class_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return obj


@router.put("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: UUID,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
    actor: CurrentActor = Depends(get_current_actor),
) -> ClassResponse:
    try:
        return await service.update_class(db, class_id, payload, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{class_id}")
async def delete_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: CurrentActor = Depends(get_current_actor),
) -> dict:
    """Soft delete. 400 while students are still enrolled."""
    try:
        await service.delete_class(db, class_id, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"message": "Class deleted successfully"}
