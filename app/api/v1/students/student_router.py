from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_actor
from app.auth.schemas import CurrentActor
from app.core.enums import StudentStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    StudentCreate,
    StudentDetailResponse,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


def _paging_value(raw: Optional[str], default: int, minimum: int) -> int:
    """Header value as int; missing, unparsable or below minimum falls back to default."""
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value >= minimum else default


@router.get("", response_model=StudentListResponse)
async def list_students(
    offset: Optional[str] = Header(None, alias="x-paging-offset"),
    limit: Optional[str] = Header(None, alias="x-paging-limit"),
    search: Optional[str] = Header(None, alias="x-paging-search"),
    class_id: Optional[UUID] = Query(None, alias="classId"),
    status_filter: Optional[StudentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> StudentListResponse:
    """List non-deleted students. Paging comes from x-paging-* headers."""
    return await service.list_students(
        db,
        offset=_paging_value(offset, 0, 0),
        limit=_paging_value(limit, service.DEFAULT_PAGE_LIMIT, 1),
        search=search,
        class_id=class_id,
        status_filter=status_filter.value if status_filter else None,
    )


@router.get("/{student_id}", response_model=StudentDetailResponse)
async def get_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> StudentDetailResponse:
    student = await service.get_student(db, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    actor: CurrentActor = Depends(get_current_actor),
) -> StudentResponse:
    """Enroll a student. 400 when class_id does not resolve to a live class."""
    try:
        return await service.enroll_student(db, payload, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    actor: CurrentActor = Depends(get_current_actor),
) -> StudentResponse:
    try:
        return await service.update_student(db, student_id, payload, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{student_id}")
async def delete_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    actor: CurrentActor = Depends(get_current_actor),
) -> dict:
    """Soft delete (withdraw) a student and release its class seat."""
    try:
        await service.withdraw_student(db, student_id, actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"message": "Student deleted successfully"}
