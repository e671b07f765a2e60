import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentActor
from app.core.exceptions import ConflictError, NotFoundError, ServiceError
from app.core.models import SchoolClass, Student

from .schemas import ClassCreate, ClassDetailResponse, ClassResponse, ClassStudentItem, ClassUpdate

logger = logging.getLogger(__name__)

DUPLICATE_CODE_MESSAGE = "Class code already exists for this academic year"


def _class_to_response(c: SchoolClass) -> ClassResponse:
    return ClassResponse.model_validate(c)


async def _code_taken(
    db: AsyncSession,
    code: str,
    academic_year: str,
    exclude_id: Optional[UUID] = None,
) -> bool:
    stmt = select(SchoolClass.id).where(
        SchoolClass.code == code,
        SchoolClass.academic_year == academic_year,
    )
    if exclude_id is not None:
        stmt = stmt.where(SchoolClass.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def get_live_class(db: AsyncSession, class_id: UUID) -> Optional[SchoolClass]:
    """Class by id, skipping soft-deleted rows."""
    result = await db.execute(
        select(SchoolClass)
        .where(SchoolClass.id == class_id, SchoolClass.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_class(
    db: AsyncSession,
    payload: ClassCreate,
    actor: CurrentActor,
) -> ClassResponse:
    """Create class. (code, academic_year) must be unique; the same code may repeat across years."""
    if await _code_taken(db, payload.code, payload.academic_year):
        raise ConflictError(DUPLICATE_CODE_MESSAGE)
    data = payload.model_dump()
    data["level"] = payload.level.value
    obj = SchoolClass(**data, current_total=0, is_active=True, created_by=actor.id)
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(DUPLICATE_CODE_MESSAGE)
    await db.refresh(obj)
    logger.info("Class %s (%s) created by %s", obj.code, obj.academic_year, actor.id)
    return _class_to_response(obj)


async def list_classes(
    db: AsyncSession,
    academic_year: Optional[str] = None,
    level: Optional[str] = None,
) -> List[ClassResponse]:
    stmt = select(SchoolClass).where(SchoolClass.deleted_at.is_(None))
    if academic_year:
        stmt = stmt.where(SchoolClass.academic_year == academic_year)
    if level:
        stmt = stmt.where(SchoolClass.level == level)
    stmt = stmt.order_by(SchoolClass.code).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return [_class_to_response(c) for c in result.scalars().all()]


async def get_class(db: AsyncSession, class_id: UUID) -> Optional[ClassDetailResponse]:
    """Class by id (soft-deleted included, for audit) with its live roster."""
    result = await db.execute(
        select(SchoolClass).where(SchoolClass.id == class_id).execution_options(populate_existing=True)
    )
    obj = result.scalar_one_or_none()
    if not obj:
        return None
    students = await db.execute(
        select(Student.id, Student.nisn, Student.name, Student.total_points)
        .where(Student.class_id == class_id, Student.deleted_at.is_(None))
        .order_by(Student.name)
    )
    detail = ClassDetailResponse.model_validate(obj)
    detail.students = [ClassStudentItem.model_validate(row) for row in students.all()]
    return detail


async def update_class(
    db: AsyncSession,
    class_id: UUID,
    payload: ClassUpdate,
    actor: CurrentActor,
) -> ClassResponse:
    obj = await get_live_class(db, class_id)
    if not obj:
        raise NotFoundError("Class not found")

    changes = payload.model_dump(exclude_unset=True)
    new_code = changes.get("code") or obj.code
    new_year = changes.get("academic_year") or obj.academic_year
    if (new_code, new_year) != (obj.code, obj.academic_year):
        if await _code_taken(db, new_code, new_year, exclude_id=class_id):
            raise ConflictError(DUPLICATE_CODE_MESSAGE)
    if changes.get("capacity") is not None and changes["capacity"] < obj.current_total:
        raise ServiceError(
            f"Capacity {changes['capacity']} is below the {obj.current_total} students already enrolled",
            status.HTTP_400_BAD_REQUEST,
        )

    for field, value in changes.items():
        if value is None and field in ("code", "name", "level", "capacity", "academic_year"):
            continue
        if field == "level":
            value = value.value
        setattr(obj, field, value)
    obj.updated_by = actor.id
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(DUPLICATE_CODE_MESSAGE)
    await db.refresh(obj)
    return _class_to_response(obj)


async def delete_class(
    db: AsyncSession,
    class_id: UUID,
    actor: CurrentActor,
) -> None:
    """Soft delete. Refused while non-deleted students still reference the class."""
    obj = await get_live_class(db, class_id)
    if not obj:
        raise NotFoundError("Class not found")
    enrolled = await db.execute(
        select(func.count(Student.id)).where(Student.class_id == class_id, Student.deleted_at.is_(None))
    )
    if enrolled.scalar_one() > 0:
        raise ServiceError("Cannot delete class: it still has enrolled students", status.HTTP_400_BAD_REQUEST)
    obj.deleted_at = datetime.utcnow()
    obj.is_active = False
    obj.updated_by = actor.id
    await db.commit()
    logger.info("Class %s soft-deleted by %s", class_id, actor.id)
