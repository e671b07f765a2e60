"""
Student roster operations.

Invariant kept here: classes.current_total equals the number of non-deleted students
whose class_id points at the class. Every write that changes that number moves the
counter in the same transaction as the student row, and rolls both back on failure.
"""
import logging
import math
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.classes.service import get_live_class
from app.auth.schemas import CurrentActor
from app.core.exceptions import ConflictError, InvalidReferenceError, NotFoundError
from app.core.models import PointsHistory, SchoolClass, Student

from .schemas import (
    Pagination,
    PointsHistoryItem,
    StudentCreate,
    StudentDetailResponse,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 25
POINTS_HISTORY_LIMIT = 10


def _to_response(student: Student) -> StudentResponse:
    return StudentResponse.model_validate(student)


def _shift_class_total(class_id: UUID, delta: int):
    """UPDATE classes SET current_total = current_total + delta. Runs in the caller's transaction."""
    return (
        update(SchoolClass)
        .where(SchoolClass.id == class_id)
        .values(current_total=SchoolClass.current_total + delta)
        .execution_options(synchronize_session=False)
    )


async def _nisn_taken(db: AsyncSession, nisn: str) -> bool:
    result = await db.execute(select(Student.id).where(Student.nisn == nisn).limit(1))
    return result.scalar_one_or_none() is not None


async def get_live_student(db: AsyncSession, student_id: UUID) -> Optional[Student]:
    result = await db.execute(
        select(Student)
        .where(Student.id == student_id, Student.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one_or_none()


async def list_students(
    db: AsyncSession,
    offset: int = 0,
    limit: int = DEFAULT_PAGE_LIMIT,
    search: Optional[str] = None,
    class_id: Optional[UUID] = None,
    status_filter: Optional[str] = None,
) -> StudentListResponse:
    """Page through non-deleted students ordered by name. search matches name/nisn/nis, case-insensitive."""
    conditions = [Student.deleted_at.is_(None)]
    if class_id:
        conditions.append(Student.class_id == class_id)
    if status_filter:
        conditions.append(Student.status == status_filter)
    if search and search.strip():
        term = search.strip()
        conditions.append(
            or_(
                Student.name.icontains(term, autoescape=True),
                Student.nisn.icontains(term, autoescape=True),
                Student.nis.icontains(term, autoescape=True),
            )
        )

    total_result = await db.execute(select(func.count(Student.id)).where(*conditions))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Student)
        .where(*conditions)
        .order_by(Student.name)
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    items = [_to_response(s) for s in result.unique().scalars().all()]
    return StudentListResponse(
        items=items,
        pagination=Pagination(
            offset=offset,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        ),
    )


async def get_student(db: AsyncSession, student_id: UUID) -> Optional[StudentDetailResponse]:
    """Student by id, soft-deleted included, with the latest points history entries."""
    result = await db.execute(
        select(Student).where(Student.id == student_id).execution_options(populate_existing=True)
    )
    student = result.unique().scalar_one_or_none()
    if not student:
        return None
    history = await db.execute(
        select(PointsHistory)
        .where(PointsHistory.student_id == student_id)
        .order_by(PointsHistory.recorded_at.desc())
        .limit(POINTS_HISTORY_LIMIT)
    )
    detail = StudentDetailResponse.model_validate(student)
    detail.points_history = [PointsHistoryItem.model_validate(h) for h in history.scalars().all()]
    return detail


async def enroll_student(
    db: AsyncSession,
    payload: StudentCreate,
    actor: CurrentActor,
) -> StudentResponse:
    """Create the student with a snapshot of its class and bump the class counter, atomically."""
    school_class = await get_live_class(db, payload.class_id)
    if not school_class:
        raise InvalidReferenceError("Invalid classId")
    if await _nisn_taken(db, payload.nisn):
        raise ConflictError(f"Student with NISN '{payload.nisn}' already exists")

    data = payload.model_dump(mode="json", exclude={"class_id", "user_id", "parent_id", "wali_kelas_id"})
    data["birth_date"] = payload.birth_date
    data["entry_date"] = payload.entry_date
    student = Student(
        **data,
        user_id=payload.user_id,
        parent_id=payload.parent_id,
        wali_kelas_id=payload.wali_kelas_id,
        class_id=school_class.id,
        class_name=school_class.name,
        class_level=school_class.level,
        class_major=school_class.major,
        status="ACTIVE",
        is_active=True,
        created_by=actor.id,
    )
    student.school_class = school_class
    db.add(student)
    try:
        await db.flush()
        await db.execute(_shift_class_total(school_class.id, +1))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Student with NISN '{payload.nisn}' already exists")
    except Exception:
        await db.rollback()
        raise
    await db.refresh(school_class)
    await db.refresh(student)
    logger.info("Student %s enrolled in class %s by %s", student.id, school_class.code, actor.id)
    return _to_response(student)


async def update_student(
    db: AsyncSession,
    student_id: UUID,
    payload: StudentUpdate,
    actor: CurrentActor,
) -> StudentResponse:
    """Partial update.

    A class change moves both counters (old -1, new +1) in one transaction. The class
    name/level/major snapshot is left as captured at enrollment.
    """
    student = await get_live_student(db, student_id)
    if not student:
        raise NotFoundError("Student not found")

    changes = payload.model_dump(exclude_unset=True, mode="json")
    new_class_id = payload.class_id if "class_id" in changes else None
    changes.pop("class_id", None)

    old_class_id = student.class_id
    target_class: Optional[SchoolClass] = None
    if new_class_id is not None and new_class_id != old_class_id:
        target_class = await get_live_class(db, new_class_id)
        if not target_class:
            raise InvalidReferenceError("Invalid classId")

    for field, value in changes.items():
        if value is None and field in ("name", "status"):
            continue
        setattr(student, field, value)
    student.updated_by = actor.id

    try:
        if target_class is not None:
            student.class_id = target_class.id
            student.school_class = target_class
            await db.flush()
            await db.execute(_shift_class_total(old_class_id, -1))
            await db.execute(_shift_class_total(target_class.id, +1))
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(student)
    if target_class is not None:
        await db.refresh(target_class)
        logger.info("Student %s moved from class %s to %s by %s", student_id, old_class_id, target_class.id, actor.id)
    return _to_response(student)


async def withdraw_student(
    db: AsyncSession,
    student_id: UUID,
    actor: CurrentActor,
) -> None:
    """Soft delete the student and decrement its class counter in one transaction.

    Already-withdrawn students are NotFound, so the counter can never be decremented twice.
    """
    student = await get_live_student(db, student_id)
    if not student:
        raise NotFoundError("Student not found")
    try:
        student.deleted_at = datetime.utcnow()
        student.is_active = False
        student.updated_by = actor.id
        await db.flush()
        await db.execute(_shift_class_total(student.class_id, -1))
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Student %s withdrawn from class %s by %s", student_id, student.class_id, actor.id)
