"""
Points and ranking sync.

positive_points = sum of achievement point magnitudes, negative_points = sum of violation
point magnitudes, total_points = positive - negative. current_rank is
1 + number of active, non-deleted classmates with strictly greater total_points, so equal
totals share a rank. A full sweep re-ranks every swept student after all totals are written.
"""
import asyncio
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students.schemas import StudentResponse
from app.auth.schemas import CurrentActor
from app.core.exceptions import ConflictError
from app.core.models import Student
from app.core.peers import PeerClient

from .schemas import SyncSummary

logger = logging.getLogger(__name__)

# One sweep at a time per process; rank writes are read-then-write.
_sweep_lock = asyncio.Lock()


async def _rank_in_class(db: AsyncSession, student: Student) -> int:
    result = await db.execute(
        select(func.count(Student.id)).where(
            Student.class_id == student.class_id,
            Student.total_points > student.total_points,
            Student.is_active.is_(True),
            Student.deleted_at.is_(None),
        )
    )
    return result.scalar_one() + 1


async def _rerank(db: AsyncSession, student_ids: List[UUID]) -> None:
    """Recompute current_rank for already-synced students once every total is final."""
    for student_id in student_ids:
        result = await db.execute(
            select(Student).where(Student.id == student_id).execution_options(populate_existing=True)
        )
        student = result.unique().scalar_one_or_none()
        if student is not None:
            student.current_rank = await _rank_in_class(db, student)
    await db.commit()


async def sync_student_points(
    db: AsyncSession,
    peers: PeerClient,
    student_id: UUID,
    actor: Optional[CurrentActor] = None,
) -> Optional[StudentResponse]:
    """Recompute one student's totals and rank. Returns None when the student does not exist.

    Peer failures propagate as UpstreamUnavailableError before anything is written.
    """
    actor = actor or CurrentActor()
    result = await db.execute(
        select(Student).where(Student.id == student_id).execution_options(populate_existing=True)
    )
    student = result.unique().scalar_one_or_none()
    if not student:
        return None

    negative, positive = await asyncio.gather(
        peers.get_violation_points(student.id),
        peers.get_achievement_points(student.id),
    )

    try:
        student.positive_points = positive
        student.negative_points = negative
        student.total_points = positive - negative
        student.updated_by = actor.id
        await db.flush()
        student.current_rank = await _rank_in_class(db, student)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(student)
    logger.debug(
        "Synced student %s: +%s -%s = %s, rank %s",
        student.id,
        positive,
        negative,
        student.total_points,
        student.current_rank,
    )
    return StudentResponse.model_validate(student)


async def sync_all_students(
    db: AsyncSession,
    peers: PeerClient,
    actor: Optional[CurrentActor] = None,
) -> SyncSummary:
    """Sync every active, non-deleted student in turn. ConflictError if a sweep is already running."""
    if _sweep_lock.locked():
        raise ConflictError("Points sync is already running")
    async with _sweep_lock:
        result = await db.execute(
            select(Student.id)
            .where(Student.is_active.is_(True), Student.deleted_at.is_(None))
            .order_by(Student.class_id, Student.name)
        )
        student_ids = [row[0] for row in result.all()]
        logger.info("Points sync started for %d students", len(student_ids))

        failed = []
        for student_id in student_ids:
            try:
                await sync_student_points(db, peers, student_id, actor=actor)
            except Exception:
                logger.exception("Failed to sync points for student %s", student_id)
                await db.rollback()
                failed.append(student_id)

        # Ranks written during the loop may predate later classmates' totals.
        await _rerank(db, student_ids)

        summary = SyncSummary(
            processed=len(student_ids),
            succeeded=len(student_ids) - len(failed),
            failed=failed,
        )
        logger.info(
            "Points sync finished: %d processed, %d failed",
            summary.processed,
            len(summary.failed),
        )
        return summary
