import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students.schemas import StudentResponse
from app.api.v1.students.service import get_live_student
from app.core.exceptions import NotFoundError
from app.core.peers import LATEST_LIMIT, PeerClient

from .schemas import UNKNOWN_CLASS_STATUS, ConsolidatedProfileResponse, MonitoringSection, PointsSection

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _settle(section: str, student_id: UUID, call: Awaitable[T]) -> Optional[T]:
    """Await one peer call; any failure is logged and becomes None (section left at defaults)."""
    try:
        return await call
    except Exception as e:
        logger.warning("Consolidated profile %s: %s unavailable: %s", student_id, section, e)
        return None


async def get_consolidated_profile(
    db: AsyncSession,
    peers: PeerClient,
    student_id: UUID,
) -> ConsolidatedProfileResponse:
    """Merge the student record with schedule status and latest violations/achievements.

    The three peer calls run concurrently and fail independently; peer trouble never fails
    the whole request. NotFoundError only when the student is absent or withdrawn.
    """
    student = await get_live_student(db, student_id)
    if not student:
        raise NotFoundError("Student not found")

    result = ConsolidatedProfileResponse(
        profile=StudentResponse.model_validate(student),
        monitoring=MonitoringSection(),
        violations=PointsSection(total_points=student.negative_points),
        achievements=PointsSection(total_points=student.positive_points),
    )

    schedule, violations, achievements = await asyncio.gather(
        _settle("schedule", student.id, peers.get_schedule_status(student.class_id)),
        _settle("violations", student.id, peers.get_latest_violations(student.id)),
        _settle("achievements", student.id, peers.get_latest_achievements(student.id)),
    )

    if schedule is not None:
        result.monitoring.current_class_status = _as_status(schedule.get("status"))
        result.monitoring.active_lesson = schedule.get("lesson")
    if violations is not None:
        result.violations.latest = violations[:LATEST_LIMIT]
    if achievements is not None:
        result.achievements.latest = achievements[:LATEST_LIMIT]
    return result


def _as_status(value: Any) -> str:
    return str(value) if value else UNKNOWN_CLASS_STATUS
