from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.api.v1.students.schemas import StudentResponse

UNKNOWN_CLASS_STATUS = "UNKNOWN"


class MonitoringSection(BaseModel):
    current_class_status: str = UNKNOWN_CLASS_STATUS
    active_lesson: Optional[Any] = None


class PointsSection(BaseModel):
    total_points: int = 0
    latest: List[Dict[str, Any]] = Field(default_factory=list)


class ConsolidatedProfileResponse(BaseModel):
    """Student profile plus best-effort data from schedule, violation and achievement services.

    A section a peer could not provide keeps its defaults.
    """

    profile: StudentResponse
    monitoring: MonitoringSection = Field(default_factory=MonitoringSection)
    violations: PointsSection = Field(default_factory=PointsSection)
    achievements: PointsSection = Field(default_factory=PointsSection)
