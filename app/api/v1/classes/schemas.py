from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.enums import ClassLevel

YEAR_PATTERN = r"^\d{4}/\d{4}$"


def _normalize_code(value: Optional[str]) -> Optional[str]:
    return value.strip().upper() if value is not None else None


class ClassCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=20, description="e.g. X-IPA-1; stored uppercase")
    name: str = Field(..., min_length=3, max_length=100)
    level: ClassLevel
    major: Optional[str] = Field(None, max_length=50)
    wali_kelas_id: Optional[UUID] = None
    capacity: int = Field(36, ge=1, le=50)
    academic_year: str = Field(..., pattern=YEAR_PATTERN)
    room_number: Optional[str] = Field(None, max_length=20)
    floor: Optional[str] = Field(None, max_length=10)
    building: Optional[str] = Field(None, max_length=10)

    normalize_code = field_validator("code")(_normalize_code)


class ClassUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=3, max_length=20)
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    level: Optional[ClassLevel] = None
    major: Optional[str] = Field(None, max_length=50)
    wali_kelas_id: Optional[UUID] = None
    capacity: Optional[int] = Field(None, ge=1, le=50)
    academic_year: Optional[str] = Field(None, pattern=YEAR_PATTERN)
    room_number: Optional[str] = Field(None, max_length=20)
    floor: Optional[str] = Field(None, max_length=10)
    building: Optional[str] = Field(None, max_length=10)

    normalize_code = field_validator("code")(_normalize_code)


class ClassResponse(BaseModel):
    id: UUID
    code: str
    name: str
    level: str
    major: Optional[str] = None
    wali_kelas_id: Optional[UUID] = None
    capacity: int
    current_total: int
    academic_year: str
    room_number: Optional[str] = None
    floor: Optional[str] = None
    building: Optional[str] = None
    is_active: bool
    deleted_at: Optional[datetime] = None
    created_by: str
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClassStudentItem(BaseModel):
    """Roster entry shown on class detail."""

    id: UUID
    nisn: str
    name: str
    total_points: int

    class Config:
        from_attributes = True


class ClassDetailResponse(ClassResponse):
    students: List[ClassStudentItem] = Field(default_factory=list)
