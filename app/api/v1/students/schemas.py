from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.enums import BloodType, Gender, Religion, StudentStatus

PHONE_PATTERN = r"^08\d{8,11}$"
YEAR_PATTERN = r"^\d{4}/\d{4}$"


class StudentCreate(BaseModel):
    """Enroll a student into a live class. Class name/level/major are copied from the class."""

    user_id: UUID
    nisn: str = Field(..., pattern=r"^\d{10}$", description="National student id, exactly 10 digits")
    nis: Optional[str] = Field(None, max_length=20)
    name: str = Field(..., min_length=3, max_length=100)
    nickname: Optional[str] = Field(None, max_length=50)
    class_id: UUID
    gender: Gender
    birth_place: str = Field(..., max_length=100)
    birth_date: date
    religion: Religion
    blood_type: Optional[BloodType] = None
    address: str = Field(..., max_length=500)
    city: str = Field(..., max_length=100)
    province: str = Field(..., max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    parent_id: Optional[UUID] = None
    wali_kelas_id: Optional[UUID] = None
    academic_year: str = Field(..., pattern=YEAR_PATTERN)
    entry_year: str = Field(..., pattern=r"^\d{4}$")
    entry_date: date

    @field_validator("birth_date")
    @classmethod
    def birth_date_not_in_future(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("birth_date cannot be in the future")
        return v


class StudentUpdate(BaseModel):
    """Partial update. Changing class_id moves the roster counters but keeps the class snapshot."""

    name: Optional[str] = Field(None, min_length=3, max_length=100)
    nickname: Optional[str] = Field(None, max_length=50)
    class_id: Optional[UUID] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=500)
    photo_url: Optional[str] = Field(None, max_length=500, pattern=r"^https?://\S+$")
    status: Optional[StudentStatus] = None


class StudentClassSummary(BaseModel):
    id: UUID
    code: str
    name: str
    level: str
    major: Optional[str] = None
    academic_year: str
    capacity: int
    current_total: int

    class Config:
        from_attributes = True


class StudentResponse(BaseModel):
    id: UUID
    user_id: UUID
    nisn: str
    nis: Optional[str] = None
    name: str
    nickname: Optional[str] = None
    gender: str
    birth_place: str
    birth_date: date
    religion: str
    blood_type: Optional[str] = None
    address: str
    city: str
    province: str
    phone: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None
    parent_id: Optional[UUID] = None
    wali_kelas_id: Optional[UUID] = None
    class_id: UUID
    class_name: str
    class_level: str
    class_major: Optional[str] = None
    academic_year: str
    entry_year: str
    entry_date: date
    status: str
    positive_points: int
    negative_points: int
    total_points: int
    current_rank: Optional[int] = None
    is_active: bool
    deleted_at: Optional[datetime] = None
    created_by: str
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    school_class: Optional[StudentClassSummary] = None

    class Config:
        from_attributes = True


class PointsHistoryItem(BaseModel):
    id: UUID
    source: str
    reference_id: Optional[str] = None
    points: int
    description: Optional[str] = None
    recorded_at: datetime

    class Config:
        from_attributes = True


class StudentDetailResponse(StudentResponse):
    points_history: List[PointsHistoryItem] = Field(default_factory=list)


class Pagination(BaseModel):
    offset: int
    limit: int
    total: int
    total_pages: int


class StudentListResponse(BaseModel):
    items: List[StudentResponse]
    pagination: Pagination
