from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

YEAR_PATTERN = r"^\d{4}/\d{4}$"


class AcademicYearCreate(BaseModel):
    """Create academic year. year must be unique."""

    year: str = Field(..., pattern=YEAR_PATTERN, description="e.g. 2024/2025")
    start_date: date
    end_date: date
    semester1_start: date
    semester1_end: date
    semester2_start: date
    semester2_end: date
    is_active: bool = Field(
        False,
        description="Activate this year? If true, every other year becomes inactive in the same transaction.",
    )

    @model_validator(mode="after")
    def check_ranges(self) -> "AcademicYearCreate":
        for start, end, label in (
            (self.start_date, self.end_date, "end_date"),
            (self.semester1_start, self.semester1_end, "semester1_end"),
            (self.semester2_start, self.semester2_end, "semester2_end"),
        ):
            if end <= start:
                raise ValueError(f"{label} must be after its start date")
        return self


class AcademicYearResponse(BaseModel):
    id: UUID
    year: str
    start_date: date
    end_date: date
    semester1_start: date
    semester1_end: date
    semester2_start: date
    semester2_end: date
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
