import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Index, String
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class AcademicYear(Base):
    """
    School academic year ("2024/2025") with its two semester ranges.
    At most one row can be is_active = true (partial unique index below).
    """

    __tablename__ = "academic_years"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    year = Column(String(9), nullable=False, unique=True)  # e.g. "2024/2025"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    semester1_start = Column(Date, nullable=False)
    semester1_end = Column(Date, nullable=False)
    semester2_start = Column(Date, nullable=False)
    semester2_end = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


Index(
    "uq_academic_years_single_active",
    AcademicYear.is_active,
    unique=True,
    postgresql_where=AcademicYear.is_active.is_(True),
    sqlite_where=AcademicYear.is_active.is_(True),
)
