"""Classes per academic year (e.g. X-IPA-1 in 2024/2025). Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class SchoolClass(Base):
    """
    Class roster header. code is only unique together with academic_year.
    current_total counts non-deleted students referencing the class; it is only moved
    inside the same transaction as the student write. Soft delete via deleted_at.
    """

    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("code", "academic_year", name="uq_class_code_academic_year"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)
    level = Column(String(2), nullable=False)  # 10 | 11 | 12
    major = Column(String(50), nullable=True)
    wali_kelas_id = Column(UUID(as_uuid=True), nullable=True)
    capacity = Column(Integer, nullable=False, default=36)
    current_total = Column(Integer, nullable=False, default=0)
    academic_year = Column(String(9), nullable=False)
    room_number = Column(String(20), nullable=True)
    floor = Column(String(10), nullable=True)
    building = Column(String(10), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(64), nullable=False)
    updated_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
