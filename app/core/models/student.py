import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class Student(Base):
    """
    Student record. class_name/class_level/class_major are a snapshot of the class taken
    at enrollment; they are not refreshed when class_id changes later.
    current_rank is only written by the points sync.
    """

    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False)
    nisn = Column(String(10), nullable=False, unique=True)
    nis = Column(String(20), nullable=True)
    name = Column(String(100), nullable=False)
    nickname = Column(String(50), nullable=True)
    gender = Column(String(10), nullable=False)
    birth_place = Column(String(100), nullable=False)
    birth_date = Column(Date, nullable=False)
    religion = Column(String(20), nullable=False)
    blood_type = Column(String(2), nullable=True)
    address = Column(String(500), nullable=False)
    city = Column(String(100), nullable=False)
    province = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    photo_url = Column(String(500), nullable=True)
    parent_id = Column(UUID(as_uuid=True), nullable=True)
    wali_kelas_id = Column(UUID(as_uuid=True), nullable=True)

    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False)
    class_name = Column(String(100), nullable=False)
    class_level = Column(String(2), nullable=False)
    class_major = Column(String(50), nullable=True)
    academic_year = Column(String(9), nullable=False)
    entry_year = Column(String(4), nullable=False)
    entry_date = Column(Date, nullable=False)

    status = Column(String(20), nullable=False, default="ACTIVE")
    positive_points = Column(Integer, nullable=False, default=0)
    negative_points = Column(Integer, nullable=False, default=0)
    total_points = Column(Integer, nullable=False, default=0)
    current_rank = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(64), nullable=False)
    updated_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass", foreign_keys=[class_id], lazy="joined")
