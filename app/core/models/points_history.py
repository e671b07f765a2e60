import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class PointsHistory(Base):
    """Ordered log of point-affecting events per student. Written by the violation/achievement side, read here."""

    __tablename__ = "points_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    source = Column(String(20), nullable=False)  # VIOLATION | ACHIEVEMENT | SYNC
    reference_id = Column(String(64), nullable=True)
    points = Column(Integer, nullable=False)
    description = Column(String(255), nullable=True)
    recorded_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
