from app.core.models.academic_year import AcademicYear
from app.core.models.class_model import SchoolClass
from app.core.models.points_history import PointsHistory
from app.core.models.student import Student

__all__ = [
    "AcademicYear",
    "PointsHistory",
    "SchoolClass",
    "Student",
]
