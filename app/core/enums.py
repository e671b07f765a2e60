from enum import Enum


class StudentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    GRADUATED = "GRADUATED"
    TRANSFERRED = "TRANSFERRED"
    DROPPED_OUT = "DROPPED_OUT"
    SUSPENDED = "SUSPENDED"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class Religion(str, Enum):
    ISLAM = "ISLAM"
    KRISTEN = "KRISTEN"
    KATOLIK = "KATOLIK"
    HINDU = "HINDU"
    BUDDHA = "BUDDHA"
    KONGHUCU = "KONGHUCU"


class BloodType(str, Enum):
    A = "A"
    B = "B"
    AB = "AB"
    O = "O"


class ClassLevel(str, Enum):
    TEN = "10"
    ELEVEN = "11"
    TWELVE = "12"


class PointsSource(str, Enum):
    VIOLATION = "VIOLATION"
    ACHIEVEMENT = "ACHIEVEMENT"
    SYNC = "SYNC"
