from typing import Any, Dict


def class_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "code": "X-IPA-1",
        "name": "10 IPA 1",
        "level": "10",
        "major": "IPA",
        "capacity": 36,
        "academic_year": "2024/2025",
    }
    payload.update(overrides)
    return payload


def student_payload(class_id: str, nisn: str = "1234567890", **overrides: Any) -> Dict[str, Any]:
    payload = {
        "user_id": "6f1c2a9e-3b7d-4c1e-9a55-0d2b8f4e7a10",
        "nisn": nisn,
        "nis": "12345",
        "name": "Budi Santoso",
        "class_id": class_id,
        "gender": "MALE",
        "birth_place": "Bandung",
        "birth_date": "2009-03-14",
        "religion": "ISLAM",
        "address": "Jl. Merdeka No. 1",
        "city": "Bandung",
        "province": "Jawa Barat",
        "academic_year": "2024/2025",
        "entry_year": "2024",
        "entry_date": "2024-07-15",
    }
    payload.update(overrides)
    return payload
