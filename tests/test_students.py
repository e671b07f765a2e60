from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from jose import jwt
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students import service as student_service
from app.api.v1.students.schemas import StudentCreate
from app.auth.schemas import CurrentActor
from app.core.config import settings
from app.core.models import PointsHistory, SchoolClass, Student

from factories import class_payload, student_payload


async def _class_total(client: AsyncClient, class_id: str) -> int:
    response = await client.get(f"/api/v1/classes/{class_id}")
    return response.json()["current_total"]


@pytest.mark.asyncio
async def test_enroll_snapshots_class_and_bumps_total(client: AsyncClient, school_class) -> None:
    response = await client.post("/api/v1/students", json=student_payload(school_class["id"]))
    assert response.status_code == 201
    data = response.json()

    assert data["class_id"] == school_class["id"]
    assert data["class_name"] == school_class["name"]
    assert data["class_level"] == school_class["level"]
    assert data["class_major"] == school_class["major"]
    assert data["status"] == "ACTIVE"
    assert data["is_active"] is True
    assert data["created_by"] == "SYSTEM"
    assert data["total_points"] == 0
    assert data["school_class"]["current_total"] == 1

    assert await _class_total(client, school_class["id"]) == 1


@pytest.mark.asyncio
async def test_enroll_rejects_unknown_or_deleted_class(client: AsyncClient) -> None:
    response = await client.post("/api/v1/students", json=student_payload(str(uuid4())))
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid classId"

    created = await client.post("/api/v1/classes", json=class_payload(code="X-IPA-9"))
    class_id = created.json()["id"]
    await client.delete(f"/api/v1/classes/{class_id}")
    response = await client.post("/api/v1/students", json=student_payload(class_id))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_enroll_validation_and_duplicate_nisn(client: AsyncClient, school_class) -> None:
    bad_nisn = await client.post("/api/v1/students", json=student_payload(school_class["id"], nisn="12345"))
    assert bad_nisn.status_code == 400
    assert "nisn" in bad_nisn.json()["detail"]

    bad_phone = await client.post(
        "/api/v1/students", json=student_payload(school_class["id"], phone="+62811111111")
    )
    assert bad_phone.status_code == 400

    first = await client.post("/api/v1/students", json=student_payload(school_class["id"]))
    assert first.status_code == 201
    duplicate = await client.post("/api/v1/students", json=student_payload(school_class["id"]))
    assert duplicate.status_code == 409

    assert await _class_total(client, school_class["id"]) == 1


@pytest.mark.asyncio
async def test_list_paging_search_and_filters(client: AsyncClient, school_class, enroll) -> None:
    other = await client.post("/api/v1/classes", json=class_payload(code="X-IPA-2", name="10 IPA 2"))
    await enroll(school_class["id"], "1000000001", name="Citra Lestari")
    budi = await enroll(school_class["id"], "1000000002", name="Budi Santoso")
    await enroll(other.json()["id"], "1000000003", name="Andi Wijaya", nis="A-77")

    response = await client.get(
        "/api/v1/students", headers={"x-paging-offset": "1", "x-paging-limit": "1"}
    )
    assert response.status_code == 200
    data = response.json()
    assert [s["name"] for s in data["items"]] == ["Budi Santoso"]
    assert data["pagination"] == {"offset": 1, "limit": 1, "total": 3, "total_pages": 3}

    default_page = await client.get("/api/v1/students")
    assert default_page.json()["pagination"]["limit"] == 25

    by_name = await client.get("/api/v1/students", headers={"x-paging-search": "cItRa"})
    assert [s["name"] for s in by_name.json()["items"]] == ["Citra Lestari"]
    by_nisn = await client.get("/api/v1/students", headers={"x-paging-search": "0002"})
    assert [s["id"] for s in by_nisn.json()["items"]] == [budi["id"]]
    by_nis = await client.get("/api/v1/students", headers={"x-paging-search": "a-7"})
    assert [s["name"] for s in by_nis.json()["items"]] == ["Andi Wijaya"]

    by_class = await client.get("/api/v1/students", params={"classId": school_class["id"]})
    assert by_class.json()["pagination"]["total"] == 2

    await client.put(f"/api/v1/students/{budi['id']}", json={"status": "GRADUATED"})
    graduated = await client.get("/api/v1/students", params={"status": "GRADUATED"})
    assert [s["id"] for s in graduated.json()["items"]] == [budi["id"]]

    zero_limit = await client.get("/api/v1/students", headers={"x-paging-limit": "0"})
    assert zero_limit.status_code == 200
    assert zero_limit.json()["pagination"]["limit"] == 25
    garbage = await client.get("/api/v1/students", headers={"x-paging-offset": "abc", "x-paging-limit": "xyz"})
    assert garbage.status_code == 200
    assert garbage.json()["pagination"] == {"offset": 0, "limit": 25, "total": 3, "total_pages": 1}
    large_limit = await client.get("/api/v1/students", headers={"x-paging-limit": "200"})
    assert large_limit.status_code == 200
    assert large_limit.json()["pagination"]["limit"] == 200
    assert len(large_limit.json()["items"]) == 3


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client: AsyncClient, school_class, enroll) -> None:
    await enroll(school_class["id"], "1000000001", name="Citra Lestari")
    await enroll(school_class["id"], "1000000002", name="Budi Santoso")

    for term in ("%", "_"):
        response = await client.get("/api/v1/students", headers={"x-paging-search": term})
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 0

    await enroll(school_class["id"], "1000000003", name="Dewi_100%")
    literal = await client.get("/api/v1/students", headers={"x-paging-search": "_100%"})
    assert [s["name"] for s in literal.json()["items"]] == ["Dewi_100%"]


@pytest.mark.asyncio
async def test_detail_includes_latest_points_history(
    client: AsyncClient, db_session: AsyncSession, school_class, enroll
) -> None:
    student = await enroll(school_class["id"], "1234567890")
    base = datetime(2024, 8, 1, 8, 0, 0)
    for i in range(12):
        db_session.add(
            PointsHistory(
                student_id=UUID(student["id"]),
                source="ACHIEVEMENT",
                points=i,
                recorded_at=base + timedelta(days=i),
            )
        )
    await db_session.commit()

    response = await client.get(f"/api/v1/students/{student['id']}")
    assert response.status_code == 200
    history = response.json()["points_history"]
    assert len(history) == 10
    assert [h["points"] for h in history] == list(range(11, 1, -1))

    missing = await client.get(f"/api/v1/students/{uuid4()}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_withdraw_soft_deletes_and_releases_seat(client: AsyncClient, school_class, enroll) -> None:
    student = await enroll(school_class["id"], "1234567890")
    assert await _class_total(client, school_class["id"]) == 1

    response = await client.delete(f"/api/v1/students/{student['id']}")
    assert response.status_code == 200
    assert await _class_total(client, school_class["id"]) == 0

    listed = await client.get("/api/v1/students")
    assert listed.json()["items"] == []

    # audit access by id still works
    detail = await client.get(f"/api/v1/students/{student['id']}")
    assert detail.status_code == 200
    assert detail.json()["deleted_at"] is not None
    assert detail.json()["is_active"] is False
    assert detail.json()["updated_by"] == "SYSTEM"

    again = await client.delete(f"/api/v1/students/{student['id']}")
    assert again.status_code == 404
    assert await _class_total(client, school_class["id"]) == 0

    unknown = await client.delete(f"/api/v1/students/{uuid4()}")
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_withdraw_rolls_back_when_counter_update_fails(
    db_session: AsyncSession, school_class, enroll, monkeypatch
) -> None:
    student = await enroll(school_class["id"], "1234567890")

    monkeypatch.setattr(
        student_service,
        "_shift_class_total",
        lambda class_id, delta: text("UPDATE missing_table SET current_total = 0"),
    )
    with pytest.raises(OperationalError):
        await student_service.withdraw_student(db_session, UUID(student["id"]), CurrentActor())

    row = await db_session.execute(
        select(Student.deleted_at, Student.is_active).where(Student.id == UUID(student["id"]))
    )
    deleted_at, is_active = row.one()
    assert deleted_at is None
    assert is_active is True

    total = await db_session.execute(
        select(SchoolClass.current_total).where(SchoolClass.id == UUID(school_class["id"]))
    )
    assert total.scalar_one() == 1


@pytest.mark.asyncio
async def test_enroll_rolls_back_when_counter_update_fails(
    client: AsyncClient, db_session: AsyncSession, school_class, monkeypatch
) -> None:
    monkeypatch.setattr(
        student_service,
        "_shift_class_total",
        lambda class_id, delta: text("UPDATE missing_table SET current_total = 0"),
    )
    payload = StudentCreate(**student_payload(school_class["id"]))
    with pytest.raises(OperationalError):
        await student_service.enroll_student(db_session, payload, CurrentActor())

    count = await db_session.execute(select(func.count(Student.id)))
    assert count.scalar_one() == 0


@pytest.mark.asyncio
async def test_update_is_partial_and_moves_counters(client: AsyncClient, school_class, enroll) -> None:
    other = (await client.post("/api/v1/classes", json=class_payload(code="X-IPA-2", name="10 IPA 2"))).json()
    student = await enroll(school_class["id"], "1234567890")

    renamed = await client.put(f"/api/v1/students/{student['id']}", json={"nickname": "Bud"})
    assert renamed.status_code == 200
    assert renamed.json()["nickname"] == "Bud"
    assert renamed.json()["name"] == student["name"]

    moved = await client.put(f"/api/v1/students/{student['id']}", json={"class_id": other["id"]})
    assert moved.status_code == 200
    data = moved.json()
    assert data["class_id"] == other["id"]
    # snapshot keeps the enrollment-time class
    assert data["class_name"] == school_class["name"]

    assert await _class_total(client, school_class["id"]) == 0
    assert await _class_total(client, other["id"]) == 1

    invalid = await client.put(f"/api/v1/students/{student['id']}", json={"class_id": str(uuid4())})
    assert invalid.status_code == 400
    assert await _class_total(client, other["id"]) == 1

    missing = await client.put(f"/api/v1/students/{uuid4()}", json={"nickname": "X"})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_actor_from_bearer_token_is_stamped(client: AsyncClient, school_class) -> None:
    token = jwt.encode({"sub": "teacher-42", "role": "ADMIN"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    headers = {"Authorization": f"Bearer {token}"}

    created = await client.post("/api/v1/students", json=student_payload(school_class["id"]), headers=headers)
    assert created.status_code == 201
    assert created.json()["created_by"] == "teacher-42"

    deleted = await client.delete(f"/api/v1/students/{created.json()['id']}", headers=headers)
    assert deleted.status_code == 200
    detail = await client.get(f"/api/v1/students/{created.json()['id']}")
    assert detail.json()["updated_by"] == "teacher-42"

    rejected = await client.post(
        "/api/v1/students",
        json=student_payload(school_class["id"], nisn="9999999999"),
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert rejected.status_code == 401
