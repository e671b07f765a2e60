from uuid import uuid4

import pytest
from httpx import AsyncClient

from factories import class_payload


@pytest.mark.asyncio
async def test_create_class_defaults(client: AsyncClient) -> None:
    response = await client.post("/api/v1/classes", json=class_payload(code="x-ipa-3"))
    assert response.status_code == 201
    data = response.json()
    assert data["code"] == "X-IPA-3"
    assert data["current_total"] == 0
    assert data["capacity"] == 36
    assert data["is_active"] is True
    assert data["created_by"] == "SYSTEM"


@pytest.mark.asyncio
async def test_code_unique_per_academic_year_only(client: AsyncClient) -> None:
    first = await client.post("/api/v1/classes", json=class_payload())
    assert first.status_code == 201

    same_year = await client.post("/api/v1/classes", json=class_payload(name="Another name"))
    assert same_year.status_code == 409
    assert same_year.json()["detail"] == "Class code already exists for this academic year"

    next_year = await client.post("/api/v1/classes", json=class_payload(academic_year="2025/2026"))
    assert next_year.status_code == 201


@pytest.mark.asyncio
async def test_create_class_validation(client: AsyncClient) -> None:
    response = await client.post("/api/v1/classes", json=class_payload(level="9"))
    assert response.status_code == 400

    response = await client.post("/api/v1/classes", json=class_payload(capacity=51))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_filters_and_order(client: AsyncClient) -> None:
    await client.post("/api/v1/classes", json=class_payload(code="XI-IPS-1", level="11", name="11 IPS 1"))
    await client.post("/api/v1/classes", json=class_payload(code="X-IPA-2", name="10 IPA 2"))
    await client.post("/api/v1/classes", json=class_payload(code="X-IPA-1", academic_year="2023/2024"))

    response = await client.get("/api/v1/classes", params={"academicYear": "2024/2025"})
    assert response.status_code == 200
    assert [c["code"] for c in response.json()] == ["X-IPA-2", "XI-IPS-1"]

    response = await client.get("/api/v1/classes", params={"level": "11"})
    assert [c["code"] for c in response.json()] == ["XI-IPS-1"]


@pytest.mark.asyncio
async def test_class_detail_lists_live_students(client: AsyncClient, school_class, enroll) -> None:
    kept = await enroll(school_class["id"], "1111111111", name="Citra Lestari")
    gone = await enroll(school_class["id"], "2222222222", name="Andi Wijaya")
    await client.delete(f"/api/v1/students/{gone['id']}")

    response = await client.get(f"/api/v1/classes/{school_class['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["current_total"] == 1
    assert [s["id"] for s in data["students"]] == [kept["id"]]
    assert data["students"][0]["total_points"] == 0


@pytest.mark.asyncio
async def test_update_class(client: AsyncClient, school_class, enroll) -> None:
    await client.post("/api/v1/classes", json=class_payload(code="X-IPA-2", name="10 IPA 2"))

    response = await client.put(f"/api/v1/classes/{school_class['id']}", json={"room_number": "R-101"})
    assert response.status_code == 200
    assert response.json()["room_number"] == "R-101"
    assert response.json()["updated_by"] == "SYSTEM"

    clash = await client.put(f"/api/v1/classes/{school_class['id']}", json={"code": "x-ipa-2"})
    assert clash.status_code == 409

    await enroll(school_class["id"], "1111111111")
    await enroll(school_class["id"], "2222222222")
    too_small = await client.put(f"/api/v1/classes/{school_class['id']}", json={"capacity": 1})
    assert too_small.status_code == 400

    missing = await client.put(f"/api/v1/classes/{uuid4()}", json={"name": "Nowhere"})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_soft_delete_class(client: AsyncClient, school_class, enroll) -> None:
    student = await enroll(school_class["id"], "1111111111")

    blocked = await client.delete(f"/api/v1/classes/{school_class['id']}")
    assert blocked.status_code == 400

    await client.delete(f"/api/v1/students/{student['id']}")
    response = await client.delete(f"/api/v1/classes/{school_class['id']}")
    assert response.status_code == 200

    listed = await client.get("/api/v1/classes")
    assert listed.json() == []

    # still addressable by id for audit
    detail = await client.get(f"/api/v1/classes/{school_class['id']}")
    assert detail.status_code == 200
    assert detail.json()["deleted_at"] is not None
    assert detail.json()["is_active"] is False

    again = await client.delete(f"/api/v1/classes/{school_class['id']}")
    assert again.status_code == 404
