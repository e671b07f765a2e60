import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from typing import Any, AsyncGenerator, Dict, List, Tuple, Union

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core import models  # noqa: F401
from app.core.peers import PeerClient, get_peer_client
from app.db.session import Base, get_db

from factories import class_payload, student_payload

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SCHEDULE_URL = "http://schedule.test"
VIOLATION_URL = "http://violation.test"
ACHIEVEMENT_URL = "http://achievement.test"


class PeerStub:
    """Canned answers for the schedule/violation/achievement services, keyed by URL path."""

    def __init__(self) -> None:
        self.routes: Dict[str, Union[Tuple[int, Any], Exception]] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, path: str, body: Any, status_code: int = 200) -> None:
        self.routes[path] = (status_code, body)

    def fail(self, path: str, exc: Exception) -> None:
        self.routes[path] = exc

    def points(self, student_id: str, violations: List[int], achievements: List[int]) -> None:
        self.reply(
            f"/api/v1/violations/student/{student_id}",
            {"success": True, "data": {"items": [{"points": p} for p in violations]}},
        )
        self.reply(
            f"/api/v1/achievements/student/{student_id}",
            {"success": True, "data": {"items": [{"points": p} for p in achievements]}},
        )

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "not found"})
        if isinstance(route, Exception):
            raise route
        status_code, body = route
        return httpx.Response(status_code, json=body)


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; overrides the FastAPI get_db dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def peers() -> AsyncGenerator[PeerStub, None]:
    """Peer services backed by httpx.MockTransport; overrides get_peer_client."""
    stub = PeerStub()
    http = httpx.AsyncClient(transport=httpx.MockTransport(stub.handle))

    async def override_get_peer_client() -> AsyncGenerator[PeerClient, None]:
        yield PeerClient(
            http,
            schedule_url=SCHEDULE_URL,
            violation_url=VIOLATION_URL,
            achievement_url=ACHIEVEMENT_URL,
        )

    app.dependency_overrides[get_peer_client] = override_get_peer_client
    yield stub
    app.dependency_overrides.pop(get_peer_client, None)
    await http.aclose()


@pytest.fixture()
async def client(db_session: AsyncSession, peers: PeerStub) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def school_class(client: AsyncClient) -> Dict[str, Any]:
    response = await client.post("/api/v1/classes", json=class_payload())
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture()
async def enroll(client: AsyncClient):
    """Factory: enroll a student and return the JSON body."""

    async def _enroll(class_id: str, nisn: str, **overrides: Any) -> Dict[str, Any]:
        response = await client.post("/api/v1/students", json=student_payload(class_id, nisn=nisn, **overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _enroll
