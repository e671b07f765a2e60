"""
HTTP client for the sibling services this one reads from:
schedule (class monitoring), violation and achievement (point events).

All peers answer {"success": bool, "data": {...}}. Anything else (transport error,
timeout, non-2xx, success=false, undecodable body) is an UpstreamUnavailableError.
"""
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional
from uuid import UUID

import httpx

from app.core.config import settings
from app.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

LATEST_LIMIT = 5


class PeerClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        schedule_url: Optional[str] = None,
        violation_url: Optional[str] = None,
        achievement_url: Optional[str] = None,
    ) -> None:
        self.http = http
        self.schedule_url = (schedule_url or settings.schedule_service_url).rstrip("/")
        self.violation_url = (violation_url or settings.violation_service_url).rstrip("/")
        self.achievement_url = (achievement_url or settings.achievement_service_url).rstrip("/")

    async def _get_data(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = await self.http.get(url, params=params)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailableError(f"{url} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"Network error calling {url}: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailableError(f"Invalid JSON from {url}") from e

        if not isinstance(body, dict) or not body.get("success"):
            raise UpstreamUnavailableError(f"{url} answered success=false")
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    async def get_schedule_status(self, class_id: UUID) -> Dict[str, Any]:
        """Current schedule state of a class: {"status": ..., "lesson": ... | None}."""
        data = await self._get_data(f"{self.schedule_url}/api/v1/schedules/active/{class_id}")
        return {"status": data.get("status"), "lesson": data.get("lesson")}

    async def get_latest_violations(self, student_id: UUID, limit: int = LATEST_LIMIT) -> List[Dict[str, Any]]:
        data = await self._get_data(
            f"{self.violation_url}/api/v1/violations",
            params={"studentId": str(student_id), "limit": limit},
        )
        return list(data.get("items") or [])[:limit]

    async def get_latest_achievements(self, student_id: UUID, limit: int = LATEST_LIMIT) -> List[Dict[str, Any]]:
        data = await self._get_data(
            f"{self.achievement_url}/api/v1/achievements",
            params={"studentId": str(student_id), "limit": limit},
        )
        return list(data.get("items") or [])[:limit]

    async def get_violation_points(self, student_id: UUID) -> int:
        """Sum of violation point magnitudes recorded for the student."""
        data = await self._get_data(f"{self.violation_url}/api/v1/violations/student/{student_id}")
        return _sum_magnitudes(data.get("items") or [])

    async def get_achievement_points(self, student_id: UUID) -> int:
        """Sum of achievement point magnitudes recorded for the student."""
        data = await self._get_data(f"{self.achievement_url}/api/v1/achievements/student/{student_id}")
        return _sum_magnitudes(data.get("items") or [])


def _sum_magnitudes(items: List[Dict[str, Any]]) -> int:
    total = 0
    for item in items:
        try:
            total += abs(int(item.get("points") or 0))
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(f"Malformed points value: {item.get('points')!r}") from e
    return total


async def get_peer_client() -> AsyncGenerator[PeerClient, None]:
    """FastAPI dependency: one httpx client per request, bounded timeout on every call."""
    async with httpx.AsyncClient(timeout=httpx.Timeout(settings.peer_timeout_seconds)) as http:
        yield PeerClient(http)
