"""
Recompute student points and class ranks from the violation/achievement services.
Meant for a cron / scheduler trigger.

Usage:
  python -m app.scripts.sync_points
  python -m app.scripts.sync_points --student-id 5b0c...
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional
from uuid import UUID

import httpx

from app.api.v1.points_sync import service
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.peers import PeerClient
from app.db.session import StudentSessionLocal, engine

logger = logging.getLogger("app.scripts.sync_points")


async def run(student_id: Optional[UUID] = None) -> int:
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(settings.peer_timeout_seconds)) as http:
            peers = PeerClient(http)
            async with StudentSessionLocal() as db:
                if student_id is None:
                    summary = await service.sync_all_students(db, peers)
                    return 1 if summary.failed else 0
                student = await service.sync_student_points(db, peers, student_id)
    finally:
        await engine.dispose()

    if not student:
        logger.error("Student %s not found", student_id)
        return 1
    logger.info("Student %s: total_points=%s rank=%s", student.id, student.total_points, student.current_rank)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Sync student points and ranks")
    parser.add_argument("--student-id", type=UUID, default=None, help="Sync a single student")
    args = parser.parse_args()
    configure_logging()
    sys.exit(asyncio.run(run(args.student_id)))


if __name__ == "__main__":
    main()
