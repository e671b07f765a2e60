from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students.schemas import StudentResponse
from app.auth.dependencies import get_current_actor
from app.auth.schemas import CurrentActor
from app.core.exceptions import ServiceError
from app.core.peers import PeerClient, get_peer_client
from app.db.session import get_db

from .schemas import SyncSummary
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["points-sync"])


@router.post("/sync-points", response_model=SyncSummary)
async def sync_all_points(
    db: AsyncSession = Depends(get_db),
    peers: PeerClient = Depends(get_peer_client),
    actor: CurrentActor = Depends(get_current_actor),
) -> SyncSummary:
    """Recompute points and class rank for every active student. Intended for a periodic trigger."""
    try:
        return await service.sync_all_students(db, peers, actor=actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{student_id}/sync-points", response_model=StudentResponse)
async def sync_student_points(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    peers: PeerClient = Depends(get_peer_client),
    actor: CurrentActor = Depends(get_current_actor),
) -> StudentResponse:
    try:
        student = await service.sync_student_points(db, peers, student_id, actor=actor)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student
