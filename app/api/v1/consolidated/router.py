from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.core.peers import PeerClient, get_peer_client
from app.db.session import get_db

from .schemas import ConsolidatedProfileResponse
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.get("/{student_id}/consolidated", response_model=ConsolidatedProfileResponse)
async def get_consolidated_profile(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    peers: PeerClient = Depends(get_peer_client),
) -> ConsolidatedProfileResponse:
    """Profile dashboard view. Always 200 for a live student, whatever the peers answer."""
    try:
        return await service.get_consolidated_profile(db, peers, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
