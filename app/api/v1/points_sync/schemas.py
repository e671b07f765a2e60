from typing import List
from uuid import UUID

from pydantic import BaseModel, Field


class SyncSummary(BaseModel):
    """Outcome of a full sweep. A failed student does not stop the sweep."""

    processed: int = Field(..., ge=0)
    succeeded: int = Field(..., ge=0)
    failed: List[UUID] = Field(default_factory=list, description="Students whose sync raised; see logs")
