from typing import Optional

from pydantic import BaseModel

SYSTEM_ACTOR = "SYSTEM"


class CurrentActor(BaseModel):
    """Identity stamped on created_by/updated_by. Resolved upstream; SYSTEM when no token is attached."""

    id: str = SYSTEM_ACTOR
    role: Optional[str] = None

    @property
    def is_system(self) -> bool:
        return self.id == SYSTEM_ACTOR
