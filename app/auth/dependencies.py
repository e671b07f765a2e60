from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.auth.schemas import SYSTEM_ACTOR, CurrentActor
from app.core.config import settings


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentActor:
    """Resolve the acting identity from the gateway-issued access token.

    The gateway has already authenticated and authorized the caller; this only reads the
    user id claim so writes can be stamped. Requests without a token act as SYSTEM.
    """
    if credentials is None:
        return CurrentActor(id=SYSTEM_ACTOR)

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        raise credentials_exception

    actor_id = payload.get("user_id") or payload.get("sub")
    if not actor_id:
        raise credentials_exception

    return CurrentActor(id=str(actor_id), role=payload.get("role"))
