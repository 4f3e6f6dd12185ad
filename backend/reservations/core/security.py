"""
Acting-user resolution.

Authentication happens upstream (API gateway / identity service). The
gateway forwards the verified identity as two headers, which this module
turns into an explicit Actor passed to every lifecycle call.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from reservations.core.exceptions import PermissionDeniedError


class ActorRole(str, enum.Enum):
    CUSTOMER = "customer"
    OWNER = "owner"


@dataclass(frozen=True)
class Actor:
    id: int
    role: ActorRole

    @property
    def is_owner(self) -> bool:
        return self.role is ActorRole.OWNER


def get_current_actor(
    x_actor_id: Optional[str] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
) -> Actor:
    """FastAPI dependency: resolve the Actor from gateway headers."""
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing actor identity",
        )
    try:
        return Actor(id=int(x_actor_id), role=ActorRole(x_actor_role.lower()))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor identity",
        )


def require_owner(actor: Actor = Depends(get_current_actor)) -> Actor:
    """FastAPI dependency: the acting user must hold the owner role."""
    if not actor.is_owner:
        raise PermissionDeniedError("Owner role required")
    return actor
