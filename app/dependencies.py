"""Per-request dependencies shared by routers."""

from typing import Optional
from fastapi import Header
from app.config import settings


def get_actor_id(x_actor_id: Optional[str] = Header(default=None)) -> str:
    """
    Identity of the user performing the request, recorded on every change.
    Supplied by the upstream identity provider as X-Actor-Id.
    """
    return x_actor_id or settings.DEFAULT_ACTOR_ID
