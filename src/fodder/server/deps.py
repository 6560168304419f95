from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, Request

from ..session import FoodConfigSession
from ..sync_event import SyncBroadcaster
from .scheduler import PersistScheduler
from .settings import ServerSettings


@dataclass(frozen=True)
class Services:
    settings: ServerSettings
    session: FoodConfigSession
    broadcaster: SyncBroadcaster
    scheduler: PersistScheduler | None


def require_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Server services are not initialized.")
    return services


def require_role(services: Services, role: str) -> None:
    if services.settings.role != role:
        raise HTTPException(status_code=409, detail=f"This endpoint is only available on the {role} role.")
