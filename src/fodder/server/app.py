from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from .. import __version__
from ..config_store import ConfigStore
from ..live_state import InMemoryFoodSystem, load_food_system
from ..models import config_to_payload
from ..reader import read_food_system
from ..session import FoodConfigSession
from ..sync_event import FoodSyncEvent, HttpReplica, SyncBroadcaster
from .deps import Services, require_role, require_services
from .scheduler import PersistScheduler
from .schemas import ReplicaAttachRequest, ScheduleUpdateRequest
from .settings import ServerSettings, load_server_settings


def _load_host(settings: ServerSettings) -> InMemoryFoodSystem:
    try:
        return load_food_system(settings.host_state_path)
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"Cannot load host definition {settings.host_state_path}: {exc}") from exc


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    settings = settings or load_server_settings()
    host = _load_host(settings)
    broadcaster = SyncBroadcaster()
    for index, url in enumerate(settings.replicas, start=1):
        broadcaster.attach(f"static-{index}", HttpReplica(url))
    session = FoodConfigSession(host, ConfigStore(), settings.config_path, broadcaster)
    scheduler = (
        PersistScheduler(session.on_session_persisting, settings.persist_interval_seconds)
        if settings.role == "server"
        else None
    )
    services = Services(settings=settings, session=session, broadcaster=broadcaster, scheduler=scheduler)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.services = services
        if services.scheduler is not None:
            result = services.session.on_session_loaded()
            print(f"[start] session loaded action={result.action} saved={result.saved}", flush=True)
            services.scheduler.start()
        print(
            f"[start] fodder-server ({settings.role}) listening on "
            f"http://{settings.bind_host}:{settings.bind_port}{settings.base_path}",
            flush=True,
        )
        try:
            yield
        finally:
            if services.scheduler is not None:
                services.scheduler.shutdown()
            if services.scheduler is not None and settings.persist_on_shutdown:
                result = services.session.on_session_persisting()
                print(f"[done] final persist saved={result.saved}", flush=True)

    app = FastAPI(title="Fodder", version="1.0", lifespan=lifespan)
    api_prefix = f"{settings.base_path}/api/v1"

    @app.get("/")
    async def root_redirect() -> Response:
        return RedirectResponse(url=f"{api_prefix}/health", status_code=307)

    @app.get(f"{api_prefix}/health")
    async def health() -> dict[str, Any]:
        return {"ok": True, "base_path": settings.base_path, "version": __version__, "role": settings.role}

    @app.get(f"{api_prefix}/config")
    async def get_config(services: Services = Depends(require_services)) -> dict[str, Any]:
        current = services.session.current
        if current is None:
            raise HTTPException(status_code=404, detail="No session has been loaded yet.")
        return config_to_payload(current)

    @app.get(f"{api_prefix}/live")
    async def get_live(services: Services = Depends(require_services)) -> dict[str, Any]:
        return config_to_payload(read_food_system(services.session.handle))

    @app.post(f"{api_prefix}/session/load")
    def load_session(services: Services = Depends(require_services)) -> dict[str, Any]:
        require_role(services, "server")
        # A load starts from the host's pristine definition, like a fresh map load.
        result = services.session.on_session_loaded(_load_host(services.settings))
        return result.as_dict()

    @app.post(f"{api_prefix}/session/persist")
    def persist_session(services: Services = Depends(require_services)) -> dict[str, Any]:
        require_role(services, "server")
        return services.session.on_session_persisting().as_dict()

    @app.get(f"{api_prefix}/schedule")
    async def get_schedule(services: Services = Depends(require_services)) -> dict[str, Any]:
        require_role(services, "server")
        return services.scheduler.describe()

    @app.put(f"{api_prefix}/schedule")
    async def update_schedule(
        payload: ScheduleUpdateRequest,
        services: Services = Depends(require_services),
    ) -> dict[str, Any]:
        require_role(services, "server")
        try:
            return services.scheduler.reschedule(payload.seconds)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))

    @app.get(f"{api_prefix}/replicas")
    async def list_replicas(services: Services = Depends(require_services)) -> dict[str, Any]:
        return {"items": services.broadcaster.replica_ids()}

    @app.post(f"{api_prefix}/replicas", status_code=201)
    def attach_replica(
        payload: ReplicaAttachRequest,
        services: Services = Depends(require_services),
    ) -> dict[str, Any]:
        require_role(services, "server")
        replica_id = payload.replica_id or uuid4().hex[:12]
        resent = services.broadcaster.attach(replica_id, HttpReplica(payload.url))
        return {"id": replica_id, "url": payload.url, "resent": resent}

    @app.delete(f"{api_prefix}/replicas/{{replica_id}}")
    async def detach_replica(replica_id: str, services: Services = Depends(require_services)) -> dict[str, Any]:
        if not services.broadcaster.detach(replica_id):
            raise HTTPException(status_code=404, detail="Replica not found.")
        return {"ok": True}

    @app.post(f"{api_prefix}/sync")
    async def receive_sync(request: Request, services: Services = Depends(require_services)) -> dict[str, Any]:
        require_role(services, "replica")
        try:
            event = FoodSyncEvent.decode(await request.body())
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        return services.session.on_sync_received(event).as_dict()

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_request: Request, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": "runtime_error", "detail": str(exc)})

    return app
