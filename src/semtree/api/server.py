"""semtree REST API (FastAPI server).

Endpoints:
  POST   /v1/messages        (tagged host message, see ``api.messages``)
  POST   /v1/vectorize       (full-tree run)
  POST   /v1/search          (semantic search)
  GET    /v1/storage/count   (number of stored records)
  DELETE /v1/storage         (clear every record)
  GET    /v1/status          (status of one path)
  GET    /v1/status/events   (status changes pushed as server-sent events)
  GET    /v1/exclusions      (manually excluded paths)
  POST   /v1/exclusions      (exclude a path)
  DELETE /v1/exclusions      (lift a manual exclusion)
  GET    /health
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Annotated, Any

import structlog
from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from semtree import __version__
from semtree.api.messages import (
    AnyMessage,
    ClearStorageMessage,
    ExcludeMessage,
    GetExclusionsMessage,
    GetStatusMessage,
    GetStorageCountMessage,
    IncludeMessage,
    SearchMessage,
    VectorizeAllMessage,
    dispatch,
)
from semtree.config.settings import Settings
from semtree.container import Container, create_container
from semtree.domain.enums import SearchMode
from semtree.domain.events import PathStatusChanged
from semtree.domain.exceptions import (
    ConfigurationMissingError,
    EmbeddingNotFoundError,
    ProviderError,
    SemtreeError,
    StorageConflictError,
    StorageUnavailableError,
    VectorizationBusyError,
    VectorizationError,
)
from semtree.domain.ports import EventBus

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

app = FastAPI(
    title="semtree API",
    version=__version__,
    description="Hierarchical semantic index over a file tree.",
)


def _get_container() -> Container:
    """Dependency injection: resolve the process container.

    Override ``app.dependency_overrides[_get_container]`` in tests.
    """
    if not hasattr(app.state, "container"):
        raise HTTPException(503, "Container not configured. Start the server with 'semtree serve'.")
    return app.state.container


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def status_for(error: SemtreeError) -> int:
    """HTTP status for a domain error."""
    if isinstance(error, ProviderError):
        return 502
    if isinstance(error, (StorageConflictError, VectorizationBusyError)):
        return 409
    if isinstance(error, StorageUnavailableError):
        return 503
    if isinstance(error, EmbeddingNotFoundError):
        return 404
    if isinstance(error, (ConfigurationMissingError, VectorizationError)):
        return 400
    return 500


@app.exception_handler(SemtreeError)
async def semtree_error_handler(request: Request, exc: SemtreeError) -> JSONResponse:
    status = status_for(exc)
    log = logger.bind(path=request.url.path, status=status)
    if status >= 500:
        log.error("api.error", error=exc.message, type=type(exc).__name__)
    else:
        log.info("api.error", error=exc.message, type=type(exc).__name__)
    return JSONResponse(
        status_code=status,
        content={"error": {"type": type(exc).__name__, "message": exc.message}},
    )


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class VectorizeRequest(BaseModel):
    root_path: str = Field(..., min_length=1)


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    limit: int | None = Field(default=None, ge=1, le=1000)
    mode: SearchMode = SearchMode.ALL


class RunSummaryResponse(BaseModel):
    processed: int
    errors: int


class CountResponse(BaseModel):
    count: int


class StatusResponse(BaseModel):
    path: str
    status: str


class PathRequest(BaseModel):
    path: str = Field(..., min_length=1)


class ExclusionsResponse(BaseModel):
    excluded: list[str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.post("/v1/messages")
async def post_message(
    message: Annotated[AnyMessage, Body(discriminator="command")],
    container: Container = Depends(_get_container),
) -> Any:
    """Dispatch one tagged host message."""
    return await dispatch(
        message,
        container.coordinator,
        default_limit=container.settings.search_default_limit,
    )


@app.post("/v1/vectorize", response_model=RunSummaryResponse)
async def vectorize(
    body: VectorizeRequest,
    container: Container = Depends(_get_container),
):
    return await dispatch(
        VectorizeAllMessage(command="vectorizeAll", root_path=body.root_path),
        container.coordinator,
    )


@app.post("/v1/search")
async def search(
    body: SearchRequest,
    container: Container = Depends(_get_container),
) -> Any:
    return await dispatch(
        SearchMessage(command="search", query=body.query, limit=body.limit, mode=body.mode),
        container.coordinator,
        default_limit=container.settings.search_default_limit,
    )


@app.get("/v1/storage/count", response_model=CountResponse)
async def storage_count(container: Container = Depends(_get_container)):
    return await dispatch(GetStorageCountMessage(command="getStorageCount"), container.coordinator)


@app.delete("/v1/storage")
async def clear_storage(container: Container = Depends(_get_container)) -> dict[str, bool]:
    return await dispatch(ClearStorageMessage(command="clearStorage"), container.coordinator)


@app.get("/v1/status", response_model=StatusResponse)
async def path_status(path: str, container: Container = Depends(_get_container)):
    return await dispatch(GetStatusMessage(command="getStatus", path=path), container.coordinator)


@app.get("/v1/exclusions", response_model=ExclusionsResponse)
async def list_exclusions(container: Container = Depends(_get_container)):
    return await dispatch(GetExclusionsMessage(command="getExclusions"), container.coordinator)


@app.post("/v1/exclusions", response_model=StatusResponse)
async def add_exclusion(body: PathRequest, container: Container = Depends(_get_container)):
    return await dispatch(ExcludeMessage(command="exclude", path=body.path), container.coordinator)


@app.delete("/v1/exclusions", response_model=StatusResponse)
async def remove_exclusion(path: str, container: Container = Depends(_get_container)):
    return await dispatch(IncludeMessage(command="include", path=path), container.coordinator)


# ---------------------------------------------------------------------------
# Status notifications
# ---------------------------------------------------------------------------

STATUS_KEEPALIVE_SECONDS = 15.0


def _status_payload(event: PathStatusChanged) -> dict[str, Any]:
    return {
        "type": "status",
        "path": event.path,
        "status": event.status.value if event.status is not None else None,
        "changed_at": event.changed_at.isoformat(),
    }


def status_event_stream(
    bus: EventBus,
    *,
    max_events: int | None = None,
    keepalive: float = STATUS_KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Subscribe to status changes on *bus* and return them as SSE frames.

    The subscription is taken immediately so no change published after this
    call is missed.  ``path`` and ``status`` are ``null`` when every status
    may have changed (after a clear or a subtree deletion).  A comment frame
    is sent every *keepalive* seconds of silence.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[PathStatusChanged] = asyncio.Queue()

    def on_change(event: PathStatusChanged) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    bus.subscribe(PathStatusChanged, on_change)

    async def frames() -> AsyncIterator[str]:
        sent = 0
        try:
            while max_events is None or sent < max_events:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield "data: " + json.dumps(_status_payload(event)) + "\n\n"
                sent += 1
        finally:
            bus.unsubscribe(PathStatusChanged, on_change)
            logger.debug("api.status_stream.closed", sent=sent)

    return frames()


@app.get("/v1/status/events")
async def status_events(
    max_events: int | None = Query(default=None, ge=1),
    container: Container = Depends(_get_container),
) -> StreamingResponse:
    """Push path status changes to the host as server-sent events."""
    return StreamingResponse(
        status_event_stream(container.event_bus, max_events=max_events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    """Configure the FastAPI app with a wired container."""
    if container is None:
        container = create_container(settings or Settings())
    app.state.container = container
    return app
