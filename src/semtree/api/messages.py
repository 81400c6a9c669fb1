"""Host message surface.

Messages are a closed, tagged union on ``command``; anything else fails
validation before it reaches the coordinator.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from semtree.application.coordinator import VectorizationCoordinator
from semtree.domain.entities import SearchResultEntry
from semtree.domain.enums import SearchMode
from semtree.domain.paths import normalize_path


class VectorizeAllMessage(BaseModel):
    command: Literal["vectorizeAll"]
    root_path: str = Field(..., min_length=1)


class SearchMessage(BaseModel):
    command: Literal["search"]
    query: str
    limit: int | None = Field(default=None, ge=1, le=1000)
    mode: SearchMode = SearchMode.ALL


class GetStorageCountMessage(BaseModel):
    command: Literal["getStorageCount"]


class ClearStorageMessage(BaseModel):
    command: Literal["clearStorage"]


class GetStatusMessage(BaseModel):
    command: Literal["getStatus"]
    path: str = Field(..., min_length=1)


class ExcludeMessage(BaseModel):
    command: Literal["exclude"]
    path: str = Field(..., min_length=1)


class IncludeMessage(BaseModel):
    command: Literal["include"]
    path: str = Field(..., min_length=1)


class GetExclusionsMessage(BaseModel):
    command: Literal["getExclusions"]


AnyMessage = Union[
    VectorizeAllMessage,
    SearchMessage,
    GetStorageCountMessage,
    ClearStorageMessage,
    GetStatusMessage,
    ExcludeMessage,
    IncludeMessage,
    GetExclusionsMessage,
]
Message = Annotated[AnyMessage, Field(discriminator="command")]

message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(payload: dict[str, Any] | str | bytes) -> Message:
    """Validate a raw payload; raises ``pydantic.ValidationError`` on unknown commands."""
    if isinstance(payload, (str, bytes)):
        return message_adapter.validate_json(payload)
    return message_adapter.validate_python(payload)


async def dispatch(
    message: Message,
    coordinator: VectorizationCoordinator,
    *,
    default_limit: int = 5,
) -> Any:
    """Run *message* against *coordinator* and return a JSON-ready response."""
    if isinstance(message, VectorizeAllMessage):
        stats = await coordinator.vectorize_all(message.root_path)
        return stats.summary()

    if isinstance(message, SearchMessage):
        hits = await coordinator.search_similar(
            message.query,
            limit=message.limit or default_limit,
            kinds=message.mode.kinds,
        )
        return [
            SearchResultEntry(
                path=hit.item.path,
                kind=hit.item.kind,
                type=hit.item.type,
                similarity=hit.similarity,
            ).model_dump(mode="json")
            for hit in hits
        ]

    if isinstance(message, GetStorageCountMessage):
        return {"count": await coordinator.get_storage_count()}

    if isinstance(message, ClearStorageMessage):
        await coordinator.clear_storage()
        return {"ok": True}

    if isinstance(message, GetStatusMessage):
        status = await coordinator.get_status(message.path)
        return {"path": normalize_path(message.path), "status": status.value}

    if isinstance(message, ExcludeMessage):
        status = await coordinator.exclude_path(message.path)
        return {"path": normalize_path(message.path), "status": status.value}

    if isinstance(message, IncludeMessage):
        status = await coordinator.include_path(message.path)
        return {"path": normalize_path(message.path), "status": status.value}

    if isinstance(message, GetExclusionsMessage):
        return {"excluded": await coordinator.excluded_paths()}

    raise TypeError(f"Unhandled message type: {type(message).__name__}")
