"""Domain events for semtree.

All events are frozen dataclasses published on the in-memory event bus.
The host UI subscribes to :class:`PathStatusChanged` to refresh its
decorations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from semtree.domain.enums import PathStatus


@dataclass(frozen=True)
class PathStatusChanged:
    """The status of *path* changed; ``path`` is ``None`` for "everything"."""

    path: str | None
    status: PathStatus | None
    changed_at: datetime


@dataclass(frozen=True)
class VectorizationStarted:
    root_path: str
    pending: int
    started_at: datetime


@dataclass(frozen=True)
class VectorizationCompleted:
    root_path: str
    processed: int
    errors: int
    cancelled: bool
    duration_ms: float
    completed_at: datetime


@dataclass(frozen=True)
class StorageCleared:
    cleared_at: datetime
