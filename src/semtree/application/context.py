"""Explicit per-run context handed to the coordinator.

Carries the logger and the cancellation token so that nothing in the core
reaches for a process-wide singleton.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import structlog


class CancellationToken:
    """Cooperative cancellation flag, checked between per-path tasks."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class RunContext:
    """Logging sink and cancellation token for one vectorization run."""

    logger: Any = field(default_factory=lambda: structlog.get_logger("semtree.run"))
    cancellation: CancellationToken = field(default_factory=CancellationToken)

    @classmethod
    def create(cls, **bindings: Any) -> RunContext:
        return cls(logger=structlog.get_logger("semtree.run").bind(**bindings))

    @property
    def cancelled(self) -> bool:
        return self.cancellation.cancelled

    def cancel(self) -> None:
        self.cancellation.cancel()
