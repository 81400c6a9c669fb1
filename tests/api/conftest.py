from __future__ import annotations

import pytest

from semtree.application.coordinator import VectorizationCoordinator
from semtree.application.status import PathStatusTracker
from semtree.config.settings import Settings
from semtree.container import Container
from semtree.infrastructure.events.bus import InMemoryEventBus
from semtree.infrastructure.vector.memory_store import InMemoryVectorStore


@pytest.fixture
def build_container(fake_embedder_cls):
    """Factory for a fully wired container on an in-memory store."""

    def _build(settings: Settings | None = None, embedder=None, exclusions=None) -> Container:
        settings = settings or Settings(_env_file=None, store="memory", embedder_model="fake")
        store = InMemoryVectorStore()
        embedder = embedder or fake_embedder_cls({"one": [1.0, 2.0], "two": [3.0, 4.0]})
        bus = InMemoryEventBus()
        config = settings.vectorization_config()
        tracker = PathStatusTracker(store, config, bus, exclusions=exclusions)
        coordinator = VectorizationCoordinator(
            store, embedder, config=config, tracker=tracker, event_bus=bus
        )
        return Container(
            settings=settings,
            vector_store=store,
            embedding_provider=embedder,
            summarizer=None,
            event_bus=bus,
            tracker=tracker,
            coordinator=coordinator,
        )

    return _build
