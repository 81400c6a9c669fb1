"""Shared fixtures: in-process fakes for the model ports and a tree builder."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from semtree.application.status import PathStatusTracker
from semtree.domain.entities import VectorizationConfig
from semtree.domain.exceptions import ProviderError
from semtree.infrastructure.events.bus import InMemoryEventBus
from semtree.infrastructure.vector.memory_store import InMemoryVectorStore


class FakeEmbeddingProvider:
    """Deterministic embedder: known texts map to fixed vectors."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, delay: float = 0.0):
        self.vectors = dict(vectors or {})
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_call = None

    @property
    def model_name(self) -> str:
        return "fake-embedder"

    @property
    def endpoint(self) -> str:
        return "fake://embeddings"

    async def get_embedding(self, text: str) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call is not None:
                await self.on_call(text)
            if self.delay:
                await asyncio.sleep(self.delay)
            if text in self.failures:
                raise self.failures[text]
            if text in self.vectors:
                return list(self.vectors[text])
            return [float(len(text)), 1.0]
        finally:
            self.in_flight -= 1


class FakeSummarizer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.prompts: list[str | None] = []

    @property
    def max_input_length(self) -> int:
        return 8000

    async def summarize(self, text: str, prompt: str | None = None) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise ProviderError("summarizer down", endpoint="fake://summarize")
        return f"summary of {text}"


def build_tree(root: Path, layout: dict) -> Path:
    """Create files and directories under *root* from a nested dict.

    String values are text files, bytes are binary files and dicts are
    sub-directories.
    """
    root.mkdir(parents=True, exist_ok=True)
    for name, value in layout.items():
        target = root / name
        if isinstance(value, dict):
            build_tree(target, value)
        elif isinstance(value, bytes):
            target.write_bytes(value)
        else:
            target.write_text(value, encoding="utf-8")
    return root


@pytest.fixture
def store():
    return InMemoryVectorStore()


@pytest.fixture
def event_bus():
    return InMemoryEventBus()


@pytest.fixture
def config():
    return VectorizationConfig()


@pytest.fixture
def tracker(store, config, event_bus):
    return PathStatusTracker(store, config, event_bus)


@pytest.fixture
def embedder():
    return FakeEmbeddingProvider({"one": [1.0, 2.0], "two": [3.0, 4.0]})


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def make_tree(tmp_path):
    def _make(layout: dict, name: str = "ws") -> Path:
        return build_tree(tmp_path / name, layout)

    return _make


@pytest.fixture
def fake_embedder_cls():
    return FakeEmbeddingProvider


@pytest.fixture
def fake_summarizer_cls():
    return FakeSummarizer
