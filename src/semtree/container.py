"""Dependency container: wires settings to concrete adapters.

The CLI and the HTTP server each own one container; nothing inside the
core reaches for a global.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from semtree.application.coordinator import VectorizationCoordinator
from semtree.application.status import PathStatusTracker
from semtree.config.settings import Settings
from semtree.domain.exceptions import ConfigurationMissingError
from semtree.domain.ports import EmbeddingProvider, ExclusionStore, TextSummarizer, VectorStore
from semtree.infrastructure.events.bus import InMemoryEventBus

logger = structlog.get_logger(__name__)

OPENAI_COMPATIBLE_PROVIDERS = {"openai", "custom", "local"}
SENTENCE_TRANSFORMERS_PROVIDERS = {"sentence-transformers", "sentence_transformers"}


@dataclass
class Container:
    """Holds every wired component for one process."""

    settings: Settings
    vector_store: VectorStore
    embedding_provider: EmbeddingProvider
    summarizer: TextSummarizer | None
    event_bus: InMemoryEventBus
    tracker: PathStatusTracker
    coordinator: VectorizationCoordinator

    async def aclose(self) -> None:
        await self.coordinator.dispose()


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Build the embedding provider selected by ``settings.provider``."""
    if not settings.embedder_model:
        raise ConfigurationMissingError(
            "No embedding model selected; set SEMTREE_EMBEDDER_MODEL",
            details={"provider": settings.provider},
        )

    provider = settings.provider
    if provider == "ollama":
        from semtree.infrastructure.embedding.ollama import OllamaEmbeddingProvider

        return OllamaEmbeddingProvider(
            model=settings.embedder_model,
            local_url=settings.local_url,
            timeout=settings.timeout_seconds,
        )
    if provider in OPENAI_COMPATIBLE_PROVIDERS:
        from semtree.infrastructure.embedding.openai_compatible import (
            OpenAICompatibleEmbeddingProvider,
        )

        return OpenAICompatibleEmbeddingProvider(
            model=settings.embedder_model,
            base_url=settings.base_url or "http://localhost:1234",
            api_key=settings.api_key,
            timeout=settings.timeout_seconds,
        )
    if provider in SENTENCE_TRANSFORMERS_PROVIDERS:
        from semtree.infrastructure.embedding.sentence_transformer import (
            SentenceTransformerEmbeddingProvider,
        )

        return SentenceTransformerEmbeddingProvider(model_name=settings.embedder_model)

    raise ConfigurationMissingError(
        f"Unknown provider: {provider}", details={"provider": provider}
    )


def create_summarizer(settings: Settings) -> TextSummarizer | None:
    """Build the summarizer, or ``None`` when summarization is switched off."""
    if not settings.summarization_enabled:
        return None
    if not settings.llm_model:
        raise ConfigurationMissingError(
            "Summarization is enabled but no LLM model is selected; set SEMTREE_LLM_MODEL",
            details={"provider": settings.provider},
        )

    common = {
        "max_input_length": settings.max_text_length,
        "truncate_message": settings.truncate_message,
        "default_prompt": settings.summarize_prompt,
    }
    if settings.provider == "ollama":
        from semtree.infrastructure.summarization.ollama import OllamaSummarizer

        return OllamaSummarizer(
            model=settings.llm_model,
            local_url=settings.local_url,
            timeout=settings.timeout_seconds,
            **common,
        )
    if settings.provider in OPENAI_COMPATIBLE_PROVIDERS:
        from semtree.infrastructure.summarization.openai_compatible import (
            OpenAICompatibleSummarizer,
        )

        return OpenAICompatibleSummarizer(
            model=settings.llm_model,
            base_url=settings.base_url or "http://localhost:1234",
            api_key=settings.api_key,
            timeout=settings.timeout_seconds,
            **common,
        )

    raise ConfigurationMissingError(
        f"Provider '{settings.provider}' cannot summarize",
        details={"provider": settings.provider},
    )


def create_vector_store(settings: Settings) -> VectorStore:
    store = settings.store
    if store == "jsonl":
        from semtree.infrastructure.vector.jsonl_store import JsonlVectorStore

        return JsonlVectorStore(settings.store_path)
    if store == "memory":
        from semtree.infrastructure.vector.memory_store import InMemoryVectorStore

        return InMemoryVectorStore()

    raise ConfigurationMissingError(f"Unknown vector store: {store}", details={"store": store})


def create_exclusion_store(settings: Settings) -> ExclusionStore | None:
    """Manual exclusions are persisted next to a file-backed store only."""
    if settings.store != "jsonl":
        return None
    from semtree.infrastructure.exclusions import JsonExclusionStore

    return JsonExclusionStore(settings.store_path)


def create_container(settings: Settings) -> Container:
    """Wire a :class:`Container` from *settings*."""
    config = settings.vectorization_config()
    vector_store = create_vector_store(settings)
    embedding_provider = create_embedding_provider(settings)
    summarizer = create_summarizer(settings)
    event_bus = InMemoryEventBus()
    tracker = PathStatusTracker(
        vector_store, config, event_bus, exclusions=create_exclusion_store(settings)
    )
    coordinator = VectorizationCoordinator(
        vector_store,
        embedding_provider,
        config=config,
        summarizer=summarizer,
        tracker=tracker,
        event_bus=event_bus,
    )
    logger.debug(
        "container.created",
        provider=settings.provider,
        model=embedding_provider.model_name,
        store=settings.store,
    )
    return Container(
        settings=settings,
        vector_store=vector_store,
        embedding_provider=embedding_provider,
        summarizer=summarizer,
        event_bus=event_bus,
        tracker=tracker,
        coordinator=coordinator,
    )
