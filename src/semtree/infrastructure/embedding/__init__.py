"""Embedding provider adapters."""

from semtree.infrastructure.embedding.ollama import OllamaEmbeddingProvider
from semtree.infrastructure.embedding.openai_compatible import OpenAICompatibleEmbeddingProvider

__all__ = ["OllamaEmbeddingProvider", "OpenAICompatibleEmbeddingProvider"]
