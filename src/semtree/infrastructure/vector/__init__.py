"""Vector store adapters."""

from semtree.infrastructure.vector.jsonl_store import JsonlVectorStore
from semtree.infrastructure.vector.memory_store import InMemoryVectorStore

__all__ = ["InMemoryVectorStore", "JsonlVectorStore"]
