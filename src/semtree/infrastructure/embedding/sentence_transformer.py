"""Sentence-transformers based EmbeddingProvider.

Wraps a HuggingFace sentence-transformers model for in-process embedding
generation.  Requires the ``local`` extra.
"""

from __future__ import annotations

import asyncio


class SentenceTransformerEmbeddingProvider:
    """Local embedding model using sentence-transformers."""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2") -> None:
        from sentence_transformers import SentenceTransformer

        self._model = SentenceTransformer(model_name)
        self._model_name = model_name
        self._dimensions = self._model.get_sentence_embedding_dimension()

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def endpoint(self) -> str:
        return f"local://{self._model_name}"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def get_embedding(self, text: str) -> list[float]:
        embedding = await asyncio.to_thread(self._model.encode, text, show_progress_bar=False)
        return [float(x) for x in embedding.tolist()]

    async def aclose(self) -> None:
        return None
