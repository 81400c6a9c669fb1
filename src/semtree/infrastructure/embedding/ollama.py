"""Ollama embedding provider (``POST {local_url}/api/embeddings``)."""

from __future__ import annotations

import httpx
import structlog

from semtree.infrastructure.errors import classify_httpx_error, validate_vector

logger = structlog.get_logger(__name__)

PROVIDER_NAME = "Ollama"


class OllamaEmbeddingProvider:
    """Embeds text with a model served by a local Ollama daemon."""

    def __init__(
        self,
        model: str,
        local_url: str = "http://localhost:11434",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model = model
        self._base_url = local_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/api/embeddings"

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialize the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def get_embedding(self, text: str) -> list[float]:
        log = logger.bind(endpoint=self.endpoint, model=self._model)
        try:
            response = await self.client.post(
                self.endpoint,
                json={"model": self._model, "prompt": text},
            )
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            error = classify_httpx_error(
                e, provider=PROVIDER_NAME, endpoint=self.endpoint, timeout=self._timeout
            )
            log.warning("ollama.embedding.error", error=error.message)
            raise error from e

        if not isinstance(data, dict):
            data = {}
        return validate_vector(data.get("embedding"), provider=PROVIDER_NAME, endpoint=self.endpoint)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
