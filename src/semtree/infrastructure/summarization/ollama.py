"""Ollama summarizer (``POST {local_url}/api/generate``)."""

from __future__ import annotations

import httpx
import structlog

from semtree.domain.exceptions import ProviderError
from semtree.infrastructure.errors import classify_httpx_error
from semtree.infrastructure.summarization.base import LLMSummarizer

logger = structlog.get_logger(__name__)

PROVIDER_NAME = "Ollama"


class OllamaSummarizer(LLMSummarizer):
    """Summarizes text with a local Ollama model."""

    def __init__(
        self,
        model: str,
        local_url: str = "http://localhost:11434",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._model = model
        self._base_url = local_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/api/generate"

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.client.post(
                self.endpoint,
                json={"model": self._model, "prompt": prompt, "stream": False},
            )
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            error = classify_httpx_error(
                e, provider=PROVIDER_NAME, endpoint=self.endpoint, timeout=self._timeout
            )
            logger.warning("ollama.summarize.error", endpoint=self.endpoint, error=error.message)
            raise error from e

        text = data.get("response") if isinstance(data, dict) else None
        if not text:
            raise ProviderError(f"{PROVIDER_NAME} returned an empty response", endpoint=self.endpoint)
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
