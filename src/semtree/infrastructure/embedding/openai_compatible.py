"""OpenAI-compatible embedding provider (``POST {base_url}/v1/embeddings``).

Works with LM Studio, llama.cpp server, vLLM and any server speaking the
OpenAI embeddings API.  Uses the official ``openai`` async client pointed
at a custom base URL.
"""

from __future__ import annotations

import httpx
import structlog

from semtree.infrastructure.errors import classify_openai_error, validate_vector

logger = structlog.get_logger(__name__)

PROVIDER_NAME = "OpenAI-compatible server"
NO_API_KEY = "not-needed"


class OpenAICompatibleEmbeddingProvider:
    """Embeds text through an OpenAI-style ``/v1/embeddings`` endpoint."""

    def __init__(
        self,
        model: str,
        base_url: str = "http://localhost:1234",
        api_key: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or NO_API_KEY
        self._timeout = timeout
        self._http_client = http_client
        self._client = None

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/v1/embeddings"

    @property
    def client(self):
        """Lazy initialize the OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                base_url=f"{self._base_url}/v1",
                api_key=self._api_key,
                timeout=self._timeout,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def get_embedding(self, text: str) -> list[float]:
        log = logger.bind(endpoint=self.endpoint, model=self._model)
        try:
            response = await self.client.embeddings.create(
                model=self._model, input=text, encoding_format="float"
            )
        except Exception as e:
            error = classify_openai_error(
                e, provider=PROVIDER_NAME, endpoint=self.endpoint, timeout=self._timeout
            )
            log.warning("openai_compatible.embedding.error", error=error.message)
            raise error from e

        vector = response.data[0].embedding if response.data else None
        return validate_vector(vector, provider=PROVIDER_NAME, endpoint=self.endpoint)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
