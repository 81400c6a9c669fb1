"""OpenAI-compatible summarizer (``POST {base_url}/v1/chat/completions``)."""

from __future__ import annotations

import httpx
import structlog

from semtree.domain.exceptions import ProviderError
from semtree.infrastructure.errors import classify_openai_error
from semtree.infrastructure.summarization.base import LLMSummarizer

logger = structlog.get_logger(__name__)

PROVIDER_NAME = "OpenAI-compatible server"


class OpenAICompatibleSummarizer(LLMSummarizer):
    """Summary service using an OpenAI-style chat endpoint."""

    def __init__(
        self,
        model: str,
        base_url: str = "http://localhost:1234",
        api_key: str | None = None,
        timeout: float = 30.0,
        temperature: float = 0.3,
        http_client: httpx.AsyncClient | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or "not-needed"
        self._timeout = timeout
        self._temperature = temperature
        self._http_client = http_client
        self._client = None

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/v1/chat/completions"

    @property
    def client(self):
        """Lazy initialize OpenAI client."""
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

    async def _complete(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
            )
        except Exception as e:
            error = classify_openai_error(
                e, provider=PROVIDER_NAME, endpoint=self.endpoint, timeout=self._timeout
            )
            logger.warning(
                "openai_compatible.summarize.error", endpoint=self.endpoint, error=error.message
            )
            raise error from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError(f"{PROVIDER_NAME} returned an empty completion", endpoint=self.endpoint)
        return content

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
