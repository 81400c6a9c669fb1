"""Tests for the embedding providers and error classification."""

from __future__ import annotations

import json

import httpx
import pytest

from semtree.domain.exceptions import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnreachableError,
)
from semtree.domain.ports import EmbeddingProvider
from semtree.infrastructure.embedding.ollama import OllamaEmbeddingProvider
from semtree.infrastructure.embedding.openai_compatible import OpenAICompatibleEmbeddingProvider


def _ollama(handler, timeout: float = 30.0) -> OllamaEmbeddingProvider:
    return OllamaEmbeddingProvider(
        model="nomic-embed-text",
        local_url="http://ollama.test:11434/",
        timeout=timeout,
        transport=httpx.MockTransport(handler),
    )


def _openai(handler) -> OpenAICompatibleEmbeddingProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleEmbeddingProvider(
        model="text-embedding",
        base_url="http://lmstudio.test:1234",
        timeout=10.0,
        http_client=client,
    )


class TestOllamaEmbeddingProvider:
    def test_satisfies_port(self):
        assert isinstance(_ollama(lambda r: httpx.Response(200)), EmbeddingProvider)

    @pytest.mark.asyncio
    async def test_returns_vector(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

        provider = _ollama(handler)
        assert await provider.get_embedding("hello") == [0.1, 0.2, 0.3]
        assert seen["url"] == "http://ollama.test:11434/api/embeddings"
        assert seen["body"] == {"model": "nomic-embed-text", "prompt": "hello"}
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_timeout_is_classified(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(ProviderTimeoutError) as excinfo:
            await _ollama(handler, timeout=5).get_embedding("x")
        assert excinfo.value.endpoint == "http://ollama.test:11434/api/embeddings"
        assert "5s" in excinfo.value.message
        assert "http://ollama.test:11434/api/embeddings" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_connection_refused_is_classified(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderUnreachableError) as excinfo:
            await _ollama(handler).get_embedding("x")
        assert "ollama.test" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_http_error_is_other(self):
        provider = _ollama(lambda r: httpx.Response(500, text="model not found"))
        with pytest.raises(ProviderError) as excinfo:
            await provider.get_embedding("x")
        assert type(excinfo.value) is ProviderError
        assert excinfo.value.details["status_code"] == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"embedding": []}, {"embedding": None}, {}, ["x"]])
    async def test_empty_or_malformed_vector(self, payload):
        provider = _ollama(lambda r: httpx.Response(200, json=payload))
        with pytest.raises(ProviderError):
            await provider.get_embedding("x")


class TestOpenAICompatibleEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_returns_vector(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "object": "list",
                    "data": [{"object": "embedding", "index": 0, "embedding": [1.0, 2.0]}],
                    "model": "text-embedding",
                    "usage": {"prompt_tokens": 1, "total_tokens": 1},
                },
            )

        provider = _openai(handler)
        assert await provider.get_embedding("hello") == [1.0, 2.0]
        assert seen["url"] == "http://lmstudio.test:1234/v1/embeddings"
        assert seen["body"]["model"] == "text-embedding"
        assert seen["body"]["input"] == "hello"
        assert provider.endpoint == "http://lmstudio.test:1234/v1/embeddings"

    @pytest.mark.asyncio
    async def test_connection_error_is_classified(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderUnreachableError) as excinfo:
            await _openai(handler).get_embedding("x")
        assert excinfo.value.endpoint == "http://lmstudio.test:1234/v1/embeddings"

    @pytest.mark.asyncio
    async def test_timeout_is_classified(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(ProviderTimeoutError):
            await _openai(handler).get_embedding("x")

    @pytest.mark.asyncio
    async def test_status_error_is_other(self):
        provider = _openai(lambda r: httpx.Response(400, json={"error": {"message": "bad"}}))
        with pytest.raises(ProviderError) as excinfo:
            await provider.get_embedding("x")
        assert excinfo.value.details["status_code"] == 400

    @pytest.mark.asyncio
    async def test_empty_data(self):
        provider = _openai(
            lambda r: httpx.Response(200, json={"object": "list", "data": [], "model": "m"})
        )
        with pytest.raises(ProviderError):
            await provider.get_embedding("x")
