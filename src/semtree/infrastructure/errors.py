"""Translate transport-level failures into classified provider errors."""

from __future__ import annotations

import httpx
import openai

from semtree.domain.exceptions import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnreachableError,
)


def classify_httpx_error(
    error: Exception,
    *,
    provider: str,
    endpoint: str,
    timeout: float,
) -> ProviderError:
    """Map an httpx exception to timeout / unreachable / other."""
    if isinstance(error, ProviderError):
        return error
    if isinstance(error, httpx.TimeoutException):
        return ProviderTimeoutError(provider, endpoint=endpoint, timeout=timeout)
    if isinstance(error, (httpx.ConnectError, httpx.NetworkError)):
        return ProviderUnreachableError(provider, endpoint=endpoint, reason=str(error))
    if isinstance(error, httpx.HTTPStatusError):
        body = error.response.text[:200]
        return ProviderError(
            f"{provider} returned HTTP {error.response.status_code}: {body}",
            endpoint=endpoint,
            details={"status_code": error.response.status_code},
        )
    return ProviderError(f"{provider} request failed: {error}", endpoint=endpoint)


def classify_openai_error(
    error: Exception,
    *,
    provider: str,
    endpoint: str,
    timeout: float,
) -> ProviderError:
    """Map an ``openai`` client exception to timeout / unreachable / other."""
    if isinstance(error, ProviderError):
        return error
    # APITimeoutError subclasses APIConnectionError, so test it first.
    if isinstance(error, openai.APITimeoutError):
        return ProviderTimeoutError(provider, endpoint=endpoint, timeout=timeout)
    if isinstance(error, openai.APIConnectionError):
        return ProviderUnreachableError(provider, endpoint=endpoint, reason=str(error))
    if isinstance(error, openai.APIStatusError):
        return ProviderError(
            f"{provider} returned HTTP {error.status_code}: {error.message}",
            endpoint=endpoint,
            details={"status_code": error.status_code},
        )
    return ProviderError(f"{provider} request failed: {error}", endpoint=endpoint)


def validate_vector(value: object, *, provider: str, endpoint: str) -> list[float]:
    """Reject empty or non-numeric embeddings."""
    if not isinstance(value, list) or not value:
        raise ProviderError(f"{provider} returned an empty or malformed embedding", endpoint=endpoint)
    try:
        return [float(x) for x in value]
    except (TypeError, ValueError) as e:
        raise ProviderError(
            f"{provider} returned a non-numeric embedding", endpoint=endpoint
        ) from e
