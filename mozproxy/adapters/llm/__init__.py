"""
LLM Adapters - interface to the secondary LLM provider
"""

from typing import Optional

import httpx

from .base import (
    BaseLLMAdapter,
    LLMConfig,
    LLMEmbeddingResponse,
    LLMMessage,
    LLMResponse,
    LLMUsage,
    LLMProviderType,
    LLMAdapterError,
    LLMRateLimitError,
    LLMAuthenticationError,
    LLMTimeoutError,
)
from .openai_adapter import OpenAIAdapter


def get_adapter(
    provider: str = "openai",
    api_key: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> BaseLLMAdapter:
    """
    Factory function to get the appropriate LLM adapter.

    Raises:
        ValueError: If provider is not supported
    """
    adapters = {
        "openai": OpenAIAdapter,
    }

    if provider not in adapters:
        raise ValueError(f"Unsupported provider: {provider}. Must be one of {list(adapters.keys())}")

    return adapters[provider](api_key=api_key, http_client=http_client)


__all__ = [
    # Factory
    "get_adapter",
    # Base classes
    "BaseLLMAdapter",
    "LLMConfig",
    "LLMEmbeddingResponse",
    "LLMMessage",
    "LLMResponse",
    "LLMUsage",
    "LLMProviderType",
    # Exceptions
    "LLMAdapterError",
    "LLMRateLimitError",
    "LLMAuthenticationError",
    "LLMTimeoutError",
    # Adapters
    "OpenAIAdapter",
]
