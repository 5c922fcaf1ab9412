"""
Base LLM Adapter Interface
LLM providers used by the proxy implement this interface
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class LLMProviderType(str, Enum):
    """Supported LLM providers"""
    OPENAI = "openai"


@dataclass
class LLMConfig:
    """Configuration for LLM request"""
    model: str
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout: int = 60  # seconds
    top_p: Optional[float] = None
    stop_sequences: Optional[List[str]] = None


@dataclass
class LLMMessage:
    """A message in the conversation"""
    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class LLMUsage:
    """Token usage information"""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class LLMResponse:
    """Standardized chat response"""
    content: str
    provider: LLMProviderType
    model: str
    finish_reason: Optional[str] = None
    usage: Optional[LLMUsage] = None
    latency_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "provider": self.provider.value,
            "model": self.model,
            "finish_reason": self.finish_reason,
            "usage": asdict(self.usage) if self.usage else None,
            "latency_ms": self.latency_ms,
        }


@dataclass
class LLMEmbeddingResponse:
    """Standardized embedding response, one vector per input"""
    embeddings: List[List[float]]
    provider: LLMProviderType
    model: str
    usage: Optional[LLMUsage] = None
    truncated_inputs: List[int] = field(default_factory=list)
    latency_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "embeddings": self.embeddings,
            "provider": self.provider.value,
            "model": self.model,
            "usage": asdict(self.usage) if self.usage else None,
            "truncated_inputs": self.truncated_inputs,
            "latency_ms": self.latency_ms,
        }


class BaseLLMAdapter(ABC):
    """
    Abstract base class for LLM adapters.
    """

    def __init__(self, api_key: str, config: Optional[LLMConfig] = None):
        self.api_key = api_key
        self.config = config

    @property
    @abstractmethod
    def provider(self) -> LLMProviderType:
        """Return the provider type"""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Return the default chat model for this provider"""
        pass

    @abstractmethod
    async def execute_chat(
        self,
        messages: List[LLMMessage],
        config: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """
        Execute a multi-turn chat conversation.

        Args:
            messages: List of messages in the conversation
            config: Optional configuration override

        Returns:
            LLMResponse with standardized response data
        """
        pass

    @abstractmethod
    async def embed(
        self,
        inputs: List[str],
        model: Optional[str] = None,
    ) -> LLMEmbeddingResponse:
        """
        Create embeddings for a list of texts.

        Args:
            inputs: Texts to embed
            model: Optional embedding model override

        Returns:
            LLMEmbeddingResponse with vectors in input order
        """
        pass

    def _calculate_latency(self, start: datetime, end: datetime) -> int:
        """Calculate latency in milliseconds"""
        return int((end - start).total_seconds() * 1000)


class LLMAdapterError(Exception):
    """Base exception for LLM adapter errors"""
    def __init__(self, message: str, provider: LLMProviderType, details: Optional[Dict] = None):
        super().__init__(message)
        self.provider = provider
        self.details = details or {}


class LLMRateLimitError(LLMAdapterError):
    """Rate limit exceeded"""
    pass


class LLMAuthenticationError(LLMAdapterError):
    """Authentication failed"""
    pass


class LLMTimeoutError(LLMAdapterError):
    """Request timed out"""
    pass
