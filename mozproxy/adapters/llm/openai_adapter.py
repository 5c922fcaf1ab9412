"""
OpenAI Adapter
Chat completions and embeddings
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx
import tiktoken

from mozproxy.adapters.decoding import strict_json_loads
from mozproxy.config import get_settings
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


class OpenAIAdapter(BaseLLMAdapter):
    """Adapter for the OpenAI API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[LLMConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        super().__init__(api_key or settings.OPENAI_API_KEY, config)
        self.api_base = settings.OPENAI_API_BASE.rstrip("/")
        self.embedding_model = settings.OPENAI_EMBEDDING_MODEL
        self.embedding_max_tokens = settings.EMBEDDING_MAX_TOKENS
        self.timeout = settings.LLM_REQUEST_TIMEOUT
        self._default_model = settings.OPENAI_DEFAULT_MODEL
        self._http_client = http_client
        self._tokenizer = None

    @property
    def provider(self) -> LLMProviderType:
        return LLMProviderType.OPENAI

    @property
    def default_model(self) -> str:
        return self._default_model

    def _get_tokenizer(self):
        """Get tiktoken encoder for token counting"""
        if self._tokenizer is None:
            try:
                self._tokenizer = tiktoken.encoding_for_model(self.embedding_model)
            except KeyError:
                self._tokenizer = tiktoken.get_encoding("cl100k_base")
        return self._tokenizer

    def _truncate(self, text: str) -> Tuple[str, bool]:
        # Every token covers at least one UTF-8 byte
        if len(text.encode("utf-8")) <= self.embedding_max_tokens:
            return text, False
        encoder = self._get_tokenizer()
        tokens = encoder.encode(text)
        if len(tokens) <= self.embedding_max_tokens:
            return text, False
        return encoder.decode(tokens[: self.embedding_max_tokens]), True

    async def execute_chat(
        self,
        messages: List[LLMMessage],
        config: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """Execute a chat conversation"""
        cfg = config or self.config or LLMConfig(model=self.default_model)
        request_time = datetime.utcnow()

        payload = {
            "model": cfg.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": cfg.temperature,
            "max_tokens": cfg.max_tokens,
        }
        if cfg.top_p is not None:
            payload["top_p"] = cfg.top_p
        if cfg.stop_sequences:
            payload["stop"] = cfg.stop_sequences

        data = await self._post("/chat/completions", payload, cfg.timeout)
        response_time = datetime.utcnow()

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise LLMAdapterError("Unexpected chat completion shape", self.provider, {"response": data})

        return LLMResponse(
            content=content,
            provider=self.provider,
            model=data.get("model", cfg.model),
            finish_reason=choice.get("finish_reason"),
            usage=self._usage(data),
            latency_ms=self._calculate_latency(request_time, response_time),
        )

    async def embed(
        self,
        inputs: List[str],
        model: Optional[str] = None,
    ) -> LLMEmbeddingResponse:
        """Embed texts, truncating any that exceed the model's token window"""
        request_time = datetime.utcnow()
        prepared = []
        truncated = []
        for i, text in enumerate(inputs):
            text, was_truncated = self._truncate(text)
            prepared.append(text)
            if was_truncated:
                truncated.append(i)

        model = model or self.embedding_model
        data = await self._post("/embeddings", {"model": model, "input": prepared}, self.timeout)
        response_time = datetime.utcnow()

        try:
            rows = sorted(data["data"], key=lambda row: row.get("index", 0))
            embeddings = [row["embedding"] for row in rows]
        except (KeyError, TypeError):
            raise LLMAdapterError("Unexpected embedding shape", self.provider, {"response": data})

        return LLMEmbeddingResponse(
            embeddings=embeddings,
            provider=self.provider,
            model=data.get("model", model),
            usage=self._usage(data),
            truncated_inputs=truncated,
            latency_ms=self._calculate_latency(request_time, response_time),
        )

    def _usage(self, data: Dict[str, Any]) -> LLMUsage:
        usage_data = data.get("usage") or {}
        return LLMUsage(
            prompt_tokens=usage_data.get("prompt_tokens", 0),
            completion_tokens=usage_data.get("completion_tokens", 0),
            total_tokens=usage_data.get("total_tokens", 0),
        )

    async def _post(self, path: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        if not self.api_key:
            raise LLMAuthenticationError("LLM provider is not configured", self.provider)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        url = f"{self.api_base}{path}"

        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, json=payload, headers=headers, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException:
            raise LLMTimeoutError(
                f"Request timed out after {timeout}s",
                self.provider,
            )
        except httpx.RequestError as e:
            raise LLMAdapterError(
                f"Request failed: {str(e)}",
                self.provider,
            )

        if response.status_code == 401:
            raise LLMAuthenticationError(
                "Invalid API key",
                self.provider,
                {"status_code": response.status_code}
            )
        elif response.status_code == 429:
            raise LLMRateLimitError(
                "Rate limit exceeded",
                self.provider,
                {"status_code": response.status_code}
            )
        elif response.status_code != 200:
            raise LLMAdapterError(
                f"API error: {self._error_message(response)}",
                self.provider,
                {"status_code": response.status_code}
            )

        try:
            return strict_json_loads(response.content)
        except ValueError:
            raise LLMAdapterError("LLM provider returned an invalid response", self.provider)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return f"status {response.status_code}"
