"""
Call Executor & Aggregator
Runs every call in a batch concurrently and settles each one into an outcome
"""

import asyncio
import logging
from typing import Any, List, Optional

import httpx

from mozproxy.adapters.llm import BaseLLMAdapter, LLMAdapterError, LLMConfig, LLMMessage, get_adapter
from mozproxy.adapters.moz import MozAdapterError, MozClient
from mozproxy.config import get_settings
from mozproxy.schemas import FailureOutcome, Outcome, SuccessOutcome
from mozproxy.services.router import PROVIDER_MOZ, PROVIDER_OPENAI, Batch, CallSpec

logger = logging.getLogger(__name__)

UNEXPECTED_CALL_FAILURE = "The upstream call failed unexpectedly."


class BatchExecutor:
    """
    Executes a batch against its upstream providers.

    Calls run concurrently, bounded by ``max_concurrency``. Every call is
    awaited to completion; a failing call never cancels its siblings, and the
    outcomes come back in batch order.
    """

    def __init__(
        self,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        max_concurrency: Optional[int] = None,
        llm_adapter: Optional[BaseLLMAdapter] = None,
    ):
        self.moz = MozClient(api_key, http_client=http_client)
        self.max_concurrency = max_concurrency or get_settings().MAX_CONCURRENT_CALLS
        self._http_client = http_client
        self._llm_adapter = llm_adapter

    @property
    def llm(self) -> BaseLLMAdapter:
        if self._llm_adapter is None:
            self._llm_adapter = get_adapter("openai", http_client=self._http_client)
        return self._llm_adapter

    async def execute(self, batch: Batch) -> List[Outcome]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(index: int, spec: CallSpec) -> Outcome:
            async with semaphore:
                return await self._settle(index, spec)

        return list(await asyncio.gather(*(run(i, spec) for i, spec in enumerate(batch))))

    async def _settle(self, index: int, spec: CallSpec) -> Outcome:
        try:
            data = await self._dispatch(spec)
        except (MozAdapterError, LLMAdapterError) as e:
            logger.warning(f"Call {index} ({spec.upstream_method}) failed: {e}")
            return FailureOutcome(reason=str(e))
        except Exception:
            logger.exception(f"Call {index} ({spec.upstream_method}) raised unexpectedly")
            return FailureOutcome(reason=UNEXPECTED_CALL_FAILURE)
        return SuccessOutcome(data=data)

    async def _dispatch(self, spec: CallSpec) -> Any:
        if spec.provider == PROVIDER_MOZ:
            return await self.moz.call(spec.upstream_method, spec.payload)
        if spec.provider == PROVIDER_OPENAI:
            return await self._call_llm(spec)
        raise ValueError(f"Unknown provider: {spec.provider}")

    async def _call_llm(self, spec: CallSpec) -> Any:
        payload = spec.payload
        if spec.upstream_method == "chat.completions":
            settings = get_settings()
            config = LLMConfig(
                model=payload.get("model") or self.llm.default_model,
                temperature=payload.get("temperature", settings.LLM_DEFAULT_TEMPERATURE),
                max_tokens=payload.get("max_tokens", settings.LLM_DEFAULT_MAX_TOKENS),
                timeout=settings.LLM_REQUEST_TIMEOUT,
            )
            messages = [LLMMessage(role=m["role"], content=m["content"]) for m in payload["messages"]]
            response = await self.llm.execute_chat(messages, config)
            return response.to_dict()
        if spec.upstream_method == "embeddings":
            response = await self.llm.embed(payload["input"], model=payload.get("model"))
            return response.to_dict()
        raise ValueError(f"Unknown LLM method: {spec.upstream_method}")


async def execute_batch(
    batch: Batch,
    api_key: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Outcome]:
    """Run a batch over one shared HTTP client"""
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.MOZ_REQUEST_TIMEOUT, transport=transport) as http_client:
        executor = BatchExecutor(api_key, http_client=http_client)
        return await executor.execute(batch)
