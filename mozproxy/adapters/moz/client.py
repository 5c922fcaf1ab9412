"""
Moz JSON-RPC Client
Makes single, authenticated calls to the Moz data API
"""

import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from mozproxy.adapters.decoding import strict_json_loads
from mozproxy.config import get_settings

logger = logging.getLogger(__name__)

MALFORMED_RESPONSE_MESSAGE = (
    "The Moz API returned an invalid response (likely HTML). "
    "It may be temporarily busy. Please try again shortly."
)


class MozAdapterError(Exception):
    """Base exception for a failed Moz call"""
    def __init__(self, message: str, method: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.method = method
        self.details = details or {}


class MozUpstreamError(MozAdapterError):
    """Moz answered with a JSON-RPC error object or a non-2xx status"""
    pass


class MozMalformedResponseError(MozAdapterError):
    """Moz answered with a body that is not a JSON-RPC envelope"""
    def __init__(self, method: str, status_code: int, raw_body: str):
        super().__init__(MALFORMED_RESPONSE_MESSAGE, method, {"status_code": status_code})
        self.status_code = status_code
        self.raw_body = raw_body


class MozTransportError(MozAdapterError):
    """The request never produced a response (network failure, timeout)"""
    pass


def build_rpc_payload(method: str, params: Any) -> Dict[str, Any]:
    """Wrap a method call in a JSON-RPC 2.0 envelope with a fresh id"""
    return {
        "jsonrpc": "2.0",
        "id": str(uuid.uuid4()),
        "method": method,
        "params": params,
    }


class MozClient:
    """
    Client for the Moz JSON-RPC endpoint.

    The caller's token is forwarded verbatim in the token header. Pass a shared
    ``httpx.AsyncClient`` to reuse connections across a batch; without one a
    client is opened per call.
    """

    def __init__(
        self,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.api_key = api_key
        self.endpoint = endpoint or settings.MOZ_API_ENDPOINT
        self.timeout = timeout or settings.MOZ_REQUEST_TIMEOUT
        self.token_header = settings.MOZ_TOKEN_HEADER
        self._http_client = http_client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            self.token_header: self.api_key,
        }

    async def call(self, method: str, params: Any) -> Any:
        """
        Make one JSON-RPC call and return its ``result``.

        Raises:
            MozUpstreamError: Structured error object or non-2xx status
            MozMalformedResponseError: Body did not parse as a JSON object
            MozTransportError: No response was received
        """
        payload = build_rpc_payload(method, params)

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self.endpoint, json=payload, headers=self.headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.endpoint, json=payload, headers=self.headers)
        except httpx.TimeoutException:
            raise MozTransportError(f"Request timed out after {self.timeout}s", method)
        except httpx.RequestError as e:
            raise MozTransportError(f"Request failed: {str(e)}", method)

        return self._parse_response(method, response)

    def _parse_response(self, method: str, response: httpx.Response) -> Any:
        try:
            data = strict_json_loads(response.content)
        except ValueError:
            data = None

        if not isinstance(data, dict):
            self._log_malformed(method, response)
            raise MozMalformedResponseError(method, response.status_code, response.text)

        error = data.get("error")
        if not response.is_success or error:
            message = None
            if isinstance(error, dict):
                message = error.get("message")
            elif isinstance(error, str):
                message = error
            raise MozUpstreamError(
                message or f"API returned status {response.status_code}",
                method,
                {"status_code": response.status_code, "error": error},
            )

        return data.get("result")

    def _log_malformed(self, method: str, response: httpx.Response) -> None:
        limit = get_settings().MALFORMED_BODY_LOG_CHARS
        logger.error(
            f"Failed to parse JSON from Moz API for {method} (status {response.status_code}). "
            "The API might be temporarily unavailable."
        )
        logger.error(f"API response text: {response.text[:limit]}")
