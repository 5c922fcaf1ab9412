"""
Moz JSON-RPC adapter
"""

from .client import (
    MALFORMED_RESPONSE_MESSAGE,
    MozAdapterError,
    MozClient,
    MozMalformedResponseError,
    MozTransportError,
    MozUpstreamError,
    build_rpc_payload,
)

__all__ = [
    "MozClient",
    "build_rpc_payload",
    "MALFORMED_RESPONSE_MESSAGE",
    # Exceptions
    "MozAdapterError",
    "MozUpstreamError",
    "MozMalformedResponseError",
    "MozTransportError",
]
