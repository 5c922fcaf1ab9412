"""
Moz Proxy Routes
"""

import json
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from mozproxy.errors import InvalidRequestError, ProxyRequestError, internal_error_response
from mozproxy.schemas import ProxyRequest, envelope
from mozproxy.services import METHOD_REGISTRY, execute_batch

logger = logging.getLogger(__name__)

router = APIRouter()


def get_upstream_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for outbound calls; None uses the network"""
    return None


async def _parse_proxy_request(request: Request) -> ProxyRequest:
    try:
        body = json.loads(await request.body() or b"{}")
    except ValueError:
        raise InvalidRequestError("Request body must be valid JSON.")
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object.")
    try:
        return ProxyRequest.model_validate(body)
    except ValidationError:
        raise InvalidRequestError("Invalid request body.")


@router.options("/getMozData")
async def preflight():
    """Browser preflight; CORS headers are added by middleware"""
    return Response(status_code=200)


@router.post("/getMozData")
async def get_moz_data(
    request: Request,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
):
    """
    Forward one logical method to the Moz API.

    List methods fan out one upstream call per target or keyword. The body is
    always an array of ``{status, data}`` / ``{status, reason}`` records in
    input order, single-shot methods included.
    """
    proxy_request = await _parse_proxy_request(request)

    if not proxy_request.api_key or not proxy_request.method:
        raise InvalidRequestError("Missing API Key or method.")

    try:
        batch = METHOD_REGISTRY.build_batch(proxy_request.method, proxy_request.params)
        handler = METHOD_REGISTRY.get(proxy_request.method)
        kind = "single-shot" if handler.single_shot else "fan-out"
        logger.info(f"Dispatching {proxy_request.method} ({kind}) as {len(batch)} upstream call(s)")
        outcomes = await execute_batch(batch, proxy_request.api_key, transport=transport)
        return JSONResponse(status_code=200, content=envelope(outcomes))
    except ProxyRequestError:
        raise
    except Exception as exc:
        return internal_error_response(exc)
