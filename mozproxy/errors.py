"""
Request-level errors and their HTTP rendering
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from mozproxy.config import get_settings

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal server error occurred."


class ProxyRequestError(Exception):
    """Base exception for problems with the inbound request itself"""
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(ProxyRequestError):
    """Required top-level fields are missing or malformed"""
    pass


class InvalidMethodError(ProxyRequestError):
    """The logical method name is not in the registry"""
    pass


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def proxy_request_error_handler(request: Request, exc: ProxyRequestError) -> JSONResponse:
    logger.info(f"Rejected request to {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message)


def internal_error_response(exc: Exception) -> JSONResponse:
    """
    Log an unexpected failure and render a generic 500.

    CORS headers are set here as well: a 500 raised past the middleware stack
    is rendered by Starlette's ServerErrorMiddleware, outside our own.
    """
    settings = get_settings()
    logger.error(f"Proxy server error: {exc}", exc_info=exc)
    extra = {"type": type(exc).__name__} if settings.DEBUG else {}
    response = error_response(500, INTERNAL_ERROR_MESSAGE, **extra)
    response.headers.update(settings.cors_headers)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors without leaking details to the caller"""
    return internal_error_response(exc)
