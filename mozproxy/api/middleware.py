"""
CORS header middleware for the single known browser origin
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from mozproxy.config import get_settings


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Stamps the Access-Control-Allow-* headers on every response"""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in get_settings().cors_headers.items():
            response.headers[name] = value
        return response
