"""
Moz API proxy - Main FastAPI Application
"""

import logging
import os

from fastapi import FastAPI

from mozproxy import __version__
from mozproxy.api.middleware import CORSHeadersMiddleware
from mozproxy.config import get_settings
from mozproxy.errors import ProxyRequestError, proxy_request_error_handler, unhandled_error_handler
from mozproxy.services import METHOD_REGISTRY


def _is_serverless() -> bool:
    """Check if running in serverless environment"""
    return bool(os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME"))


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Factory function to create FastAPI app"""
    settings = get_settings()
    configure_logging()

    application = FastAPI(
        title="Moz API Proxy",
        description="""
        Serverless proxy for the Moz JSON-RPC data API

        Forwards a caller's Moz token verbatim, fans list methods out into one
        upstream call per target or keyword, and returns every call's outcome
        in input order.
        """,
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
    )

    application.add_middleware(CORSHeadersMiddleware)

    application.add_exception_handler(ProxyRequestError, proxy_request_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)

    from mozproxy.api.routes import api_router
    application.include_router(api_router, prefix="/api")

    @application.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.APP_ENV,
            "serverless": _is_serverless(),
        }

    @application.get("/")
    async def root():
        """Root endpoint"""
        return {
            "name": settings.APP_NAME,
            "version": __version__,
            "status": "running",
            "methods": METHOD_REGISTRY.names,
        }

    return application


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "mozproxy.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.WORKERS,
    )
