"""
API Routes
"""

from fastapi import APIRouter

from .proxy import router as proxy_router

api_router = APIRouter()

api_router.include_router(proxy_router, tags=["Moz Proxy"])
