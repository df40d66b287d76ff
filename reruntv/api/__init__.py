"""API routes for RerunTV"""

from fastapi import APIRouter

from .channel import router as channel_router
from .health import router as health_router

# Create the main API router
api_router = APIRouter(prefix="/api")

api_router.include_router(channel_router, tags=["Channel"])
api_router.include_router(health_router, tags=["Health"])

__all__ = ["api_router"]
