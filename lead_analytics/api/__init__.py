"""
Lead Analytics API package initialization.

This package contains the FastAPI router modules:
- analytics: Dashboard analytics endpoints (mounted under /analytics)
"""

from fastapi import APIRouter

from lead_analytics.api.analytics import router as analytics_router

# Create main API router
api_router = APIRouter()

# analytics router carries its own /analytics prefix
api_router.include_router(analytics_router)

__all__ = [
    "api_router",
    "analytics_router",
]
