"""
FastAPI application entry point for the Lead Analytics API.

Configures logging, CORS, the analytics router and the AnalyticsError
handler, and manages the database pool over the application lifespan.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lead_analytics.api import api_router
from lead_analytics.core.database import close_db, init_db
from lead_analytics.core.errors import AnalyticsError


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup and shutdown.

    On startup the database pool is initialized; a failure is logged and
    startup continues so the health endpoint stays reachable.
    On shutdown the pool is closed.
    """
    logger.info("Lead Analytics API starting")
    try:
        await init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Lead Analytics API shutting down")
    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


app = FastAPI(
    title="Lead Analytics API",
    version="1.0.0",
    description=(
        "Analytics backend for the lead-generation CRM. "
        "Provides location, source, pipeline, growth, KPI, timeline, funnel, "
        "heatmap, comparison, ranking and cost dashboards."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError) -> JSONResponse:
    """Map engine validation errors to HTTP 400 with their structured code."""
    logger.warning(f"Rejected {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "code": exc.code, "details": exc.details},
    )


app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "Lead Analytics API",
        "version": "1.0.0",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lead_analytics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
