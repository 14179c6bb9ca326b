"""
BizDash API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.session import SessionRegistry

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info(
        "BizDash API starting up",
        version=settings.app_version,
        backend=settings.api_root,
        timezone=settings.business_timezone,
    )
    yield
    logger.info("BizDash API shutting down", active_sessions=len(app.state.sessions))


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Business dashboard analytics over the inventory and invoicing backend",
    lifespan=lifespan,
)
app.state.sessions = SessionRegistry()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import auth, dashboard

app.include_router(auth.router)
app.include_router(dashboard.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
