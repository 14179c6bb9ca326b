"""
BizDash API Dependencies

Dependency injection for the session registry, the caller's session, and
the per-request dashboard service.
"""

from datetime import datetime, timezone

import httpx
from fastapi import Depends, Header, HTTPException, Request, status

from core.config import Settings, get_settings
from core.session import Session, SessionRegistry
from dashboard.service import DashboardService
from integrations.backend_api import BackendAPIClient

AUTH_SCHEMES = {"token", "bearer"}


def get_app_settings() -> Settings:
    return get_settings()


def get_session_registry(request: Request) -> SessionRegistry:
    """The registry lives on app.state and is created with the app."""
    return request.app.state.sessions


def get_backend_transport() -> httpx.AsyncBaseTransport | None:
    """Default network transport; overridden in tests with a mock transport."""
    return None


def get_now() -> datetime:
    return datetime.now(timezone.utc)


async def get_current_session(
    authorization: str | None = Header(default=None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> Session:
    """Resolve `Authorization: Token <token>` (or Bearer) to a live session."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() not in AUTH_SCHEMES or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    session = registry.get(token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return session


async def get_dashboard_service(
    session: Session = Depends(get_current_session),
    settings: Settings = Depends(get_app_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_backend_transport),
) -> DashboardService:
    client = BackendAPIClient(session, settings=settings, transport=transport)
    return DashboardService(client, settings=settings)
