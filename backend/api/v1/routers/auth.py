"""
Auth Router — proxies backend login and tracks sessions.
"""

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.deps import get_app_settings, get_backend_transport, get_current_session, get_session_registry
from core.config import Settings
from core.session import Session, SessionRegistry, get_role_value
from integrations.backend_api import BackendAPIClient, BackendAPIError, BackendAuthError

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    user_id: int | None = None
    username: str
    role: str | None = None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    registry: SessionRegistry = Depends(get_session_registry),
    settings: Settings = Depends(get_app_settings),
    transport: httpx.AsyncBaseTransport | None = Depends(get_backend_transport),
):
    try:
        session = await BackendAPIClient.login(body.username, body.password, settings=settings, transport=transport)
    except BackendAuthError as exc:
        logger.info("auth.login_rejected", username=body.username, status_code=exc.status_code)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.detail or "Login failed")
    except (BackendAPIError, httpx.HTTPError) as exc:
        logger.error("auth.login_failed", username=body.username, error=str(exc))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Login service unavailable")

    registry.register(session)
    return LoginResponse(
        token=session.token,
        user_id=session.user_id,
        username=session.username,
        role=get_role_value(session),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    registry.revoke(session.token)
