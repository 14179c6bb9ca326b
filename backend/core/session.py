"""
BizDash Session Context

An explicit session object carried into the data-access facade and the
dashboard service. The application shell owns the session lifecycle via
SessionRegistry; nothing reads credentials from ambient state.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger()


class UserRole(str, Enum):
    """Roles issued by the backend at login."""

    ADMINISTRATOR = "administrator"
    MANAGER = "manager"
    STAFF = "staff"


@dataclass(frozen=True)
class Session:
    token: str
    user_id: int | None = None
    username: str = ""
    role: UserRole | None = None

    @classmethod
    def from_login_response(cls, payload: dict[str, Any]) -> "Session":
        """Build a session from the backend /login/ response body."""
        token = payload.get("token")
        if not token:
            raise ValueError("Login response did not include a token")
        return cls(
            token=str(token),
            user_id=payload.get("user_id"),
            username=payload.get("username") or "",
            role=parse_role(payload.get("role")),
        )


def parse_role(value: Any) -> UserRole | None:
    """Map a backend role string to UserRole; unknown roles map to None."""
    if isinstance(value, UserRole):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UserRole(value.strip().lower())
    except ValueError:
        return None


# ── Role gating ──────────────────────────────────────────────────────────


def has_permission(session: Session | None, required_roles: Iterable[UserRole]) -> bool:
    """True when the session's role is one of required_roles."""
    if session is None or session.role is None:
        return False
    return session.role in set(required_roles)


def can_write(session: Session | None) -> bool:
    """Only administrators and managers can create, update, or delete."""
    return has_permission(session, [UserRole.ADMINISTRATOR, UserRole.MANAGER])


def is_admin(session: Session | None) -> bool:
    return has_permission(session, [UserRole.ADMINISTRATOR])


def is_manager_or_admin(session: Session | None) -> bool:
    return has_permission(session, [UserRole.ADMINISTRATOR, UserRole.MANAGER])


def is_staff(session: Session | None) -> bool:
    return session is not None and session.role == UserRole.STAFF


def get_user_role(session: Session | None) -> UserRole | None:
    return session.role if session else None


# ── Registry ─────────────────────────────────────────────────────────────


class SessionRegistry:
    """In-process token -> Session map owned by the application shell."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def register(self, session: Session) -> Session:
        self._sessions[session.token] = session
        logger.info("session.registered", username=session.username, role=get_role_value(session))
        return session

    def get(self, token: str) -> Session | None:
        return self._sessions.get(token)

    def revoke(self, token: str) -> None:
        removed = self._sessions.pop(token, None)
        if removed is not None:
            logger.info("session.revoked", username=removed.username)

    def __len__(self) -> int:
        return len(self._sessions)


def get_role_value(session: Session | None) -> str | None:
    role = get_user_role(session)
    return role.value if role else None
