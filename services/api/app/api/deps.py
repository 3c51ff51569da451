from collections.abc import Generator
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Cookie, Depends, Request
from sqlalchemy.orm import Session

from ..core.auth import SessionClaims, verify_token
from ..core.config import get_settings
from ..core.errors import Unauthorized
from ..core.logging import get_logger
from ..db import get_sessionmaker
from ..services.github_client import GitHubClient
from ..services.session_store import DatabaseSessionStore, SessionStore

logger = get_logger(__name__)

SESSION_TOKEN_COOKIE = "token"  # noqa: S105
SESSION_ID_COOKIE = "session_id"


@dataclass(frozen=True)
class RequestContext:
    """Per-request identity handed to handlers as an explicit argument."""

    user: Optional[SessionClaims] = None
    request_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str:
        if self.user is None:
            raise Unauthorized()
        return self.user.user_id


def get_db_session() -> Generator[Session, None, None]:
    SessionLocal = get_sessionmaker()
    with SessionLocal() as session:
        yield session


def _request_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get("request_id")


def _verify_cookie(token: str) -> Optional[SessionClaims]:
    result = verify_token(token, get_settings().jwt_secret_key or "")
    if not result.ok:
        logger.warning("auth.invalid_token", reason=result.error.value)
        return None
    return result.claims


def require_auth(
    token: Optional[str] = Cookie(None, alias=SESSION_TOKEN_COOKIE),
) -> RequestContext:
    """
    Dependency guarding authenticated endpoints.

    Raises:
        Unauthorized: 401 when the cookie is missing, or with a generic
            "Invalid token" message when it fails verification
    """
    if not token:
        logger.warning("auth.missing_credentials")
        raise Unauthorized("Unauthorized")

    claims = _verify_cookie(token)
    if claims is None:
        raise Unauthorized("Invalid token")

    return RequestContext(user=claims, request_id=_request_id())


def optional_auth(
    token: Optional[str] = Cookie(None, alias=SESSION_TOKEN_COOKIE),
) -> RequestContext:
    """
    Optional authentication dependency.

    Returns an anonymous context for a missing or invalid token instead of
    rejecting the request.
    """
    claims = _verify_cookie(token) if token else None
    return RequestContext(user=claims, request_id=_request_id())


def get_session_store(
    request: Request, session: Session = Depends(get_db_session)
) -> SessionStore:
    if get_settings().session_store_backend == "database":
        return DatabaseSessionStore(session)
    return request.app.state.session_store


def get_github_client() -> GitHubClient:
    return GitHubClient()
