"""
GitHub OAuth handshake.

Idle -> AwaitingCallback (start) -> Authenticated (complete). The CSRF token
is bound to a server-side session record keyed by the ``session_id`` cookie,
so the two legs can be served by independent workers.
"""
from __future__ import annotations

import hmac
import secrets
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.auth import create_session_token
from ..core.config import Settings
from ..core.crypto import encrypt
from ..core.errors import ApiError, NotFound, UpstreamFailure, ValidationError
from ..core.logging import get_logger
from ..db import upsert_insert
from ..models.mixins import new_id
from ..models.users import User
from .github_client import GITHUB_AUTHORIZE_URL, GitHubClient, GitHubUser
from .session_store import Clock, SessionStore

logger = get_logger(__name__)

SESSION_TTL_SECONDS = 10 * 60


class InvalidCallbackParameters(ValidationError):
    default_message = "Invalid callback parameters"


class SessionNotFound(ValidationError):
    default_message = "Session not found"


class CsrfMismatch(ValidationError):
    default_message = "CSRF token mismatch"


class TokenExchangeFailed(UpstreamFailure):
    default_message = "Failed to get access token"


class AuthenticationFailed(UpstreamFailure):
    default_message = "Authentication failed"


class UserNotFound(NotFound):
    default_message = "User not found"


@dataclass(frozen=True)
class OAuthStart:
    session_id: str
    csrf_token: str
    authorize_url: str


@dataclass(frozen=True)
class OAuthResult:
    user: User
    token: str


class OAuthHandshake:
    def __init__(
        self,
        store: SessionStore,
        github: GitHubClient,
        settings: Settings,
        clock: Clock = time.time,
    ) -> None:
        self._store = store
        self._github = github
        self._settings = settings
        self._clock = clock

    def start(self, redirect_uri: str) -> OAuthStart:
        session_id = secrets.token_urlsafe(24)
        csrf_token = secrets.token_urlsafe(32)
        now_ms = int(self._clock() * 1000)

        self._store.put(
            session_id,
            {
                "csrfToken": csrf_token,
                "createdAt": now_ms,
                "expiresAt": now_ms + SESSION_TTL_SECONDS * 1000,
            },
            SESSION_TTL_SECONDS,
        )

        params = {
            "client_id": self._github.client_id or "",
            "redirect_uri": redirect_uri,
            "scope": self._settings.github_oauth_scopes,
            "state": csrf_token,
        }
        logger.info("oauth.started")
        return OAuthStart(
            session_id=session_id,
            csrf_token=csrf_token,
            authorize_url=f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}",
        )

    def complete(
        self,
        db: Session,
        code: str | None,
        state: str | None,
        session_id: str | None,
        redirect_uri: str | None = None,
    ) -> OAuthResult:
        if not code or not state or not session_id:
            raise InvalidCallbackParameters()

        record = self._store.get(session_id)
        if record is None or self._is_expired(record):
            logger.warning("oauth.session_not_found")
            raise SessionNotFound()

        # CSRF check precedes any call to GitHub
        expected = str(record.get("csrfToken", ""))
        if not hmac.compare_digest(expected.encode("utf-8"), state.encode("utf-8")):
            logger.warning("oauth.csrf_mismatch")
            raise CsrfMismatch()

        try:
            access_token = self._github.exchange_code(code, redirect_uri)
            if not access_token:
                raise TokenExchangeFailed()

            github_user = self._github.get_authenticated_user(access_token)
            encrypted = encrypt(access_token, self._settings.encryption_key or "")
            user = upsert_github_user(db, github_user, encrypted)
            token = create_session_token(user.id, user.login, self._settings)
        except ApiError:
            db.rollback()
            raise
        except Exception as exc:  # noqa: BLE001 - detail stays server-side
            db.rollback()
            logger.error(
                "oauth.callback_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise AuthenticationFailed() from exc

        self._store.delete(session_id)
        logger.info("oauth.completed", user_id=user.id, github_id=user.github_id)
        return OAuthResult(user=user, token=token)

    def _is_expired(self, record: dict) -> bool:
        expires_at = record.get("expiresAt")
        if expires_at is None:
            return False
        return self._clock() * 1000 >= float(expires_at)


def upsert_github_user(db: Session, github_user: GitHubUser, encrypted_token: str) -> User:
    """Insert or update the user for a GitHub account in one statement."""
    now = datetime.now(UTC)
    stmt = upsert_insert(db, User).values(
        id=new_id(),
        github_id=github_user.id,
        login=github_user.login,
        avatar_url=github_user.avatar_url,
        access_token=encrypted_token,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[User.github_id],
        set_={
            "login": stmt.excluded.login,
            "avatar_url": stmt.excluded.avatar_url,
            "access_token": stmt.excluded.access_token,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.execute(stmt)
    db.commit()

    user = db.execute(
        select(User)
        .where(User.github_id == github_user.id)
        .execution_options(populate_existing=True)
    ).scalar_one()
    return user


def load_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        logger.warning("auth.user_missing_for_token", user_id=user_id)
        raise UserNotFound()
    return user
