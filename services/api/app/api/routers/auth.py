"""
Authentication router.

GitHub OAuth login, logout, and current-user lookup. The session token is
only ever transported in the HttpOnly ``token`` cookie.
"""
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ...core.auth import parse_duration
from ...core.config import Settings, get_settings
from ...core.logging import get_logger
from ...core.observability import OAUTH_LOGINS
from ...schemas.auth import LogoutResponse, UserInfo
from ...services.github_client import GitHubClient
from ...services.oauth import (
    SESSION_TTL_SECONDS,
    OAuthHandshake,
    load_user,
)
from ...services.session_store import SessionStore
from ..deps import (
    SESSION_ID_COOKIE,
    SESSION_TOKEN_COOKIE,
    RequestContext,
    get_db_session,
    get_github_client,
    get_session_store,
    optional_auth,
    require_auth,
)

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = get_logger(__name__)


def _redirect_uri(request: Request, settings: Settings) -> str:
    if settings.oauth_redirect_uri:
        return settings.oauth_redirect_uri
    return f"{str(request.base_url).rstrip('/')}/auth/callback"


def _cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


@router.get("/github")
def github_login(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    github: GitHubClient = Depends(get_github_client),
) -> RedirectResponse:
    """Start the OAuth flow and redirect to GitHub's consent page."""
    settings = get_settings()
    handshake = OAuthHandshake(store, github, settings)
    started = handshake.start(_redirect_uri(request, settings))

    response = RedirectResponse(started.authorize_url, status_code=302)
    response.set_cookie(
        SESSION_ID_COOKIE,
        started.session_id,
        max_age=SESSION_TTL_SECONDS,
        **_cookie_options(settings),
    )
    return response


@router.get("/callback")
def github_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    session_id: Optional[str] = Cookie(None, alias=SESSION_ID_COOKIE),
    store: SessionStore = Depends(get_session_store),
    github: GitHubClient = Depends(get_github_client),
    session: Session = Depends(get_db_session),
) -> RedirectResponse:
    """Finish the OAuth flow, set the session cookie and go to the dashboard."""
    settings = get_settings()
    handshake = OAuthHandshake(store, github, settings)
    try:
        result = handshake.complete(
            session,
            code=code,
            state=state,
            session_id=session_id,
            redirect_uri=_redirect_uri(request, settings),
        )
    except Exception as exc:
        OAUTH_LOGINS.labels(outcome=type(exc).__name__).inc()
        raise
    OAUTH_LOGINS.labels(outcome="success").inc()

    response = RedirectResponse(f"{settings.frontend_url}/dashboard", status_code=302)
    response.set_cookie(
        SESSION_TOKEN_COOKIE,
        result.token,
        max_age=parse_duration(settings.session_token_expires_in) // 1000,
        **_cookie_options(settings),
    )
    response.delete_cookie(SESSION_ID_COOKIE, **_cookie_options(settings))
    return response


@router.post("/logout", response_model=LogoutResponse)
def logout(response: Response) -> LogoutResponse:
    """Clear the session cookie. Always succeeds."""
    response.delete_cookie(SESSION_TOKEN_COOKIE, **_cookie_options(get_settings()))
    return LogoutResponse(success=True)


@router.get("/me", response_model=UserInfo)
def get_current_user_info(
    ctx: RequestContext = Depends(require_auth),
    session: Session = Depends(get_db_session),
) -> UserInfo:
    """Return the stored profile of the authenticated user."""
    logger.info("auth.get_user_info", sub=ctx.user_id)
    user = load_user(session, ctx.user_id)
    return UserInfo.model_validate(user)


@router.get("/status")
def auth_status(ctx: RequestContext = Depends(optional_auth)) -> dict:
    """Report whether the caller holds a valid session, without a 401."""
    if not ctx.is_authenticated:
        return {"authenticated": False}
    return {"authenticated": True, "id": ctx.user.user_id, "login": ctx.user.login}
