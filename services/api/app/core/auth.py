"""
Session token codec.

Issues and verifies the signed, time-limited JWT carried in the ``token``
cookie. Verification returns a TokenVerification value rather than raising,
so callers branch on the failure kind explicitly.
"""

import enum
import math
import re
import time
from dataclasses import dataclass
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import JOSEError

from .config import Settings
from .logging import get_logger

logger = get_logger(__name__)

ALGORITHM = "HS256"

_DURATION_RE = re.compile(r"(\d+)(ms|s|m|h|d)")
_UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
}


class InvalidDurationFormat(ValueError):
    """Duration string is not ``<integer><ms|s|m|h|d>``."""


class TokenError(enum.Enum):
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    login: str
    issued_at: int
    expires_at: int | None = None


@dataclass(frozen=True)
class TokenVerification:
    claims: SessionClaims | None = None
    error: TokenError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_duration(expires_in: str) -> int:
    """Convert a duration like ``7d`` or ``1ms`` to milliseconds."""
    match = _DURATION_RE.fullmatch(expires_in or "")
    if not match:
        raise InvalidDurationFormat(f"Invalid expiresIn format: {expires_in}")
    value, unit = match.groups()
    return int(value) * _UNIT_MS[unit]


def issue_token(
    claims: dict[str, Any],
    secret: str,
    expires_in: str | None = None,
    now: float | None = None,
) -> str:
    """
    Sign a session token.

    Args:
        claims: Must include ``sub`` (user id) and ``login``
        secret: HMAC secret
        expires_in: Optional duration string; without it the token never expires
        now: Clock override in epoch seconds

    Returns:
        Encoded JWT string
    """
    issued_at = math.floor(time.time() if now is None else now)
    payload = dict(claims)
    payload["iat"] = issued_at
    if expires_in is not None:
        payload["exp"] = issued_at + parse_duration(expires_in) // 1000

    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str, now: float | None = None) -> TokenVerification:
    """Verify signature and expiry of a session token."""
    try:
        jwt.get_unverified_claims(token)
    except JWTError:
        return TokenVerification(error=TokenError.MALFORMED)

    if not secret:
        return TokenVerification(error=TokenError.INVALID_SIGNATURE)

    try:
        # Expiry is checked below against the injected clock
        payload = jwt.decode(
            token, secret, algorithms=[ALGORITHM], options={"verify_exp": False}
        )
    except JOSEError as e:
        logger.debug("auth.token_signature_invalid", error=str(e))
        return TokenVerification(error=TokenError.INVALID_SIGNATURE)

    current = time.time() if now is None else now
    exp = payload.get("exp")
    if exp is not None and current >= exp:
        return TokenVerification(error=TokenError.EXPIRED)

    subject = payload.get("sub")
    if not subject:
        return TokenVerification(error=TokenError.MALFORMED)

    return TokenVerification(
        claims=SessionClaims(
            user_id=str(subject),
            login=str(payload.get("login", "")),
            issued_at=int(payload.get("iat", 0)),
            expires_at=int(exp) if exp is not None else None,
        )
    )


def create_session_token(user_id: str, login: str, settings: Settings) -> str:
    """Mint the login session token with the configured lifetime."""
    if not settings.jwt_secret_key:
        raise RuntimeError("JWT_SECRET_KEY is not configured")
    token = issue_token(
        {"sub": user_id, "login": login},
        settings.jwt_secret_key,
        expires_in=settings.session_token_expires_in,
    )
    logger.info(
        "auth.token_created", sub=user_id, expires_in=settings.session_token_expires_in
    )
    return token
