from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel

from ..core.config import get_settings
from ..core.logging import get_logger

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"  # noqa: S105
GITHUB_API_URL = "https://api.github.com"


class GitHubUser(BaseModel):
    id: int
    login: str
    avatar_url: str | None = None


class GitHubClient:
    """OAuth code exchange and identity lookup against GitHub."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.client_id = client_id if client_id is not None else settings.github_client_id
        self._client_secret = (
            client_secret if client_secret is not None else settings.github_client_secret
        )
        self._timeout = timeout if timeout is not None else settings.github_api_timeout
        self._transport = transport
        self._logger = get_logger(__name__)

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def exchange_code(self, code: str, redirect_uri: str | None = None) -> str | None:
        """Trade an authorization code for an access token.

        Returns None when GitHub answers without a token (bad or reused code).
        Transport and HTTP status errors propagate as httpx exceptions.
        """
        body: dict[str, Any] = {
            "client_id": self.client_id,
            "client_secret": self._client_secret,
            "code": code,
        }
        if redirect_uri:
            body["redirect_uri"] = redirect_uri

        with self._client() as client:
            resp = client.post(
                GITHUB_TOKEN_URL,
                headers={"Accept": "application/json"},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()

        token = data.get("access_token")
        if not token:
            self._logger.warning(
                "github.token_exchange_empty", error=data.get("error")
            )
            return None
        return str(token)

    def get_authenticated_user(self, access_token: str) -> GitHubUser:
        with self._client() as client:
            resp = client.get(
                f"{GITHUB_API_URL}/user",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
            resp.raise_for_status()
            return GitHubUser.model_validate(resp.json())
