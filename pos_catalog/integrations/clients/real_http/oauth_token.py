"""
Bearer credential providers for the catalog source.

Both providers expose ``async get_token() -> str``.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable, Optional

import httpx

from pos_catalog.errors import FetchFailed
from pos_catalog.utils.config_loader import AuthConfig

logger = logging.getLogger(__name__)


class StaticTokenProvider:
    def __init__(self, token: str) -> None:
        self.token = token

    async def get_token(self) -> str:
        return self.token


class OAuthRefreshTokenProvider:
    """Exchanges a long-lived refresh token for short-lived access tokens.

    The access token is cached until ``expiry_margin_seconds`` before the
    ``expires_in`` reported by the token endpoint.
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        *,
        timeout_seconds: float = 20.0,
        expiry_margin_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.timeout_seconds = timeout_seconds
        self.expiry_margin_seconds = expiry_margin_seconds
        self._transport = transport
        self._clock = clock
        self._access_token: Optional[str] = None
        self._expires_at = 0.0

    async def get_token(self) -> str:
        if self._access_token and self._clock() < self._expires_at:
            return self._access_token

        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": self.refresh_token,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.token_url, data=payload)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise FetchFailed(f"Access token request failed: {exc}", payload={"token_url": self.token_url}) from exc

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise FetchFailed("Token endpoint response has no access_token.", payload={"token_url": self.token_url})

        expires_in = float(data.get("expires_in") or 3600)
        self._access_token = str(token)
        self._expires_at = self._clock() + max(0.0, expires_in - self.expiry_margin_seconds)
        logger.debug("Obtained catalog access token (expires in %.0fs)", expires_in)
        return self._access_token


def credentials_from_config(auth: AuthConfig, env=None):
    env = os.environ if env is None else env
    if auth.mode == "oauth_refresh":
        return OAuthRefreshTokenProvider(
            token_url=auth.token_url,
            client_id=env.get(auth.client_id_env, ""),
            client_secret=env.get(auth.client_secret_env, ""),
            refresh_token=env.get(auth.refresh_token_env, ""),
        )
    return StaticTokenProvider(env.get(auth.api_token_env, ""))
