"""Minimal Facebook Graph API client used to deliver Messenger messages."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Optional

import httpx

from botbridge.exceptions import TransportError

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 30


def get_app_secret_proof(access_token: str, app_secret: Optional[str]) -> str:
    """HMAC-SHA256 of the access token keyed by the app secret."""
    return hmac.new(
        (app_secret or "").encode("utf-8"),
        access_token.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class FacebookAPI:
    def __init__(
        self,
        token: str,
        secret: Optional[str],
        api_host: str = "graph.facebook.com",
        api_version: str = "v3.2",
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not token:
            raise TransportError("Token is required!")
        self.token = token
        self.secret = secret
        self.api_host = api_host
        self.api_version = api_version
        self._http_client = http_client

    async def call_api(
        self, path: str, method: str = "POST", payload: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """Call ``path`` (e.g. ``/me/messages``) and return the decoded JSON body."""
        url = f"https://{self.api_host}/{self.api_version}{path}"
        params = {
            "access_token": self.token,
            "appsecret_proof": get_app_secret_proof(self.token, self.secret),
        }
        try:
            if self._http_client is not None:
                resp = await self._http_client.request(
                    method, url, params=params, json=payload
                )
            else:
                async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
                    resp = await client.request(method, url, params=params, json=payload)
        except httpx.HTTPError as exc:
            raise TransportError(f"Facebook API request failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise TransportError(message or "Facebook API error", resp.status_code)
        if resp.status_code >= 400:
            raise TransportError(
                f"Facebook API returned HTTP {resp.status_code}", resp.status_code
            )
        return body
