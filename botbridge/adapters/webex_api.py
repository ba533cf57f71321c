"""Minimal Webex Teams REST client (bearer token, JSON over httpx)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from botbridge.exceptions import TransportError

logger = logging.getLogger(__name__)

WEBEX_API_URL = "https://webexapis.com/v1"
TIMEOUT_SECONDS = 30


class WebexAPI:
    def __init__(
        self,
        access_token: str,
        base_url: str = WEBEX_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client

    async def _request(
        self, method: str, path: str, payload: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }
        try:
            if self._http_client is not None:
                resp = await self._http_client.request(
                    method, url, headers=headers, json=payload
                )
            else:
                async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
                    resp = await client.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise TransportError(f"Webex API request failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = resp.text
            try:
                detail = resp.json().get("message") or detail
            except ValueError:
                pass
            raise TransportError(
                f"Webex API {method} {path} returned HTTP {resp.status_code}: {detail}",
                resp.status_code,
            )
        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    async def get_me(self) -> dict[str, Any]:
        return await self._request("GET", "/people/me")

    async def get_message(self, message_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/messages/{message_id}")

    async def create_message(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/messages", body)

    async def delete_message(self, message_id: str) -> None:
        await self._request("DELETE", f"/messages/{message_id}")

    async def get_attachment_action(self, action_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/attachment/actions/{action_id}")

    async def list_webhooks(self) -> list[dict[str, Any]]:
        res = await self._request("GET", "/webhooks")
        return res.get("items", [])

    async def create_webhook(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/webhooks", body)

    async def update_webhook(self, webhook_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/webhooks/{webhook_id}", body)
