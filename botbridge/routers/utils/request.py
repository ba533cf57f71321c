"""
Adapt a Starlette/FastAPI request to ``WebhookRequest``.

Raw body bytes are read before any parsing so raw-body signatures can be
checked against exactly what the platform sent.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request

from botbridge.schemas.webhook import WebhookRequest

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def public_url(request: Request) -> str:
    """URL as the platform addressed it, honouring proxy forwarding headers."""
    scheme = request.headers.get("x-forwarded-proto", "").split(",")[0].strip()
    host = request.headers.get("x-forwarded-host", "").split(",")[0].strip()
    url = request.url
    if scheme:
        url = url.replace(scheme=scheme)
    if host:
        url = url.replace(netloc=host)
    return str(url)


def parse_body(raw_body: bytes, content_type: str) -> dict[str, Any]:
    """Parse a JSON object or urlencoded form body. Raise ValueError if invalid."""
    if content_type.startswith(FORM_CONTENT_TYPE):
        return dict(parse_qsl(raw_body.decode("utf-8"), keep_blank_values=True))
    if not raw_body:
        return {}
    payload = json.loads(raw_body)
    if not isinstance(payload, dict):
        raise ValueError("Body must be a JSON object")
    return payload


async def build_webhook_request(request: Request) -> WebhookRequest:
    raw_body = await request.body()
    payload = parse_body(raw_body, request.headers.get("content-type", ""))
    return WebhookRequest(
        method=request.method,
        url=public_url(request),
        headers=dict(request.headers),
        query=dict(request.query_params),
        raw_body=raw_body,
        payload=payload,
    )
