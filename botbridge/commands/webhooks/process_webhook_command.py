"""
Command to handle an inbound platform webhook.

Resolves the channel adapter, adapts the HTTP request once, runs the adapter
lifecycle with the bot logic and turns the result into an HTTP response.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import BackgroundTasks, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from botbridge.adapters.base import BotLogic
from botbridge.core.registry import AdapterRegistry
from botbridge.exceptions import TransportError
from botbridge.routers.utils.request import build_webhook_request
from botbridge.schemas.activity import WebhookResponse

logger = logging.getLogger(__name__)


def to_http_response(result: WebhookResponse) -> Response:
    body: Any = result.body
    if body is None:
        return Response(status_code=result.status)
    if isinstance(body, str):
        return PlainTextResponse(body, status_code=result.status)
    return JSONResponse(body, status_code=result.status)


class ProcessWebhookCommand:
    """
    Command to process one webhook delivery for a channel.
    Verification failures are answered with the adapter's rejection status;
    errors raised by the bot logic propagate to the caller.
    """

    def __init__(self, registry: AdapterRegistry, logic: BotLogic) -> None:
        self.registry = registry
        self.logic = logic

    async def execute(
        self,
        channel_id: str,
        request: Request,
        background_tasks: BackgroundTasks,
    ) -> Response:
        """
        Execute the webhook: build the request, run the adapter, respond.

        Args:
            channel_id: Channel path segment, e.g. "twilio-sms".
            request: The incoming webhook request.
            background_tasks: Used when the adapter acknowledges before dispatch.

        Returns:
            Response: status/body produced by the adapter or the bot logic.

        Raises:
            HTTPException: 503 if the channel is not enabled, 400 on an
                unparseable body or payload, 502 if fetching event details
                from the platform failed.
        """
        adapter = self.registry.get(channel_id)
        if adapter is None:
            raise HTTPException(
                status_code=503,
                detail=f"Channel {channel_id} is not configured or disabled",
            )
        try:
            webhook_request = await build_webhook_request(request)
        except ValueError as e:
            logger.warning("%s webhook invalid body: %s", channel_id, e)
            raise HTTPException(status_code=400, detail="Invalid request body") from e

        try:
            result = await adapter.process_activity(webhook_request, self.logic)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("%s webhook parse error: %s", channel_id, e)
            raise HTTPException(
                status_code=400, detail=f"Invalid {channel_id} update"
            ) from e
        except TransportError as e:
            logger.error("%s webhook could not load event details: %s", channel_id, e)
            raise HTTPException(status_code=502, detail="Platform API failed") from e

        if result.deferred is not None:
            background_tasks.add_task(result.deferred)
        return to_http_response(result)
