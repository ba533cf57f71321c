"""
Webhook routes for inbound chat platform events.

Platforms POST raw events to /webhooks/{channel_id}; the channel adapter
verifies, translates and dispatches them to the bot logic.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response

from botbridge.adapters.base import BotLogic
from botbridge.adapters.facebook import verify_subscription
from botbridge.commands.webhooks import ProcessWebhookCommand
from botbridge.core.registry import AdapterRegistry
from botbridge.routers.utils.dependencies import get_bot_logic, get_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.get("/facebook")
async def facebook_subscription(
    request: Request,
    registry: AdapterRegistry = Depends(get_registry),
) -> PlainTextResponse:
    """Answer Facebook's webhook subscription handshake (hub.challenge)."""
    options = registry.facebook_options
    if options is None:
        raise HTTPException(
            status_code=503,
            detail="Facebook integration is not configured or disabled",
        )
    challenge = verify_subscription(options, request.query_params)
    if challenge is None:
        logger.warning("Facebook subscription handshake failed verify_token check")
        raise HTTPException(status_code=403, detail="Invalid verify token")
    return PlainTextResponse(challenge)


@router.post("/{channel_id}")
async def receive_webhook(
    channel_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    registry: AdapterRegistry = Depends(get_registry),
    logic: BotLogic = Depends(get_bot_logic),
) -> Response:
    """
    Receive a platform webhook. Verify it, hand each activity to the bot
    logic and write back the status/body the turn produced.
    """
    command = ProcessWebhookCommand(registry, logic)
    return await command.execute(channel_id, request, background_tasks)
