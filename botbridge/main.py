"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from botbridge.adapters import webex
from botbridge.adapters.base import BotLogic
from botbridge.config import Settings, get_settings
from botbridge.core.logic import echo_logic
from botbridge.core.registry import AdapterRegistry, build_registry
from botbridge.exceptions import TransportError
from botbridge.infra.logging_config import configure_logging
from botbridge.routers import outbound, system, webhooks

logger = logging.getLogger(__name__)

WEBEX_WEBHOOK_PATH = f"/webhooks/{webex.CHANNEL_ID}"


async def _register_webex_webhooks(registry: AdapterRegistry) -> None:
    options = registry.webex_options
    adapter = registry.get(webex.CHANNEL_ID)
    if options is None or adapter is None or not options.public_address:
        return
    api = adapter.transport.api
    try:
        await webex.register_webhook_subscription(api, options, WEBEX_WEBHOOK_PATH)
        await webex.register_adaptive_card_webhook_subscription(
            api, options, WEBEX_WEBHOOK_PATH
        )
    except TransportError as e:
        logger.error("Failed to register Webex webhooks: %s", e)


def create_app(
    testing: bool = False,
    settings: Optional[Settings] = None,
    registry: Optional[AdapterRegistry] = None,
    logic: Optional[BotLogic] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    registry = registry if registry is not None else build_registry(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if not testing:
            await _register_webex_webhooks(registry)
        yield

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.bot_logic = logic or echo_logic

    app.include_router(webhooks.router)
    app.include_router(outbound.router)
    app.include_router(system.router)
    return app
