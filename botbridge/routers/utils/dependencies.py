from fastapi import Request

from botbridge.adapters.base import BotLogic
from botbridge.config import Settings
from botbridge.core.registry import AdapterRegistry


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> AdapterRegistry:
    return request.app.state.registry


def get_bot_logic(request: Request) -> BotLogic:
    return request.app.state.bot_logic
