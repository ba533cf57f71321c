from __future__ import annotations

import logging
from typing import Dict, Optional

from botbridge.adapters import (
    ChannelAdapter,
    FacebookAdapterOptions,
    HangoutsAdapterOptions,
    TwilioAdapterOptions,
    WebexAdapterOptions,
    create_facebook_adapter,
    create_hangouts_adapter,
    create_twilio_adapter,
    create_webex_adapter,
)
from botbridge.adapters import facebook, hangouts, twilio_sms, webex
from botbridge.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: Dict[str, ChannelAdapter] = {}
        self.facebook_options: Optional[FacebookAdapterOptions] = None
        self.webex_options: Optional[WebexAdapterOptions] = None

    def register(self, adapter: ChannelAdapter) -> None:
        if adapter.channel_id in self._adapters:
            raise ValueError(f"Adapter already registered: {adapter.channel_id}")
        self._adapters[adapter.channel_id] = adapter

    def get(self, channel_id: str) -> ChannelAdapter | None:
        return self._adapters.get(channel_id)

    def list_channels(self) -> list[str]:
        return list(self._adapters)


def build_registry(settings: Optional[Settings] = None) -> AdapterRegistry:
    """Build adapters for every enabled platform.

    Raises ConfigurationError when an enabled platform lacks a credential.
    """
    settings = settings or get_settings()
    registry = AdapterRegistry()
    if settings.twilio_enabled:
        registry.register(
            create_twilio_adapter(
                TwilioAdapterOptions(
                    twilio_number=settings.twilio_number,
                    account_sid=settings.twilio_account_sid,
                    auth_token=settings.twilio_auth_token,
                    validation_url=settings.twilio_validation_url,
                )
            )
        )
    if settings.facebook_enabled:
        registry.facebook_options = FacebookAdapterOptions(
            access_token=settings.facebook_access_token,
            app_secret=settings.facebook_app_secret,
            verify_token=settings.facebook_verify_token,
            api_host=settings.facebook_api_host,
            api_version=settings.facebook_api_version,
        )
        registry.register(create_facebook_adapter(registry.facebook_options))
    if settings.hangouts_enabled:
        registry.register(
            create_hangouts_adapter(
                HangoutsAdapterOptions(
                    token=settings.hangouts_token,
                    credentials_file=settings.hangouts_credentials_file,
                )
            )
        )
    if settings.webex_enabled:
        registry.webex_options = WebexAdapterOptions(
            access_token=settings.webex_access_token,
            secret=settings.webex_secret,
            public_address=settings.webex_public_address,
        )
        registry.register(create_webex_adapter(registry.webex_options))
    logger.info("Enabled channels: %s", registry.list_channels() or "none")
    return registry


CHANNEL_IDS = (
    twilio_sms.CHANNEL_ID,
    facebook.CHANNEL_ID,
    hangouts.CHANNEL_ID,
    webex.CHANNEL_ID,
)
