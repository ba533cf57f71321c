"""Platform adapters for chat integrations."""

from botbridge.adapters.base import BotLogic, ChannelAdapter
from botbridge.adapters.context import TurnContext
from botbridge.adapters.facebook import FacebookAdapterOptions, create_facebook_adapter
from botbridge.adapters.hangouts import HangoutsAdapterOptions, create_hangouts_adapter
from botbridge.adapters.twilio_sms import TwilioAdapterOptions, create_twilio_adapter
from botbridge.adapters.webex import WebexAdapterOptions, create_webex_adapter

__all__ = [
    "BotLogic",
    "ChannelAdapter",
    "FacebookAdapterOptions",
    "HangoutsAdapterOptions",
    "TurnContext",
    "TwilioAdapterOptions",
    "WebexAdapterOptions",
    "create_facebook_adapter",
    "create_hangouts_adapter",
    "create_twilio_adapter",
    "create_webex_adapter",
]
