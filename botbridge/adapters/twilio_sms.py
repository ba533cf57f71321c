"""
Twilio SMS platform adapter.

Inbound: form-encoded webhook signed with X-Twilio-Signature (HMAC over the
public URL plus sorted form parameters). Outbound: Messages API through the
official ``twilio`` client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.async_http_client import AsyncTwilioHttpClient
from twilio.request_validator import RequestValidator
from twilio.rest import Client

from botbridge.adapters.base import ChannelAdapter
from botbridge.exceptions import (
    ConfigurationError,
    TransportError,
    UnsupportedOperationError,
)
from botbridge.schemas.activity import (
    Activity,
    ActivityType,
    ConversationReference,
    ResourceResponse,
)
from botbridge.schemas.webhook import WebhookRequest

logger = logging.getLogger(__name__)

CHANNEL_ID = "twilio-sms"
SIGNATURE_HEADER = "X-Twilio-Signature"


@dataclass(frozen=True)
class TwilioAdapterOptions:
    twilio_number: Optional[str] = None
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    # Public webhook URL; wins over the request-derived URL behind proxies
    validation_url: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("twilio_number", "account_sid", "auth_token"):
            if not getattr(self, name):
                raise ConfigurationError(
                    f"{name} is a required part of the configuration."
                )


class TwilioSignatureVerifier:
    rejection_status = 400

    def __init__(self, options: TwilioAdapterOptions) -> None:
        self._options = options
        self._validator = RequestValidator(options.auth_token)

    def verify(self, request: WebhookRequest) -> bool:
        signature = request.header(SIGNATURE_HEADER)
        if not signature:
            return False
        url = self._options.validation_url or request.url
        return bool(self._validator.validate(url, dict(request.payload), signature))


class TwilioInboundTranslator:
    async def translate(self, request: WebhookRequest) -> list[Activity]:
        event = request.payload
        if "From" not in event:
            raise ValueError("Twilio webhook is missing From")
        channel_data: dict[str, Any] = dict(event)
        num_media = str(event.get("NumMedia") or "0")
        if num_media.isdigit() and int(num_media) > 0:
            channel_data["event_type"] = "picture_message"
        return [
            Activity(
                id=event.get("MessageSid"),
                channel_id=CHANNEL_ID,
                conversation_id=event["From"],
                from_id=event["From"],
                recipient_id=event.get("To"),
                text=event.get("Body") or "",
                type=ActivityType.MESSAGE,
                channel_data=channel_data,
            ).with_generated_id()
        ]


class TwilioOutboundTranslator:
    def __init__(self, options: TwilioAdapterOptions) -> None:
        self._options = options

    def to_platform(self, activity: Activity) -> dict[str, Any]:
        message: dict[str, Any] = {
            "body": activity.text,
            "from": self._options.twilio_number,
            "to": activity.conversation_id,
        }
        media_url = activity.channel_data.get("mediaUrl")
        if media_url:
            message["media_url"] = media_url
        return message


class TwilioTransport:
    """Sends SMS/MMS through the Twilio REST client (async HTTP client)."""

    def __init__(
        self, options: TwilioAdapterOptions, client: Optional[Client] = None
    ) -> None:
        self._options = options
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = Client(
                self._options.account_sid,
                self._options.auth_token,
                http_client=AsyncTwilioHttpClient(),
            )
        return self._client

    async def send(
        self, message: dict[str, Any], activity: Activity
    ) -> ResourceResponse:
        kwargs: dict[str, Any] = {
            "to": message["to"],
            "from_": message["from"],
            "body": message["body"],
        }
        if message.get("media_url"):
            media_url = message["media_url"]
            kwargs["media_url"] = media_url if isinstance(media_url, list) else [media_url]
        try:
            sent = await self._get_client().messages.create_async(**kwargs)
        except TwilioRestException as exc:
            raise TransportError(
                f"Twilio rejected message: {exc.msg}", status_code=exc.status
            ) from exc
        except TwilioException as exc:
            raise TransportError(f"Twilio request failed: {exc}") from exc
        return ResourceResponse(id=sent.sid)

    async def update(self, activity: Activity) -> None:
        raise UnsupportedOperationError(
            "Twilio SMS does not support updating activities."
        )

    async def delete(self, reference: ConversationReference) -> None:
        raise UnsupportedOperationError(
            "Twilio SMS does not support deleting activities."
        )


def create_twilio_adapter(
    options: TwilioAdapterOptions, client: Optional[Client] = None
) -> ChannelAdapter:
    return ChannelAdapter(
        channel_id=CHANNEL_ID,
        verifier=TwilioSignatureVerifier(options),
        inbound=TwilioInboundTranslator(),
        outbound=TwilioOutboundTranslator(options),
        transport=TwilioTransport(options, client=client),
    )


def start_conversation_with_user(
    options: TwilioAdapterOptions, user_id: str
) -> ConversationReference:
    """Reference for a proactive SMS to ``user_id`` (a +1XXXYYYZZZZ number)."""
    return ConversationReference(
        channel_id=CHANNEL_ID,
        conversation_id=user_id,
        user_id=user_id,
        bot_id=options.twilio_number,
    )
