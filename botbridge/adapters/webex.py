"""
Webex Teams platform adapter.

Inbound: firehose webhooks signed with X-Spark-Signature (hex HMAC-SHA1 of
the raw body). Webhook bodies only carry ids, so message and card-action
details are fetched from the API before translation. Outbound: Messages API.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from botbridge.adapters.base import ChannelAdapter
from botbridge.adapters.webex_api import WebexAPI
from botbridge.exceptions import ConfigurationError, UnsupportedOperationError
from botbridge.schemas.activity import (
    Activity,
    ActivityType,
    ConversationReference,
    ResourceResponse,
)
from botbridge.schemas.webhook import WebhookRequest

logger = logging.getLogger(__name__)

CHANNEL_ID = "webex"
SIGNATURE_HEADER = "X-Spark-Signature"
WEBHOOK_NAME = "botbridge firehose"

_TAG_PATTERN = re.compile(r"<.*?>", re.MULTILINE | re.DOTALL)
_OUTBOUND_PASSTHROUGH = ("markdown", "files", "attachments", "parentId")


@dataclass(frozen=True)
class WebexAdapterOptions:
    access_token: Optional[str] = None
    # Shared secret registered with the webhook; enables signature checks
    secret: Optional[str] = None
    # Public base URL of this service, used to register webhooks
    public_address: Optional[str] = None
    webhook_name: str = WEBHOOK_NAME

    def __post_init__(self) -> None:
        if not self.access_token:
            raise ConfigurationError(
                "access_token is a required part of the configuration."
            )
        if not self.secret:
            logger.warning(
                "Webex adapter has no secret; incoming webhooks will not be "
                "verified. Set a secret to enable X-Spark-Signature checks."
            )


class WebexSignatureVerifier:
    rejection_status = 401

    def __init__(self, options: WebexAdapterOptions) -> None:
        self._secret = options.secret

    def verify(self, request: WebhookRequest) -> bool:
        if not self._secret:
            return True
        signature = request.header(SIGNATURE_HEADER)
        if not signature:
            return False
        calculated = hmac.new(
            self._secret.encode("utf-8"), request.raw_body, hashlib.sha1
        ).hexdigest()
        return hmac.compare_digest(signature.encode("utf-8"), calculated.encode("utf-8"))


def _decoded_person_uuid(person_id: str) -> Optional[str]:
    """Webex ids are base64 of ``ciscospark://us/PEOPLE/<uuid>``."""
    padded = person_id + "=" * (-len(person_id) % 4)
    try:
        decoded = base64.b64decode(padded).decode("ascii")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    match = re.match(r"ciscospark://.*/(.*)", decoded, re.IGNORECASE)
    return match.group(1) if match else None


def strip_bot_mention(html: str, identity_id: str) -> str:
    """Drop a leading mention of the bot and all HTML tags from ``html``."""

    def mention_pattern(object_id: str) -> re.Pattern:
        return re.compile(
            r"^(<p>)?<spark-mention .*?data-object-id=\""
            + re.escape(object_id)
            + r"\".*?>.*?</spark-mention>",
            re.IGNORECASE | re.MULTILINE,
        )

    pattern = mention_pattern(identity_id)
    if not pattern.search(html):
        person_uuid = _decoded_person_uuid(identity_id)
        if person_uuid:
            pattern = mention_pattern(person_uuid)
    text = pattern.sub("", html, count=1)
    return _TAG_PATTERN.sub("", text).strip()


class WebexInboundTranslator:
    def __init__(self, api: WebexAPI) -> None:
        self._api = api
        self._identity: Optional[dict[str, Any]] = None

    async def get_identity(self) -> dict[str, Any]:
        """The bot's own person record, loaded once."""
        if self._identity is None:
            self._identity = await self._api.get_me()
        return self._identity

    async def translate(self, request: WebhookRequest) -> list[Activity]:
        event = request.payload
        resource = event.get("resource")
        kind = event.get("event")
        data = event.get("data") or {}
        identity = await self.get_identity()

        if resource == "messages" and kind == "created":
            message = await self._api.get_message(data["id"])
            return [self._message_activity(message, identity)]

        if resource == "attachmentActions" and kind == "created":
            action = await self._api.get_attachment_action(data["id"])
            channel_data = dict(action)
            channel_data["event_type"] = "attachmentActions"
            channel_data["value"] = action.get("inputs")
            return [
                Activity(
                    id=action.get("id"),
                    channel_id=CHANNEL_ID,
                    conversation_id=action.get("roomId"),
                    from_id=action.get("personId"),
                    recipient_id=identity.get("id"),
                    text="",
                    type=ActivityType.EVENT,
                    channel_data=channel_data,
                ).with_generated_id()
            ]

        channel_data = dict(event)
        channel_data["event_type"] = f"{resource}.{kind}"
        if resource == "memberships" and kind in ("created", "deleted"):
            who = "bot" if data.get("personId") == identity.get("id") else "user"
            what = "join" if kind == "created" else "leave"
            channel_data["event_type"] = f"{who}_space_{what}"
        return [
            Activity(
                id=event.get("id"),
                channel_id=CHANNEL_ID,
                conversation_id=data.get("roomId"),
                from_id=event.get("actorId"),
                recipient_id=identity.get("id"),
                text="",
                type=ActivityType.EVENT,
                channel_data=channel_data,
            ).with_generated_id()
        ]

    def _message_activity(
        self, message: dict[str, Any], identity: dict[str, Any]
    ) -> Activity:
        channel_data = dict(message)
        activity_type = ActivityType.MESSAGE
        if message.get("personId") == identity.get("id"):
            channel_data["event_type"] = "self_message"
            activity_type = ActivityType.EVENT

        if message.get("html"):
            text = strip_bot_mention(message["html"], identity.get("id", ""))
        else:
            text = message.get("text") or ""
            display_name = identity.get("displayName")
            if display_name:
                text = re.sub(
                    "^" + re.escape(display_name) + r"\s+", "", text, flags=re.IGNORECASE
                )

        return Activity(
            id=message.get("id"),
            channel_id=CHANNEL_ID,
            conversation_id=message.get("roomId"),
            from_id=message.get("personId"),
            from_name=message.get("personEmail"),
            recipient_id=identity.get("id"),
            text=text,
            type=activity_type,
            channel_data=channel_data,
        ).with_generated_id()


class WebexOutboundTranslator:
    def to_platform(self, activity: Activity) -> dict[str, Any]:
        channel_data = activity.channel_data
        message: dict[str, Any] = {}
        if activity.conversation_id:
            message["roomId"] = activity.conversation_id
        elif channel_data.get("toPersonEmail"):
            message["toPersonEmail"] = channel_data["toPersonEmail"]
        elif activity.recipient_id and "@" in activity.recipient_id:
            message["toPersonEmail"] = activity.recipient_id
        else:
            message["toPersonId"] = activity.recipient_id
        if activity.text is not None:
            message["text"] = activity.text
        for key in _OUTBOUND_PASSTHROUGH:
            if channel_data.get(key):
                message[key] = channel_data[key]
        return message


class WebexTransport:
    def __init__(self, api: WebexAPI) -> None:
        self.api = api

    async def send(
        self, message: dict[str, Any], activity: Activity
    ) -> ResourceResponse:
        res = await self.api.create_message(message)
        return ResourceResponse(id=res.get("id"))

    async def update(self, activity: Activity) -> None:
        raise UnsupportedOperationError(
            "Webex adapter does not support updateActivity."
        )

    async def delete(self, reference: ConversationReference) -> None:
        if not reference.activity_id:
            raise ValueError("Cannot delete activity: reference is missing activity_id")
        await self.api.delete_message(reference.activity_id)


def create_webex_adapter(
    options: WebexAdapterOptions, http_client: Optional[httpx.AsyncClient] = None
) -> ChannelAdapter:
    api = WebexAPI(options.access_token, http_client=http_client)
    return ChannelAdapter(
        channel_id=CHANNEL_ID,
        verifier=WebexSignatureVerifier(options),
        inbound=WebexInboundTranslator(api),
        outbound=WebexOutboundTranslator(),
        transport=WebexTransport(api),
    )


async def _upsert_webhook(
    api: WebexAPI, name: str, target_url: str, body: dict[str, Any]
) -> dict[str, Any]:
    for hook in await api.list_webhooks():
        if hook.get("name") == name:
            logger.debug("Webex: updating existing webhook %s", hook.get("id"))
            update = {"name": name, "targetUrl": target_url}
            if body.get("secret"):
                update["secret"] = body["secret"]
            return await api.update_webhook(hook["id"], update)
    logger.debug("Webex: creating webhook %s -> %s", name, target_url)
    return await api.create_webhook({"name": name, "targetUrl": target_url, **body})


async def register_webhook_subscription(
    api: WebexAPI, options: WebexAdapterOptions, webhook_path: str
) -> dict[str, Any]:
    """Create or update the firehose webhook pointing at ``webhook_path``."""
    if not options.public_address:
        raise ConfigurationError(
            "public_address is required to register a webhook subscription"
        )
    target_url = options.public_address.rstrip("/") + webhook_path
    body: dict[str, Any] = {"resource": "all", "event": "all"}
    if options.secret:
        body["secret"] = options.secret
    return await _upsert_webhook(api, options.webhook_name, target_url, body)


async def register_adaptive_card_webhook_subscription(
    api: WebexAPI, options: WebexAdapterOptions, webhook_path: str
) -> dict[str, Any]:
    """Create or update the webhook that delivers adaptive card submissions."""
    if not options.public_address:
        raise ConfigurationError(
            "public_address is required to register a webhook subscription"
        )
    target_url = options.public_address.rstrip("/") + webhook_path
    body: dict[str, Any] = {"resource": "attachmentActions", "event": "created"}
    if options.secret:
        body["secret"] = options.secret
    return await _upsert_webhook(
        api, f"{options.webhook_name} attachmentActions", target_url, body
    )


def start_private_conversation(user_id: str) -> ConversationReference:
    """Reference for a direct message to a person id or email address."""
    return ConversationReference(channel_id=CHANNEL_ID, user_id=user_id)


def start_conversation_in_room(
    room_id: str, user_id: Optional[str] = None
) -> ConversationReference:
    return ConversationReference(
        channel_id=CHANNEL_ID, conversation_id=room_id, user_id=user_id
    )
