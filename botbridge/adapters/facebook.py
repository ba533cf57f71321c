"""
Facebook Messenger platform adapter.

Inbound: batched webhook (``entry[].messaging[]`` / ``changes[]`` /
``standby[]``) signed with X-Hub-Signature (``sha1=`` + HMAC-SHA1 of the raw
body). Outbound: Send API (``/me/messages``) through ``FacebookAPI``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx

from botbridge.adapters.base import ChannelAdapter
from botbridge.adapters.facebook_api import FacebookAPI
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

CHANNEL_ID = "facebook"
SIGNATURE_HEADER = "X-Hub-Signature"

PageTokenLookup = Callable[[str], Awaitable[Optional[str]]]

# Send API fields copied verbatim from channel_data onto the request root
_ROOT_PASSTHROUGH = (
    "messaging_type",
    "tag",
    "persona_id",
    "notification_type",
    "sender_action",
)
# ... and onto the nested "message" object
_MESSAGE_PASSTHROUGH = ("sticker_id", "attachment")


@dataclass(frozen=True)
class FacebookAdapterOptions:
    access_token: Optional[str] = None
    # Multi-page deployments resolve the token per page id instead
    get_access_token_for_page: Optional[PageTokenLookup] = None
    app_secret: Optional[str] = None
    verify_token: Optional[str] = None
    api_host: str = "graph.facebook.com"
    api_version: str = "v3.2"

    def __post_init__(self) -> None:
        if not self.access_token and not self.get_access_token_for_page:
            raise ConfigurationError(
                "Adapter must receive either an access_token or a "
                "get_access_token_for_page function."
            )
        if not self.app_secret:
            raise ConfigurationError(
                "Provide an app_secret in order to validate incoming webhooks "
                "and better secure api requests"
            )


class FacebookSignatureVerifier:
    rejection_status = 401

    def __init__(self, options: FacebookAdapterOptions) -> None:
        self._secret = (options.app_secret or "").encode("utf-8")

    def verify(self, request: WebhookRequest) -> bool:
        expected = request.header(SIGNATURE_HEADER)
        if not expected:
            return False
        calculated = "sha1=" + hmac.new(
            self._secret, request.raw_body, hashlib.sha1
        ).hexdigest()
        return hmac.compare_digest(expected.encode("utf-8"), calculated.encode("utf-8"))


def classify_event(channel_data: Mapping[str, Any]) -> Optional[str]:
    """Messenger event subtype for a single messaging event."""
    message = channel_data.get("message") or {}
    if channel_data.get("postback"):
        return "facebook_postback"
    if channel_data.get("referral"):
        return "facebook_referral"
    if channel_data.get("optin"):
        return "facebook_optin"
    if channel_data.get("delivery"):
        return "message_delivered"
    if channel_data.get("read"):
        return "message_read"
    if channel_data.get("account_linking"):
        return "facebook_account_linking"
    if message.get("is_echo"):
        return "message_echo"
    if channel_data.get("app_roles"):
        return "facebook_app_roles"
    if channel_data.get("standby"):
        return "standby"
    if channel_data.get("pass_thread_control"):
        return "facebook_receive_thread_control"
    if channel_data.get("take_thread_control"):
        return "facebook_lose_thread_control"
    if channel_data.get("request_thread_control"):
        return "facebook_request_thread_control"
    return None


class FacebookInboundTranslator:
    async def translate(self, request: WebhookRequest) -> list[Activity]:
        activities: list[Activity] = []
        for entry in request.payload.get("entry") or []:
            # Page subscription fields (feed, mention, ...) carry no sender
            for change in entry.get("changes") or []:
                activities.append(self.translate_change(entry, change))
            for event in entry.get("messaging") or []:
                activities.append(self.translate_event(event))
            # Events delivered while another app owns the thread
            for event in entry.get("standby") or []:
                activities.append(self.translate_event({**event, "standby": True}))
        return activities

    def translate_event(self, event: dict[str, Any]) -> Activity:
        channel_data: dict[str, Any] = dict(event)
        # Checkbox plugin opt-ins carry optin.user_ref instead of a sender
        if not channel_data.get("sender"):
            user_ref = (channel_data.get("optin") or {}).get("user_ref")
            if user_ref:
                channel_data["sender"] = {"id": user_ref}
        sender_id = (channel_data.get("sender") or {}).get("id")
        recipient_id = (channel_data.get("recipient") or {}).get("id")
        if sender_id is None:
            raise ValueError("Facebook event has no sender id")

        activity_type = ActivityType.EVENT
        text = ""
        message = channel_data.get("message")
        if message:
            activity_type = ActivityType.MESSAGE
            text = message.get("text") or ""
            if message.get("is_echo"):
                activity_type = ActivityType.EVENT
            # attachments, sticker_id, quick_reply, nlp, ...
            channel_data.update(message)
        elif channel_data.get("postback"):
            activity_type = ActivityType.MESSAGE
            text = channel_data["postback"].get("payload") or ""

        channel_data["event_type"] = classify_event(channel_data)
        return Activity(
            id=message.get("mid") if message else None,
            channel_id=CHANNEL_ID,
            conversation_id=sender_id,
            from_id=sender_id,
            from_name=sender_id,
            recipient_id=recipient_id,
            text=text,
            type=activity_type,
            channel_data=channel_data,
        ).with_generated_id()

    def translate_change(
        self, entry: dict[str, Any], change: dict[str, Any]
    ) -> Activity:
        """Page field change, addressed to and from the page itself."""
        page_id = entry.get("id")
        if page_id is None:
            raise ValueError("Facebook change entry has no page id")
        channel_data: dict[str, Any] = dict(change)
        channel_data["event_type"] = f"facebook_{change.get('field')}"
        return Activity(
            channel_id=CHANNEL_ID,
            conversation_id=page_id,
            from_id=page_id,
            recipient_id=page_id,
            text="",
            type=ActivityType.EVENT,
            channel_data=channel_data,
        ).with_generated_id()


class FacebookOutboundTranslator:
    def to_platform(self, activity: Activity) -> dict[str, Any]:
        channel_data = activity.channel_data
        message: dict[str, Any] = {
            "recipient": {"id": activity.conversation_id},
            "message": {"text": activity.text},
            "messaging_type": "RESPONSE",
        }
        for key in _ROOT_PASSTHROUGH:
            if channel_data.get(key):
                message[key] = channel_data[key]
        for key in _MESSAGE_PASSTHROUGH:
            if channel_data.get(key):
                message["message"][key] = channel_data[key]
        if channel_data.get("quick_replies"):
            quick_replies = []
            for item in channel_data["quick_replies"]:
                quick_reply = dict(item)
                if not quick_reply.get("content_type"):
                    quick_reply["content_type"] = "text"
                quick_replies.append(quick_reply)
            message["message"]["quick_replies"] = quick_replies
        return message


class FacebookTransport:
    def __init__(
        self,
        options: FacebookAdapterOptions,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._options = options
        self._http_client = http_client

    async def get_api(self, activity: Activity) -> FacebookAPI:
        """API client for the page that received ``activity``."""
        options = self._options
        if options.access_token:
            token: Optional[str] = options.access_token
        else:
            if not activity.recipient_id:
                raise TransportError(
                    "Unable to create API based on activity: missing recipient id"
                )
            page_id = activity.recipient_id
            # For echoes the page is the sender
            if (activity.channel_data.get("message") or {}).get("is_echo") is True:
                page_id = activity.from_id
            token = await options.get_access_token_for_page(page_id)
            if not token:
                raise TransportError("Missing credentials for page.")
        return FacebookAPI(
            token,
            options.app_secret,
            api_host=options.api_host,
            api_version=options.api_version,
            http_client=self._http_client,
        )

    async def send(
        self, message: dict[str, Any], activity: Activity
    ) -> ResourceResponse:
        api = await self.get_api(activity)
        res = await api.call_api("/me/messages", "POST", message)
        logger.debug("RESPONSE FROM FACEBOOK > %s", res)
        return ResourceResponse(id=res.get("message_id"))

    async def update(self, activity: Activity) -> None:
        raise UnsupportedOperationError(
            "Facebook adapter does not support updateActivity."
        )

    async def delete(self, reference: ConversationReference) -> None:
        raise UnsupportedOperationError(
            "Facebook adapter does not support deleteActivity."
        )


def create_facebook_adapter(
    options: FacebookAdapterOptions,
    http_client: Optional[httpx.AsyncClient] = None,
) -> ChannelAdapter:
    return ChannelAdapter(
        channel_id=CHANNEL_ID,
        verifier=FacebookSignatureVerifier(options),
        inbound=FacebookInboundTranslator(),
        outbound=FacebookOutboundTranslator(),
        transport=FacebookTransport(options, http_client=http_client),
    )


def verify_subscription(
    options: FacebookAdapterOptions, query: Mapping[str, str]
) -> Optional[str]:
    """Answer the GET subscription handshake.

    Returns ``hub.challenge`` when the verify token matches, None otherwise.
    """
    if query.get("hub.mode") != "subscribe":
        return None
    token = query.get("hub.verify_token")
    if options.verify_token and token and hmac.compare_digest(
        token.encode("utf-8"), options.verify_token.encode("utf-8")
    ):
        return query.get("hub.challenge", "")
    return None


def start_conversation_with_user(page_id: str, user_id: str) -> ConversationReference:
    """Reference for a proactive message from ``page_id`` to ``user_id``."""
    return ConversationReference(
        channel_id=CHANNEL_ID,
        conversation_id=user_id,
        user_id=user_id,
        bot_id=page_id,
    )
