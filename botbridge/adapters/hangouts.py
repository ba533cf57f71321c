"""
Google Hangouts Chat platform adapter.

Inbound: JSON events whose body carries the verification ``token`` issued by
Google. Outbound: Chat API ``spaces.messages`` through google-api-python-client
with service-account credentials.

Ordinary events are acknowledged immediately (Chat marks a message as
received only once the webhook answers); CARD_CLICKED events hold the
response so the bot can return an ``actionResponse`` body.
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from botbridge.adapters.base import ChannelAdapter
from botbridge.adapters.context import TurnContext
from botbridge.exceptions import ConfigurationError, TransportError
from botbridge.schemas.activity import (
    Activity,
    ActivityType,
    ConversationReference,
    ResourceResponse,
    TurnResult,
)
from botbridge.schemas.webhook import WebhookRequest

logger = logging.getLogger(__name__)

CHANNEL_ID = "googlehangouts"
CHAT_SCOPE = "https://www.googleapis.com/auth/chat.bot"
API_VERSION = "v1"
CARD_CLICKED = "CARD_CLICKED"


@dataclass(frozen=True)
class HangoutsAdapterOptions:
    # Verification token from the Chat API configuration page
    token: Optional[str] = None
    credentials_file: Optional[str] = None
    credentials_info: Optional[dict[str, Any]] = field(default=None, hash=False)

    def __post_init__(self) -> None:
        if not self.token:
            raise ConfigurationError(
                "Required: include a verification token to verify incoming "
                "Hangouts Chat webhooks"
            )


class HangoutsTokenVerifier:
    rejection_status = 401

    def __init__(self, options: HangoutsAdapterOptions) -> None:
        self._token = options.token or ""

    def verify(self, request: WebhookRequest) -> bool:
        token = request.payload.get("token")
        if not isinstance(token, str):
            return False
        return hmac.compare_digest(token.encode("utf-8"), self._token.encode("utf-8"))


class HangoutsInboundTranslator:
    async def translate(self, request: WebhookRequest) -> list[Activity]:
        event = request.payload
        space = event.get("space") or {}
        if not space.get("name"):
            raise ValueError("Hangouts event has no space name")
        message = event.get("message")
        user = event.get("user") or {}
        thread_key = event.get("threadKey")

        channel_data: dict[str, Any] = dict(event)
        activity_type = ActivityType.MESSAGE if message else ActivityType.EVENT
        text = ""
        thread_id = None
        if message:
            text = (message.get("argumentText") or "").strip()
            if not thread_key:
                thread_id = (message.get("thread") or {}).get("name")

        if space.get("type") == "DM":
            channel_data["event_type"] = "direct_message"
        event_kind = event.get("type")
        if event_kind == "ADDED_TO_SPACE":
            activity_type = ActivityType.EVENT
            channel_data["event_type"] = (
                "bot_room_join" if space.get("type") == "ROOM" else "bot_dm_join"
            )
        elif event_kind == "REMOVED_FROM_SPACE":
            activity_type = ActivityType.EVENT
            channel_data["event_type"] = (
                "bot_room_leave" if space.get("type") == "ROOM" else "bot_dm_leave"
            )
        elif event_kind == CARD_CLICKED:
            activity_type = ActivityType.EVENT
            channel_data["event_type"] = CARD_CLICKED.lower()

        return [
            Activity(
                id=message.get("name") if message else event.get("eventTime"),
                channel_id=CHANNEL_ID,
                conversation_id=space["name"],
                thread_id=thread_id,
                thread_key=thread_key,
                from_id=user.get("name"),
                from_name=user.get("displayName") or user.get("name"),
                text=text,
                type=activity_type,
                channel_data=channel_data,
            ).with_generated_id()
        ]


class HangoutsOutboundTranslator:
    def to_platform(self, activity: Activity) -> dict[str, Any]:
        body: dict[str, Any] = {"text": activity.text}
        if activity.thread_id:
            body["thread"] = {"name": activity.thread_id}
        # channel_data (cards, etc.) overrides generated fields
        body.update(activity.channel_data)
        message: dict[str, Any] = {"parent": activity.conversation_id, "body": body}
        if activity.thread_key:
            message["threadKey"] = activity.thread_key
        return message


class HangoutsTransport:
    """Chat API client; the blocking discovery client runs in a worker thread.

    A discovery service wraps a single ``httplib2.Http`` that must not be
    shared between threads, so each call builds its own service from the
    cached credentials.
    """

    def __init__(self, options: HangoutsAdapterOptions, service: Any = None) -> None:
        self._options = options
        # An injected service is used as-is for every call
        self._service = service
        self._credentials: Any = None
        self._credentials_lock = threading.Lock()

    def _get_credentials(self) -> Any:
        with self._credentials_lock:
            if self._credentials is None:
                self._credentials = self._load_credentials()
            return self._credentials

    def _load_credentials(self) -> Any:
        options = self._options
        if options.credentials_info:
            return service_account.Credentials.from_service_account_info(
                options.credentials_info, scopes=[CHAT_SCOPE]
            )
        if options.credentials_file:
            return service_account.Credentials.from_service_account_file(
                options.credentials_file, scopes=[CHAT_SCOPE]
            )
        credentials, _ = google.auth.default(scopes=[CHAT_SCOPE])
        return credentials

    def _build_service(self) -> Any:
        if self._service is not None:
            return self._service
        return build(
            "chat",
            API_VERSION,
            credentials=self._get_credentials(),
            cache_discovery=False,
        )

    async def _execute(self, request_factory) -> dict[str, Any]:
        """Run ``request_factory(messages).execute()`` in a worker thread."""

        def call() -> dict[str, Any]:
            messages = self._build_service().spaces().messages()
            return request_factory(messages).execute()

        try:
            return await asyncio.to_thread(call)
        except HttpError as exc:
            raise TransportError(
                f"Hangouts Chat API error: {exc}", status_code=exc.resp.status
            ) from exc
        except GoogleAuthError as exc:
            raise TransportError(f"Could not get google auth client: {exc}") from exc

    async def send(
        self, message: dict[str, Any], activity: Activity
    ) -> ResourceResponse:
        res = await self._execute(lambda messages: messages.create(**message))
        return ResourceResponse(id=res.get("name"))

    async def update(self, activity: Activity) -> None:
        if not activity.id:
            raise ValueError("Cannot update activity: activity is missing id")
        body = {
            "text": activity.text,
            "cards": activity.channel_data.get("cards"),
        }
        await self._execute(
            lambda messages: messages.update(
                name=activity.id, updateMask="text,cards", body=body
            )
        )

    async def delete(self, reference: ConversationReference) -> None:
        if not reference.activity_id:
            raise ValueError("Cannot delete activity: reference is missing activity_id")
        await self._execute(lambda messages: messages.delete(name=reference.activity_id))


def _needs_sync_response(activity: Activity) -> bool:
    return activity.channel_data.get("type") == CARD_CLICKED


def create_hangouts_adapter(
    options: HangoutsAdapterOptions, service: Any = None
) -> ChannelAdapter:
    return ChannelAdapter(
        channel_id=CHANNEL_ID,
        verifier=HangoutsTokenVerifier(options),
        inbound=HangoutsInboundTranslator(),
        outbound=HangoutsOutboundTranslator(),
        transport=HangoutsTransport(options, service=service),
        sync_response=_needs_sync_response,
    )


def _new_thread_key() -> str:
    return f"botbridge/{uuid.uuid4().hex}"


def _card_action_response(
    context: TurnContext, action: str, text: Optional[str], cards: Optional[list]
) -> Optional[TurnResult]:
    if context.activity.event_type != CARD_CLICKED.lower():
        logger.error("%s can only be used with card-click events", action)
        return None
    response_type = "NEW_MESSAGE" if action == "reply_with_new" else "UPDATE_MESSAGE"
    return TurnResult(
        body={"actionResponse": {"type": response_type}, "text": text, "cards": cards}
    )


def reply_with_new(
    context: TurnContext, text: Optional[str], cards: Optional[list] = None
) -> Optional[TurnResult]:
    """Answer a card click with a brand new message."""
    return _card_action_response(context, "reply_with_new", text, cards)


def reply_with_update(
    context: TurnContext, text: Optional[str], cards: Optional[list] = None
) -> Optional[TurnResult]:
    """Answer a card click by replacing the message that held the card."""
    return _card_action_response(context, "reply_with_update", text, cards)


async def reply_in_thread(
    context: TurnContext, activity_or_text: Union[Activity, str]
) -> Optional[ResourceResponse]:
    """Reply to the incoming message in a new thread."""
    if isinstance(activity_or_text, str):
        activity = Activity(type=ActivityType.MESSAGE, text=activity_or_text)
    else:
        activity = activity_or_text
    reference = context.activity.get_conversation_reference().model_copy(
        update={"thread_id": None, "thread_key": _new_thread_key()}
    )
    outgoing = context.apply_reference(activity, reference)
    responses = await context.adapter.send_activities(context, [outgoing])
    return responses[0] if responses else None


def start_conversation_in_thread(
    space_name: str, user_id: Optional[str], thread_key: Optional[str] = None
) -> ConversationReference:
    """Reference for a proactive message in a (new) thread of ``space_name``."""
    return ConversationReference(
        channel_id=CHANNEL_ID,
        conversation_id=space_name,
        thread_key=thread_key or _new_thread_key(),
        user_id=user_id,
    )
