"""
Channel-agnostic activity contracts.

Every inbound webhook is converted into one or more Activity objects and
every outbound message starts life as one. Platform-specific fields that
the generic model does not capture travel in ``channel_data``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityType(str, Enum):
    """User-visible chat message vs. platform notification."""

    MESSAGE = "message"
    EVENT = "event"


class Activity(BaseModel):
    """Generic message/event envelope exchanged with the bot runtime."""

    id: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
    channel_id: Optional[str] = None
    conversation_id: Optional[str] = None
    # Sub-conversation inside a space/room (Hangouts thread name)
    thread_id: Optional[str] = None
    # Client-chosen key that groups outgoing messages into one thread
    thread_key: Optional[str] = None
    from_id: Optional[str] = None
    from_name: Optional[str] = None
    recipient_id: Optional[str] = None
    text: Optional[str] = None
    type: ActivityType = ActivityType.MESSAGE
    name: Optional[str] = None
    reply_to_id: Optional[str] = None
    channel_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_message(self) -> bool:
        return self.type == ActivityType.MESSAGE

    @property
    def event_type(self) -> Optional[str]:
        """Platform event subtype recorded during inbound translation."""
        return self.channel_data.get("event_type")

    def with_generated_id(self) -> "Activity":
        """Copy with a timestamp-based id when the platform supplied none."""
        if self.id:
            return self
        return self.model_copy(update={"id": self.timestamp.isoformat()})

    def get_conversation_reference(self) -> "ConversationReference":
        """Capture the addressing of this (incoming) activity for later replies."""
        return ConversationReference(
            channel_id=self.channel_id,
            conversation_id=self.conversation_id,
            thread_id=self.thread_id,
            thread_key=self.thread_key,
            user_id=self.from_id,
            bot_id=self.recipient_id,
            activity_id=self.id,
        )


class ConversationReference(BaseModel):
    """Addressing needed to continue a conversation outside of a webhook turn."""

    channel_id: Optional[str] = None
    conversation_id: Optional[str] = None
    thread_id: Optional[str] = None
    thread_key: Optional[str] = None
    user_id: Optional[str] = None
    bot_id: Optional[str] = None
    activity_id: Optional[str] = None

    def apply(self, activity: Activity, is_incoming: bool = False) -> Activity:
        """Return a copy of ``activity`` addressed using this reference."""
        update: dict[str, Any] = {
            "channel_id": self.channel_id,
            "conversation_id": self.conversation_id,
            "thread_id": self.thread_id,
            "thread_key": self.thread_key,
        }
        if is_incoming:
            update["from_id"] = self.user_id
            update["recipient_id"] = self.bot_id
            if self.activity_id:
                update["id"] = self.activity_id
        else:
            update["from_id"] = self.bot_id
            update["recipient_id"] = self.user_id
            if self.activity_id:
                update["reply_to_id"] = self.activity_id
        return activity.model_copy(update=update)


class ResourceResponse(BaseModel):
    """Identifier of a message created by the platform API."""

    id: Optional[str] = None


class TurnResult(BaseModel):
    """HTTP status/body the bot logic wants written back for its webhook."""

    status: int = 200
    body: Any = None


@dataclass
class WebhookResponse:
    """What the host must write back for one webhook delivery.

    When ``deferred`` is set the host writes the response first and then
    awaits ``deferred()`` to finish dispatching activities.
    """

    status: int = 200
    body: Any = None
    deferred: Optional[Callable[[], Awaitable[None]]] = None
