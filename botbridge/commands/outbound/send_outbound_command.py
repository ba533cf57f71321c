"""
Command to send an outbound activity to a chat platform.

Resolves the adapter by channel and sends through its outbound translator
and transport, outside of any webhook turn.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException

from botbridge.adapters.context import TurnContext
from botbridge.core.registry import AdapterRegistry
from botbridge.exceptions import TransportError
from botbridge.schemas.activity import (
    Activity,
    ActivityType,
    ConversationReference,
    ResourceResponse,
)

logger = logging.getLogger(__name__)


class SendOutboundCommand:
    """
    Command to send an outbound activity to the specified channel.
    """

    def __init__(self, registry: AdapterRegistry) -> None:
        self.registry = registry

    async def execute(self, channel_id: str, body: Activity) -> dict[str, Any]:
        """
        Send the activity via the channel adapter.

        Args:
            channel_id: Target channel, e.g. "facebook".
            body: Fully addressed outbound activity.

        Returns:
            dict: {"data": {"responses": [{"id": ...}, ...]}}. Non-message
            activities are skipped and yield an empty list.

        Raises:
            HTTPException: 400 if channel is not enabled or not supported,
                502 if the platform API failed to send.
        """
        adapter = self.registry.get(channel_id)
        if adapter is None:
            raise HTTPException(
                status_code=400,
                detail=f"Channel {channel_id} is not enabled or not supported",
            )
        activity = body.model_copy(update={"channel_id": channel_id})
        # Proactive turn: the "incoming" side is the recipient talking to us
        reference = ConversationReference(
            channel_id=channel_id,
            conversation_id=activity.conversation_id,
            thread_id=activity.thread_id,
            thread_key=activity.thread_key,
            user_id=activity.recipient_id,
            bot_id=activity.from_id,
        )
        context = TurnContext(
            adapter,
            reference.apply(
                Activity(type=ActivityType.EVENT, name="continueConversation", text=""),
                is_incoming=True,
            ),
        )
        try:
            responses: list[ResourceResponse] = await adapter.send_activities(
                context, [activity]
            )
        except TransportError as e:
            logger.error("Failed to send %s activity: %s", channel_id, e)
            raise HTTPException(
                status_code=502,
                detail="Platform API failed to send message",
            ) from e
        return {"data": {"responses": [r.model_dump() for r in responses]}}
