"""Per-turn context handed to the bot logic callback."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

from botbridge.schemas.activity import (
    Activity,
    ActivityType,
    ConversationReference,
    ResourceResponse,
)

if TYPE_CHECKING:
    from botbridge.adapters.base import ChannelAdapter

_ADDRESSING_FIELDS = (
    "channel_id",
    "conversation_id",
    "thread_id",
    "thread_key",
    "from_id",
    "recipient_id",
    "reply_to_id",
)


class TurnContext:
    """Binds an adapter to the activity being handled.

    Replies sent through the context are addressed back to the incoming
    activity's conversation unless the outgoing activity sets its own
    addressing fields.
    """

    def __init__(self, adapter: "ChannelAdapter", activity: Activity) -> None:
        self.adapter = adapter
        self.activity = activity
        self.responded = False

    def apply_reference(
        self,
        activity: Activity,
        reference: Optional[ConversationReference] = None,
    ) -> Activity:
        reference = reference or self.activity.get_conversation_reference()
        addressed = reference.apply(activity)
        explicit = {
            name: getattr(activity, name)
            for name in _ADDRESSING_FIELDS
            if name in activity.model_fields_set and getattr(activity, name) is not None
        }
        return addressed.model_copy(update=explicit)

    async def send_activity(
        self, activity_or_text: Union[Activity, str]
    ) -> Optional[ResourceResponse]:
        if isinstance(activity_or_text, str):
            activity = Activity(type=ActivityType.MESSAGE, text=activity_or_text)
        else:
            activity = activity_or_text
        responses = await self.send_activities([activity])
        return responses[0] if responses else None

    async def send_activities(
        self, activities: list[Activity]
    ) -> list[ResourceResponse]:
        outgoing = [self.apply_reference(activity) for activity in activities]
        responses = await self.adapter.send_activities(self, outgoing)
        if responses:
            self.responded = True
        return responses

    async def update_activity(self, activity: Activity) -> None:
        await self.adapter.update_activity(self, activity)

    async def delete_activity(self, activity_id: str) -> None:
        reference = self.activity.get_conversation_reference()
        reference = reference.model_copy(update={"activity_id": activity_id})
        await self.adapter.delete_activity(self, reference)
