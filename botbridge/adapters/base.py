"""
Platform adapter contracts and the generic adapter facade.

A platform is described by four small capabilities (verifier, inbound
translator, outbound translator, transport). ``ChannelAdapter`` composes
them into the webhook lifecycle:

    Received -> Verifying -> Translating -> Dispatching -> Responding

with a Rejected terminal state reachable only from Verifying.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from botbridge.adapters.context import TurnContext
from botbridge.exceptions import CallbackError, UnsupportedOperationError
from botbridge.schemas.activity import (
    Activity,
    ActivityType,
    ConversationReference,
    ResourceResponse,
    TurnResult,
    WebhookResponse,
)
from botbridge.schemas.webhook import WebhookRequest

logger = logging.getLogger(__name__)

BotLogic = Callable[[TurnContext], Awaitable[Optional[TurnResult]]]

INVALID_SIGNATURE_BODY = {"error": "Invalid signature."}


class Verifier(Protocol):
    """Decides whether an inbound request genuinely came from the platform."""

    rejection_status: int

    def verify(self, request: WebhookRequest) -> bool: ...


class InboundTranslator(Protocol):
    """Turns one webhook delivery into activities, in delivery order."""

    async def translate(self, request: WebhookRequest) -> list[Activity]: ...


class OutboundTranslator(Protocol):
    """Turns a message activity into the platform's send-request body."""

    def to_platform(self, activity: Activity) -> dict[str, Any]: ...


class Transport(Protocol):
    """Delivers platform messages. Raise UnsupportedOperationError when the
    platform has no update/delete endpoint."""

    async def send(
        self, message: dict[str, Any], activity: Activity
    ) -> ResourceResponse: ...

    async def update(self, activity: Activity) -> None: ...

    async def delete(self, reference: ConversationReference) -> None: ...


class ChannelAdapter:
    """Facade that runs one platform's webhook lifecycle and outbound sends."""

    def __init__(
        self,
        channel_id: str,
        verifier: Verifier,
        inbound: InboundTranslator,
        outbound: OutboundTranslator,
        transport: Transport,
        sync_response: Optional[Callable[[Activity], bool]] = None,
    ) -> None:
        self.channel_id = channel_id
        self.verifier = verifier
        self.inbound = inbound
        self.outbound = outbound
        self.transport = transport
        # None: always answer after dispatch. Otherwise only activities for
        # which this returns True hold the HTTP response until logic finishes.
        self._sync_response = sync_response

    async def process_activity(
        self, request: WebhookRequest, logic: BotLogic
    ) -> WebhookResponse:
        """Verify, translate and dispatch one webhook delivery."""
        logger.debug("IN FROM %s > %s", self.channel_id, request.payload)
        if not self.verifier.verify(request):
            logger.warning(
                "Signature verification failed for %s, ignoring message",
                self.channel_id,
            )
            return WebhookResponse(
                status=self.verifier.rejection_status,
                body=dict(INVALID_SIGNATURE_BODY),
            )

        activities = await self.inbound.translate(request)

        if self._sync_response is not None and not any(
            self._sync_response(activity) for activity in activities
        ):

            async def _dispatch_later() -> None:
                await self._dispatch(activities, logic)

            return WebhookResponse(status=200, deferred=_dispatch_later)

        result = await self._dispatch(activities, logic)
        return WebhookResponse(status=result.status, body=result.body)

    async def _dispatch(
        self, activities: Sequence[Activity], logic: BotLogic
    ) -> TurnResult:
        result = TurnResult()
        for activity in activities:
            turn = await self._run_logic(TurnContext(self, activity), logic)
            if turn is not None:
                result = turn
        return result

    async def _run_logic(
        self, context: TurnContext, logic: BotLogic
    ) -> Optional[TurnResult]:
        try:
            return await logic(context)
        except Exception as exc:
            raise CallbackError(
                f"Bot logic failed on {self.channel_id} activity "
                f"{context.activity.id!r}: {exc}"
            ) from exc

    async def send_activities(
        self, context: TurnContext, activities: Sequence[Activity]
    ) -> list[ResourceResponse]:
        """Send message activities one by one; other types are skipped."""
        responses: list[ResourceResponse] = []
        for activity in activities:
            if activity.type != ActivityType.MESSAGE:
                logger.debug(
                    "Unknown message type encountered in send_activities: %s",
                    activity.type,
                )
                continue
            message = self.outbound.to_platform(activity)
            logger.debug("OUT TO %s > %s", self.channel_id, message)
            responses.append(await self.transport.send(message, context.activity))
        return responses

    async def update_activity(self, context: TurnContext, activity: Activity) -> None:
        try:
            await self.transport.update(activity)
        except UnsupportedOperationError as exc:
            logger.info("%s", exc)

    async def delete_activity(
        self, context: TurnContext, reference: ConversationReference
    ) -> None:
        try:
            await self.transport.delete(reference)
        except UnsupportedOperationError as exc:
            logger.info("%s", exc)

    async def continue_conversation(
        self, reference: ConversationReference, logic: BotLogic
    ) -> Optional[TurnResult]:
        """Run ``logic`` outside a webhook turn, e.g. for proactive messages."""
        activity = reference.apply(
            Activity(type=ActivityType.EVENT, name="continueConversation", text=""),
            is_incoming=True,
        )
        return await self._run_logic(TurnContext(self, activity), logic)
