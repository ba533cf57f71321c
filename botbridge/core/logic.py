"""Default bot logic used by the bundled service.

Deployments embed the adapters in their own runtime and pass their own
callback; this one echoes messages back to the same conversation so a
freshly configured channel can be smoke-tested end to end.
"""

from __future__ import annotations

import logging
from typing import Optional

from botbridge.adapters.context import TurnContext
from botbridge.schemas.activity import TurnResult

logger = logging.getLogger(__name__)

ECHO_TEMPLATE = "You said: {text}"


async def echo_logic(context: TurnContext) -> Optional[TurnResult]:
    activity = context.activity
    if not activity.is_message:
        logger.debug(
            "Ignoring %s event %s", activity.channel_id, activity.event_type
        )
        return None
    if not activity.text:
        return None
    await context.send_activity(ECHO_TEMPLATE.format(text=activity.text))
    return None
