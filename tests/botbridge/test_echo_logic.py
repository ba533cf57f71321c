"""Tests for the bundled echo bot logic."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from botbridge.adapters.context import TurnContext
from botbridge.core.logic import echo_logic
from botbridge.schemas.activity import Activity, ActivityType, ResourceResponse


def make_context(activity):
    adapter = MagicMock()
    adapter.send_activities = AsyncMock(return_value=[ResourceResponse(id="out-1")])
    return TurnContext(adapter, activity), adapter


@pytest.mark.asyncio
async def test_echoes_message_text():
    context, adapter = make_context(
        Activity(text="ping", conversation_id="c1", from_id="u1", recipient_id="b1")
    )

    result = await echo_logic(context)

    assert result is None
    sent = adapter.send_activities.await_args.args[1]
    assert sent[0].text == "You said: ping"
    assert sent[0].conversation_id == "c1"
    assert sent[0].recipient_id == "u1"
    assert context.responded is True


@pytest.mark.asyncio
async def test_ignores_events_and_empty_text():
    event_context, event_adapter = make_context(Activity(type=ActivityType.EVENT))
    empty_context, empty_adapter = make_context(Activity(text=""))

    await echo_logic(event_context)
    await echo_logic(empty_context)

    event_adapter.send_activities.assert_not_called()
    empty_adapter.send_activities.assert_not_called()
