"""Tests for channel-agnostic activity schemas."""

from datetime import timezone

from botbridge.schemas.activity import (
    Activity,
    ActivityType,
    ConversationReference,
    ResourceResponse,
    TurnResult,
    WebhookResponse,
)
from botbridge.schemas.webhook import WebhookRequest


def test_activity_type_enum():
    assert ActivityType.MESSAGE.value == "message"
    assert ActivityType.EVENT.value == "event"


def test_activity_minimal():
    activity = Activity(text="hello")
    assert activity.type == ActivityType.MESSAGE
    assert activity.is_message is True
    assert activity.channel_data == {}
    assert activity.event_type is None
    assert activity.timestamp.tzinfo == timezone.utc


def test_event_type_reads_channel_data():
    activity = Activity(type=ActivityType.EVENT, channel_data={"event_type": "message_read"})
    assert activity.is_message is False
    assert activity.event_type == "message_read"


def test_conversation_reference_from_incoming_activity():
    incoming = Activity(
        id="in-1",
        channel_id="webex",
        conversation_id="room-1",
        thread_key="k1",
        from_id="person-1",
        recipient_id="bot-1",
    )
    reference = incoming.get_conversation_reference()
    assert reference.user_id == "person-1"
    assert reference.bot_id == "bot-1"
    assert reference.activity_id == "in-1"
    assert reference.thread_key == "k1"


def test_reference_apply_outgoing_swaps_sides():
    reference = ConversationReference(
        channel_id="webex",
        conversation_id="room-1",
        user_id="person-1",
        bot_id="bot-1",
        activity_id="in-1",
    )
    reply = reference.apply(Activity(text="hi"))
    assert reply.from_id == "bot-1"
    assert reply.recipient_id == "person-1"
    assert reply.reply_to_id == "in-1"
    assert reply.id is None
    assert reply.text == "hi"


def test_reference_apply_incoming_keeps_sides():
    reference = ConversationReference(
        conversation_id="room-1", user_id="person-1", bot_id="bot-1", activity_id="in-1"
    )
    activity = reference.apply(Activity(type=ActivityType.EVENT), is_incoming=True)
    assert activity.from_id == "person-1"
    assert activity.recipient_id == "bot-1"
    assert activity.id == "in-1"
    assert activity.reply_to_id is None


def test_resource_and_turn_defaults():
    assert ResourceResponse().id is None
    assert TurnResult().status == 200
    assert TurnResult().body is None
    response = WebhookResponse()
    assert (response.status, response.body, response.deferred) == (200, None, None)


def test_webhook_request_headers_are_case_insensitive():
    request = WebhookRequest(method="POST", url="https://x", headers={"X-Spark-Signature": "abc"})
    assert request.header("x-spark-signature") == "abc"
    assert request.header("X-Missing", "default") == "default"
    assert request.payload == {}
    assert request.raw_body == b""


def test_with_generated_id_keeps_platform_id():
    activity = Activity(id="m_1")
    assert activity.with_generated_id() is activity


def test_with_generated_id_uses_timestamp():
    activity = Activity(type=ActivityType.EVENT).with_generated_id()
    assert activity.id == activity.timestamp.isoformat()
