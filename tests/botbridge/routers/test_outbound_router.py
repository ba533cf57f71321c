"""Tests for the outbound API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from twilio.base.exceptions import TwilioRestException

from botbridge.adapters import TwilioAdapterOptions, create_twilio_adapter
from botbridge.config import Settings
from botbridge.core.registry import AdapterRegistry
from botbridge.main import create_app


@pytest.fixture
def twilio_client():
    client = MagicMock()
    client.messages.create_async = AsyncMock(return_value=MagicMock(sid="SM42"))
    return client


@pytest.fixture
def client(twilio_client):
    registry = AdapterRegistry()
    registry.register(
        create_twilio_adapter(
            TwilioAdapterOptions(
                twilio_number="+15557654321", account_sid="AC123", auth_token="token"
            ),
            client=twilio_client,
        )
    )
    app = create_app(testing=True, settings=Settings(), registry=registry)
    with TestClient(app) as c:
        yield c


def test_outbound_channel_not_enabled(client):
    resp = client.post("/outbound/webex", json={"text": "hi", "conversation_id": "room-1"})
    assert resp.status_code == 400
    assert "not enabled" in resp.json()["detail"].lower()


def test_outbound_sends_message(client, twilio_client):
    resp = client.post(
        "/outbound/twilio-sms",
        json={"text": "reminder", "conversation_id": "+15551234567"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"data": {"responses": [{"id": "SM42"}]}}
    twilio_client.messages.create_async.assert_awaited_once_with(
        to="+15551234567", from_="+15557654321", body="reminder"
    )


def test_outbound_event_is_not_sent(client, twilio_client):
    resp = client.post(
        "/outbound/twilio-sms",
        json={"type": "event", "name": "typing", "conversation_id": "+15551234567"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"data": {"responses": []}}
    twilio_client.messages.create_async.assert_not_called()


def test_outbound_platform_failure_is_502(client, twilio_client):
    twilio_client.messages.create_async.side_effect = TwilioRestException(
        400, "/Messages", msg="invalid To"
    )

    resp = client.post(
        "/outbound/twilio-sms", json={"text": "hi", "conversation_id": "not-a-number"}
    )

    assert resp.status_code == 502
    assert resp.json()["detail"] == "Platform API failed to send message"


def test_outbound_rejects_invalid_body(client):
    resp = client.post("/outbound/twilio-sms", json={"type": "carrier-pigeon"})
    assert resp.status_code == 422
