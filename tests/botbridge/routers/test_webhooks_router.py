"""Tests for webhook routes."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from twilio.request_validator import RequestValidator

from botbridge.adapters import (
    FacebookAdapterOptions,
    HangoutsAdapterOptions,
    TwilioAdapterOptions,
    WebexAdapterOptions,
    create_facebook_adapter,
    create_hangouts_adapter,
    create_twilio_adapter,
    create_webex_adapter,
)
from botbridge.config import Settings
from botbridge.core.registry import AdapterRegistry
from botbridge.exceptions import CallbackError
from botbridge.main import create_app
from botbridge.schemas.activity import TurnResult
from tests.fixtures.webhook_fixtures import FACEBOOK_APP_SECRET, HANGOUTS_TOKEN, sha1_hex

TWILIO_TOKEN = "twilio-auth-token"
TWILIO_URL = "http://testserver/webhooks/twilio-sms"


@pytest.fixture
def twilio_client():
    client = MagicMock()
    client.messages.create_async = AsyncMock(return_value=MagicMock(sid="SM999"))
    return client


@pytest.fixture
def registry(twilio_client):
    registry = AdapterRegistry()
    registry.register(
        create_twilio_adapter(
            TwilioAdapterOptions(
                twilio_number="+15557654321", account_sid="AC123", auth_token=TWILIO_TOKEN
            ),
            client=twilio_client,
        )
    )
    registry.facebook_options = FacebookAdapterOptions(
        access_token="page-token", app_secret=FACEBOOK_APP_SECRET, verify_token="verify-me"
    )
    registry.register(create_facebook_adapter(registry.facebook_options))
    registry.register(
        create_hangouts_adapter(HangoutsAdapterOptions(token=HANGOUTS_TOKEN), service=MagicMock())
    )
    return registry


def make_client(registry, logic=None):
    app = create_app(testing=True, settings=Settings(), registry=registry, logic=logic)
    return TestClient(app)


def twilio_post(client, payload, signature=None):
    if signature is None:
        signature = RequestValidator(TWILIO_TOKEN).compute_signature(TWILIO_URL, payload)
    return client.post(
        "/webhooks/twilio-sms", data=payload, headers={"X-Twilio-Signature": signature}
    )


def test_twilio_webhook_runs_default_echo_logic(registry, twilio_client, twilio_sms_payload):
    with make_client(registry) as client:
        resp = twilio_post(client, twilio_sms_payload)

    assert resp.status_code == 200
    twilio_client.messages.create_async.assert_awaited_once_with(
        to="+15551234567", from_="+15557654321", body="You said: hi"
    )


def test_twilio_webhook_invalid_signature(registry, twilio_sms_payload):
    logic = AsyncMock(return_value=None)
    with make_client(registry, logic) as client:
        resp = twilio_post(client, twilio_sms_payload, signature="forged")

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid signature."}
    logic.assert_not_called()


def test_twilio_webhook_signed_for_proxy_host(registry, twilio_sms_payload):
    logic = AsyncMock(return_value=None)
    public = "https://bot.example.com/webhooks/twilio-sms"
    signature = RequestValidator(TWILIO_TOKEN).compute_signature(public, twilio_sms_payload)
    with make_client(registry, logic) as client:
        resp = client.post(
            "/webhooks/twilio-sms",
            data=twilio_sms_payload,
            headers={
                "X-Twilio-Signature": signature,
                "X-Forwarded-Proto": "https",
                "X-Forwarded-Host": "bot.example.com",
            },
        )

    assert resp.status_code == 200
    logic.assert_awaited_once()


def test_turn_result_is_written_to_http_response(registry, twilio_sms_payload):
    async def logic(context):
        return TurnResult(status=202, body={"handled": context.activity.id})

    with make_client(registry, logic) as client:
        resp = twilio_post(client, twilio_sms_payload)

    assert resp.status_code == 202
    assert resp.json() == {"handled": "SM1"}


def test_logic_error_propagates(registry, twilio_sms_payload):
    async def logic(context):
        raise RuntimeError("bot crashed")

    with make_client(registry, logic) as client:
        with pytest.raises(CallbackError):
            twilio_post(client, twilio_sms_payload)


def test_unknown_channel_is_503(registry):
    with make_client(registry) as client:
        resp = client.post("/webhooks/telegram", json={"update_id": 1})

    assert resp.status_code == 503
    assert "not configured" in resp.json()["detail"]


def test_invalid_json_body_is_400(registry):
    with make_client(registry) as client:
        resp = client.post(
            "/webhooks/facebook",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        array = client.post("/webhooks/facebook", json=[1, 2])

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid request body"
    assert array.status_code == 400


def test_untranslatable_facebook_event_is_400(registry):
    payload = {
        "object": "page",
        "entry": [{"id": "PAGE1", "messaging": [{"recipient": {"id": "PAGE1"}}]}],
    }
    raw = json.dumps(payload).encode("utf-8")
    with make_client(registry, AsyncMock(return_value=None)) as client:
        resp = client.post(
            "/webhooks/facebook",
            content=raw,
            headers={
                "Content-Type": "application/json",
                "X-Hub-Signature": "sha1=" + sha1_hex(FACEBOOK_APP_SECRET, raw),
            },
        )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid facebook update"


def test_facebook_webhook_dispatches_batch(registry, facebook_batch_payload):
    raw = json.dumps(facebook_batch_payload).encode("utf-8")
    seen = []

    async def logic(context):
        seen.append(context.activity.text)

    with make_client(registry, logic) as client:
        resp = client.post(
            "/webhooks/facebook",
            content=raw,
            headers={
                "Content-Type": "application/json",
                "X-Hub-Signature": "sha1=" + sha1_hex(FACEBOOK_APP_SECRET, raw),
            },
        )

    assert resp.status_code == 200
    assert seen == ["first", "second", "GET_STARTED"]


def test_facebook_feed_change_is_accepted(registry):
    payload = {
        "object": "page",
        "entry": [
            {"id": "PAGE1", "changes": [{"field": "feed", "value": {"verb": "add"}}]}
        ],
    }
    raw = json.dumps(payload).encode("utf-8")
    seen = []

    async def logic(context):
        seen.append(context.activity.event_type)

    with make_client(registry, logic) as client:
        resp = client.post(
            "/webhooks/facebook",
            content=raw,
            headers={
                "Content-Type": "application/json",
                "X-Hub-Signature": "sha1=" + sha1_hex(FACEBOOK_APP_SECRET, raw),
            },
        )

    assert resp.status_code == 200
    assert seen == ["facebook_feed"]


def test_facebook_webhook_bad_signature_is_401(registry, facebook_batch_payload):
    with make_client(registry) as client:
        resp = client.post(
            "/webhooks/facebook",
            json=facebook_batch_payload,
            headers={"X-Hub-Signature": "sha1=deadbeef"},
        )

    assert resp.status_code == 401


def test_facebook_subscription_handshake(registry):
    params = {"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "1158201444"}
    with make_client(registry) as client:
        ok = client.get("/webhooks/facebook", params=params)
        bad = client.get("/webhooks/facebook", params={**params, "hub.verify_token": "nope"})

    assert ok.status_code == 200
    assert ok.text == "1158201444"
    assert bad.status_code == 403


def test_facebook_subscription_when_disabled():
    with make_client(AdapterRegistry()) as client:
        resp = client.get("/webhooks/facebook", params={"hub.mode": "subscribe"})

    assert resp.status_code == 503


def test_hangouts_message_is_acknowledged_then_dispatched(registry, hangouts_message_payload):
    logic = AsyncMock(return_value=TurnResult(status=299))
    with make_client(registry, logic) as client:
        resp = client.post("/webhooks/googlehangouts", json=hangouts_message_payload)

    assert resp.status_code == 200
    assert resp.content == b""
    # Background task ran after the response was produced
    logic.assert_awaited_once()


def test_hangouts_card_click_returns_action_response(registry):
    payload = {
        "type": "CARD_CLICKED",
        "token": HANGOUTS_TOKEN,
        "space": {"name": "spaces/AAAA", "type": "ROOM"},
        "user": {"name": "users/123"},
        "message": {"name": "spaces/AAAA/messages/CARD"},
    }

    async def logic(context):
        return TurnResult(body={"actionResponse": {"type": "NEW_MESSAGE"}, "text": "ok"})

    with make_client(registry, logic) as client:
        resp = client.post("/webhooks/googlehangouts", json=payload)

    assert resp.status_code == 200
    assert resp.json()["actionResponse"] == {"type": "NEW_MESSAGE"}


def test_webex_api_failure_is_502():
    def handler(request):
        return httpx.Response(500, json={"message": "upstream down"})

    registry = AdapterRegistry()
    registry.register(
        create_webex_adapter(
            WebexAdapterOptions(access_token="t"),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
    )
    event = {"resource": "messages", "event": "created", "data": {"id": "msg-1"}}
    with make_client(registry, AsyncMock()) as client:
        resp = client.post("/webhooks/webex", json=event)

    assert resp.status_code == 502
