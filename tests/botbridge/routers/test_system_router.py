"""Tests for system routes."""

import pytest
from fastapi.testclient import TestClient

from botbridge.adapters import HangoutsAdapterOptions, create_hangouts_adapter
from botbridge.config import Settings
from botbridge.core.registry import AdapterRegistry, build_registry
from botbridge.exceptions import ConfigurationError
from botbridge.main import create_app


def test_health():
    app = create_app(testing=True, settings=Settings(), registry=AdapterRegistry())
    with TestClient(app) as client:
        resp = client.get("/system/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_channels_lists_enabled_and_supported():
    registry = AdapterRegistry()
    registry.register(create_hangouts_adapter(HangoutsAdapterOptions(token="t")))
    settings = Settings(app_name="bridge-test")
    app = create_app(testing=True, settings=settings, registry=registry)

    with TestClient(app) as client:
        resp = client.get("/system/channels")

    data = resp.json()
    assert data["app"] == "bridge-test"
    assert data["enabled"] == ["googlehangouts"]
    assert data["supported"] == ["twilio-sms", "facebook", "googlehangouts", "webex"]


def test_build_registry_from_settings():
    settings = Settings(
        twilio_enabled=True,
        twilio_number="+15557654321",
        twilio_account_sid="AC123",
        twilio_auth_token="token",
        facebook_enabled=True,
        facebook_access_token="page-token",
        facebook_app_secret="secret",
        facebook_verify_token="verify-me",
        hangouts_enabled=False,
        webex_enabled=True,
        webex_access_token="webex-token",
    )

    registry = build_registry(settings)

    assert registry.list_channels() == ["twilio-sms", "facebook", "webex"]
    assert registry.facebook_options.verify_token == "verify-me"
    assert registry.webex_options.public_address is None


def test_build_registry_fails_fast_on_missing_credentials():
    settings = Settings(twilio_enabled=True, twilio_number="+15557654321")
    with pytest.raises(ConfigurationError, match="account_sid"):
        build_registry(settings)


def test_registry_rejects_duplicate_channel():
    registry = AdapterRegistry()
    registry.register(create_hangouts_adapter(HangoutsAdapterOptions(token="t")))
    with pytest.raises(ValueError):
        registry.register(create_hangouts_adapter(HangoutsAdapterOptions(token="t")))
