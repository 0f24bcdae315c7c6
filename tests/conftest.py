"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Settings & Logging: mock_settings, mock_logfire, logfire_capture
2. Core services: policy, ingestor, recording_gateway, failing_gateway
3. Webhook data: make_event, make_batch, sign_body, signed_post
4. HTTP: test_client
"""

import hashlib
import hmac
import json
import os
from contextlib import contextmanager
from unittest.mock import MagicMock, Mock, patch

import pytest

# Provide test values before any application module reads the environment
os.environ.setdefault("MESSENGER_APP_SECRET", "test-app-secret")
os.environ.setdefault("MESSENGER_VALIDATION_TOKEN", "test-verify-token")
os.environ.setdefault("MESSENGER_PAGE_ACCESS_TOKEN", "test-page-token")
os.environ.setdefault("SERVER_URL", "https://bot.example.com")
# Suppress warnings when logfire isn't configured
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from selfcare_bot.config import Settings, get_settings  # noqa: E402
from selfcare_bot.services.conversation_policy import ConversationPolicy  # noqa: E402
from selfcare_bot.services.webhook_ingestor import WebhookIngestor  # noqa: E402

TEST_APP_SECRET = "test-app-secret"
TEST_SERVER_URL = "https://bot.example.com"
PAGE_ID = "page-123"
USER_ID = "user-456"


# =============================================================================
# Gateway doubles
# =============================================================================


class RecordingGateway:
    """MessageGateway double that records actions instead of sending them."""

    def __init__(self, should_fail_send: bool = False, linked_recipient: str | None = None):
        self._should_fail_send = should_fail_send
        self._linked_recipient = linked_recipient
        self.sent_actions: list = []
        self.resolve_calls: list[str] = []

    async def send(self, action) -> bool:
        self.sent_actions.append(action)
        return not self._should_fail_send

    async def resolve_linked_recipient(self, account_linking_token: str) -> str | None:
        self.resolve_calls.append(account_linking_token)
        return self._linked_recipient


@pytest.fixture
def recording_gateway():
    return RecordingGateway()


@pytest.fixture
def failing_gateway():
    return RecordingGateway(should_fail_send=True)


@pytest.fixture
def linked_gateway():
    """Gateway that resolves every account linking token to USER_ID."""
    return RecordingGateway(linked_recipient=USER_ID)


# =============================================================================
# Settings & Logging
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock application settings."""
    settings = Settings(
        messenger_app_secret=TEST_APP_SECRET,
        messenger_validation_token="test-verify-token",
        messenger_page_access_token="test-page-token",
        server_url=TEST_SERVER_URL,
        env="local",
        logfire_token=None,
    )

    monkeypatch.setattr("selfcare_bot.config.get_settings", lambda: settings)
    # Patch where get_settings is used so request handlers see the mock
    monkeypatch.setattr("selfcare_bot.main.get_settings", lambda: settings)
    monkeypatch.setattr("selfcare_bot.api.webhook.get_settings", lambda: settings)
    monkeypatch.setattr(
        "selfcare_bot.services.conversation_policy.get_settings", lambda: settings
    )
    monkeypatch.setattr("selfcare_bot.services.send_gateway.get_settings", lambda: settings)
    monkeypatch.setattr("selfcare_bot.logging_config.get_settings", lambda: settings)
    return settings


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Useful for tests that need to assert on structured log calls.
    """

    @contextmanager
    def mock_span(*args, **kwargs):
        yield {}

    mock_logfire_module = MagicMock()
    mock_logfire_module.info = Mock()
    mock_logfire_module.warning = Mock()
    mock_logfire_module.error = Mock()
    mock_logfire_module.span = mock_span
    mock_logfire_module.configure = Mock()
    mock_logfire_module.instrument_fastapi = Mock()
    mock_logfire_module.instrument_pydantic = Mock()

    # Patch module-level imports in our code (only modules that use logfire)
    for module in (
        "selfcare_bot.main",
        "selfcare_bot.logging_config",
        "selfcare_bot.services.conversation_policy",
        "selfcare_bot.services.delivery",
        "selfcare_bot.services.event_classifier",
        "selfcare_bot.services.send_gateway",
        "selfcare_bot.services.webhook_ingestor",
    ):
        monkeypatch.setattr(f"{module}.logfire", mock_logfire_module)

    return mock_logfire_module


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    This fixture patches Logfire to capture log calls for assertion.
    """
    captured_logs = []

    def capture(level):
        def _capture(*args, **kwargs):
            captured_logs.append((level, args, kwargs))

        return _capture

    with (
        patch("logfire.info", side_effect=capture("info")),
        patch("logfire.warning", side_effect=capture("warning")),
        patch("logfire.error", side_effect=capture("error")),
    ):
        yield captured_logs


# =============================================================================
# Core services
# =============================================================================


@pytest.fixture
def policy():
    return ConversationPolicy(server_url=TEST_SERVER_URL)


@pytest.fixture
def ingestor(policy):
    return WebhookIngestor(policy=policy)


# =============================================================================
# Webhook data
# =============================================================================


def _make_event(kind: str | None = "message", body: dict | None = None, **extra) -> dict:
    event = {
        "sender": {"id": USER_ID},
        "recipient": {"id": PAGE_ID},
        "timestamp": 1458692752478,
    }
    if kind is not None:
        event[kind] = body if body is not None else {}
    event.update(extra)
    return event


def _make_batch(*events: dict, object_type: str = "page") -> dict:
    return {
        "object": object_type,
        "entry": [{"id": PAGE_ID, "time": 1458692752478, "messaging": list(events)}],
    }


def _sign_body(body: bytes, secret: str = TEST_APP_SECRET, method: str = "sha1") -> str:
    digestmod = hashlib.sha1 if method == "sha1" else hashlib.sha256
    return f"{method}=" + hmac.new(secret.encode(), body, digestmod).hexdigest()


@pytest.fixture
def make_event():
    """Factory for a raw messaging event from USER_ID to PAGE_ID."""
    return _make_event


@pytest.fixture
def make_batch():
    """Factory for a webhook batch with a single entry."""
    return _make_batch


@pytest.fixture
def sign_body():
    """Compute the x-hub-signature header value for a raw body."""
    return _sign_body


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def test_client(mock_settings, mock_logfire):
    """FastAPI TestClient for E2E tests."""
    from fastapi.testclient import TestClient

    from selfcare_bot.main import app

    return TestClient(app)


@pytest.fixture
def signed_post(test_client, sign_body):
    """POST a batch to /webhook with a valid signature."""

    def _post(batch: dict, headers: dict | None = None):
        body = json.dumps(batch).encode("utf-8")
        headers = dict(headers or {})
        headers.setdefault("x-hub-signature", sign_body(body))
        headers.setdefault("content-type", "application/json")
        return test_client.post("/webhook", content=body, headers=headers)

    return _post
