"""
Pytest configuration and shared fixtures.

Provides test utilities, stub providers, and environment setup
for the PromptArena test suite.

IMPORTANT: Environment variables must be set BEFORE importing promptarena
modules that use pydantic-settings, as Settings is read on import of the app.
"""

import os

# Set test environment variables before importing promptarena modules
os.environ["OPENAI_API_KEY"] = "test-key-not-real"
os.environ["ANTHROPIC_API_KEY"] = "test-key-not-real"
os.environ["GOOGLE_API_KEY"] = "test-key-not-real"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEBUG"] = "false"
os.environ.pop("CREDIT_LEDGER_URL", None)
os.environ.pop("PERPLEXITY_API_KEY", None)

# Now safe to import everything else
import httpx
import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from tests.fixtures import StubAdapter


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line(
        "markers", "integration: mark test as requiring real API calls"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset all singleton instances between tests.

    This ensures each test starts with a clean state.
    """
    yield

    from promptarena.metrics import store

    if store._store is not None:
        store._store.reset()


@pytest.fixture
def settings():
    """
    Settings with three configured providers, EmailJS IDs and a ledger.

    Perplexity has no key, so selecting it yields a missing-credential outcome.
    """
    from promptarena.config import Settings

    return Settings(
        _env_file=None,
        openai_api_key="sk-test-openai",
        anthropic_api_key="sk-ant-test",
        google_api_key="google-test-key",
        perplexity_api_key=None,
        email_enabled=True,
        emailjs_service_id="service_test",
        emailjs_template_id="template_test",
        emailjs_public_key="public_test",
        emailjs_private_key="private_test",
        credit_ledger_url="https://ledger.test/",
        credit_ledger_secret="ledger-secret",
    )


@pytest.fixture
def registry(settings):
    """Provider registry built from the test settings."""
    from promptarena.registry import build_provider_registry

    return build_provider_registry(settings)


@pytest.fixture
def make_dispatcher(registry):
    """
    Factory fixture for a Dispatcher backed by a StubAdapter.

    Usage:
        dispatcher, adapter = make_dispatcher({"claude": "answer"})
    """

    def _create(replies: dict, delays: dict | None = None, dispatch_registry=None):
        from promptarena.dispatcher import Dispatcher
        from promptarena.registry import ResponseShape

        adapter = StubAdapter(replies, delays)
        dispatcher = Dispatcher(
            dispatch_registry or registry,
            {shape: adapter for shape in ResponseShape},
        )
        return dispatcher, adapter

    return _create


@pytest.fixture
def make_outcome():
    """
    Factory fixture for Outcome objects.

    Usage:
        ok = make_outcome("claude", "Some answer")
        failed = make_outcome("gemini", error="timeout")
    """

    def _create(
        provider: str = "claude",
        text: str = "",
        error: str | None = None,
        display_name: str | None = None,
        latency_ms: float = 1200.0,
    ):
        from promptarena.dispatcher import Outcome

        display = display_name or provider.capitalize()
        if error is not None:
            return Outcome.failed(provider, display, error, latency_ms, error_code="transport")
        return Outcome(
            provider=provider,
            display_name=display,
            response_text=text,
            latency_ms=latency_ms,
        )

    return _create


@pytest.fixture
def mock_email_sender():
    """EmailSender stand-in whose send_report succeeds."""
    sender = AsyncMock()
    sender.send_report.return_value = True
    return sender


@pytest.fixture
def mock_ledger():
    """CreditLedgerClient stand-in whose calls succeed."""
    return AsyncMock()


@pytest.fixture
def mock_transport():
    """
    Factory fixture for an httpx client served by a handler function.

    Usage:
        client, requests = mock_transport(lambda request: httpx.Response(200, json={}))
    """

    def _create(handler):
        requests: list[httpx.Request] = []

        def _handle(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(_handle)), requests

    return _create


@pytest.fixture
def test_client():
    """
    Create a FastAPI TestClient running the real lifespan.

    Provider keys come from the test environment; no provider is called
    unless a test overrides the pipeline.
    """
    from promptarena.main import app

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def client_with_pipeline(make_dispatcher, mock_email_sender):
    """
    Factory fixture for a TestClient whose /compare pipeline uses stub providers.

    Usage:
        client, pipeline = client_with_pipeline({"claude": "answer"})
    """
    from promptarena.main import app, get_pipeline
    from promptarena.metrics import get_metrics_store
    from promptarena.pipeline import ComparisonPipeline

    clients: list[TestClient] = []

    def _create(replies: dict, ledger=None, raise_server_exceptions: bool = True):
        dispatcher, _ = make_dispatcher(replies)
        pipeline = ComparisonPipeline(
            dispatcher,
            email_sender=mock_email_sender,
            ledger=ledger,
            metrics_store=get_metrics_store(),
        )
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        client.__enter__()
        clients.append(client)
        return client, pipeline

    yield _create

    for client in clients:
        client.__exit__(None, None, None)
    app.dependency_overrides.clear()
