"""
Service Collaborator Tests

Tests for the EmailJS sender, the credit ledger client and the payment
webhook parser. HTTP traffic is served by httpx.MockTransport.

Test Categories:
1. TestEmailSender - Payload shape and failure handling
2. TestCreditLedgerClient - Deduct/refund requests and errors
3. TestParsePaymentEvent - Webhook body to ComparisonRequest
4. TestGenerateOrderId - Webhook order identifiers
"""

import json

import httpx
import pytest

from promptarena.billing import CreditInfo
from promptarena.exceptions import CreditDeductionError, LedgerError, WebhookPayloadError
from promptarena.reporting import ReportBuilder
from promptarena.scoring import QualityScorer
from promptarena.services import (
    CreditLedgerClient,
    EmailSender,
    build_ledger_client,
    generate_order_id,
    parse_payment_event,
)
from promptarena.services.webhook import DEFAULT_PROMPT, DEFAULT_PROVIDERS

from tests.fixtures import PHOTOSYNTHESIS_ANSWER


@pytest.fixture
def report(make_outcome):
    outcomes = [
        make_outcome("claude", PHOTOSYNTHESIS_ANSWER, display_name="Claude"),
        make_outcome("gemini", error="timeout", display_name="Gemini"),
    ]
    scorer = QualityScorer()
    return ReportBuilder().build(
        "Explain photosynthesis",
        outcomes,
        [scorer.score_outcome(o) for o in outcomes],
        credit_info=CreditInfo(used=2, refunded=1, net=1),
    )


class TestEmailSender:
    """Tests for EmailSender.send_report()."""

    @pytest.mark.asyncio
    async def test_payload_shape(self, settings, mock_transport, report):
        http, requests = mock_transport(lambda request: httpx.Response(200, text="OK"))
        sender = EmailSender(settings, http)

        sent = await sender.send_report(
            "customer@example.com", "ORD-1042", "Explain photosynthesis", report
        )

        assert sent is True
        request = requests[0]
        assert str(request.url) == "https://api.emailjs.com/api/v1.0/email/send"
        body = json.loads(request.content)
        assert body["service_id"] == "service_test"
        assert body["template_id"] == "template_test"
        assert body["user_id"] == "public_test"
        assert body["accessToken"] == "private_test"
        params = body["template_params"]
        assert params["email"] == "customer@example.com"
        assert params["order_id"] == "ORD-1042"
        assert params["prompt"] == "Explain photosynthesis"
        assert params["providers"] == "Claude, Gemini"
        assert params["winner"] == "Claude"
        assert params["report"] == report.text
        assert params["credits_used"] == 2
        assert params["credits_refunded"] == 1
        assert params["credits_net"] == 1
        assert params["refund_status"] == "not_attempted"

    @pytest.mark.asyncio
    async def test_no_access_token_without_private_key(self, settings, mock_transport, report):
        http, requests = mock_transport(lambda request: httpx.Response(200))
        public_only = settings.model_copy(update={"emailjs_private_key": None})

        await EmailSender(public_only, http).send_report("a@b.com", "ORD-1", "p", report)

        assert "accessToken" not in json.loads(requests[0].content)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", ["", "not-an-email"])
    async def test_invalid_address_not_sent(self, settings, mock_transport, report, address):
        http, requests = mock_transport(lambda request: httpx.Response(200))

        sent = await EmailSender(settings, http).send_report(address, "ORD-1", "p", report)

        assert sent is False
        assert requests == []

    @pytest.mark.asyncio
    async def test_non_2xx_returns_false(self, settings, mock_transport, report):
        http, _ = mock_transport(lambda request: httpx.Response(400, text="bad template"))

        sent = await EmailSender(settings, http).send_report("a@b.com", "ORD-1", "p", report)

        assert sent is False

    @pytest.mark.asyncio
    async def test_transport_error_returns_false(self, settings, mock_transport, report):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        http, _ = mock_transport(refuse)

        sent = await EmailSender(settings, http).send_report("a@b.com", "ORD-1", "p", report)

        assert sent is False

    @pytest.mark.asyncio
    async def test_invalid_api_url_returns_false(self, settings, mock_transport, report):
        def reject(request):
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        http, _ = mock_transport(reject)

        sent = await EmailSender(settings, http).send_report("a@b.com", "ORD-1", "p", report)

        assert sent is False

    @pytest.mark.asyncio
    async def test_disabled_email_not_sent(self, settings, mock_transport, report):
        http, requests = mock_transport(lambda request: httpx.Response(200))
        disabled = settings.model_copy(update={"email_enabled": False})

        sent = await EmailSender(disabled, http).send_report("a@b.com", "ORD-1", "p", report)

        assert sent is False
        assert requests == []


class TestCreditLedgerClient:
    """Tests for the credit ledger client."""

    @pytest.mark.asyncio
    async def test_deduct_request(self, settings, mock_transport):
        http, requests = mock_transport(lambda request: httpx.Response(200, json={"ok": True}))

        await CreditLedgerClient(settings, http).deduct("a@b.com", "ORD-1", 3)

        request = requests[0]
        assert str(request.url) == "https://ledger.test/deduct"
        assert request.headers["X-Ledger-Secret"] == "ledger-secret"
        assert json.loads(request.content) == {"email": "a@b.com", "orderId": "ORD-1", "credits": 3}

    @pytest.mark.asyncio
    async def test_refund_request_includes_reason(self, settings, mock_transport):
        http, requests = mock_transport(lambda request: httpx.Response(200))

        await CreditLedgerClient(settings, http).refund(
            "a@b.com", "ORD-1", 1, reason="1 provider(s) failed to respond"
        )

        assert str(requests[0].url) == "https://ledger.test/refund"
        body = json.loads(requests[0].content)
        assert body["credits"] == 1
        assert body["reason"] == "1 provider(s) failed to respond"

    @pytest.mark.asyncio
    async def test_deduct_refused(self, settings, mock_transport):
        http, _ = mock_transport(lambda request: httpx.Response(402, text="insufficient"))

        with pytest.raises(CreditDeductionError):
            await CreditLedgerClient(settings, http).deduct("a@b.com", "ORD-1", 3)

    @pytest.mark.asyncio
    async def test_refund_unreachable(self, settings, mock_transport):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        http, _ = mock_transport(refuse)

        with pytest.raises(LedgerError):
            await CreditLedgerClient(settings, http).refund("a@b.com", "ORD-1", 1)

    @pytest.mark.asyncio
    async def test_invalid_url_is_a_ledger_error(self, settings, mock_transport):
        def reject(request):
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        http, _ = mock_transport(reject)

        with pytest.raises(LedgerError):
            await CreditLedgerClient(settings, http).refund("a@b.com", "ORD-1", 1)

    def test_build_ledger_client_requires_url(self, settings):
        no_ledger = settings.model_copy(update={"credit_ledger_url": None})

        assert build_ledger_client(no_ledger, httpx.AsyncClient()) is None
        assert isinstance(
            build_ledger_client(settings, httpx.AsyncClient()), CreditLedgerClient
        )


def _capture_event(custom_id=None, email="payer@example.com"):
    resource = {
        "id": "CAPTURE-123",
        "amount": {"value": "9.99", "currency_code": "USD"},
    }
    if email:
        resource["payer"] = {"email_address": email}
    if custom_id is not None:
        resource["custom_id"] = custom_id
    return {
        "event_type": "PAYMENT.CAPTURE.COMPLETED",
        "create_time": "2024-05-01T12:00:00Z",
        "resource": resource,
    }


class TestParsePaymentEvent:
    """Tests for parse_payment_event()."""

    def test_other_events_are_ignored(self):
        assert parse_payment_event({"event_type": "PAYMENT.CAPTURE.DENIED"}) is None

    def test_defaults_without_custom_id(self):
        request = parse_payment_event(_capture_event())

        assert request.prompt == DEFAULT_PROMPT
        assert request.selected_providers == list(DEFAULT_PROVIDERS)
        assert request.order_id.startswith("WH")
        assert request.email == "payer@example.com"
        assert request.payment_id == "CAPTURE-123"
        assert request.amount == "9.99"
        assert request.currency == "USD"

    def test_custom_id_is_merged(self):
        custom = json.dumps(
            {
                "prompt": "Explain photosynthesis",
                "selectedAIs": ["Claude", "Gemini"],
                "orderNumber": "ORD-77",
                "toolContext": "financial",
                "creditsUsed": 2,
            }
        )

        request = parse_payment_event(_capture_event(custom))

        assert request.prompt == "Explain photosynthesis"
        assert request.selected_providers == ["Claude", "Gemini"]
        assert request.order_id == "ORD-77"
        assert request.tool_context.value == "financial"
        assert request.credits_used == 2

    def test_unparseable_custom_id_uses_defaults(self):
        request = parse_payment_event(_capture_event("{not json"))

        assert request.prompt == DEFAULT_PROMPT

    def test_payer_email_wins(self):
        custom = json.dumps({"email": "someone@else.com"})

        request = parse_payment_event(_capture_event(custom))

        assert request.email == "payer@example.com"

    def test_custom_email_used_without_payer(self):
        custom = json.dumps({"email": "custom@example.com"})

        request = parse_payment_event(_capture_event(custom, email=None))

        assert request.email == "custom@example.com"

    @pytest.mark.parametrize("payload", [[], "text", None])
    def test_non_object_body_rejected(self, payload):
        with pytest.raises(WebhookPayloadError):
            parse_payment_event(payload)

    def test_capture_without_resource_rejected(self):
        with pytest.raises(WebhookPayloadError):
            parse_payment_event({"event_type": "PAYMENT.CAPTURE.COMPLETED"})

    def test_invalid_order_data_rejected(self):
        custom = json.dumps({"prompt": "   "})

        with pytest.raises(WebhookPayloadError):
            parse_payment_event(_capture_event(custom))


class TestGenerateOrderId:
    """Tests for generate_order_id()."""

    def test_base36_timestamp(self):
        assert generate_order_id(0) == "WH0"
        assert generate_order_id(35) == "WHZ"
        assert generate_order_id(36) == "WH10"

    def test_current_time(self):
        order_id = generate_order_id()

        assert order_id.startswith("WH")
        assert order_id[2:].isalnum()
        assert order_id[2:] == order_id[2:].upper()
