"""
Billing Tests

Validates credit reconciliation and provider cost estimates.

Test Categories:
1. TestCreditReconciler - Refund for failed providers, capped at credits used
2. TestCostBreakdown - CostBreakdown dataclass validation
3. TestCostCalculator - Token-based cost estimates from registry pricing
"""

import pytest

from promptarena.billing import CostBreakdown, CostCalculator, CreditInfo, CreditReconciler
from promptarena.dispatcher import Outcome, TokenUsage
from promptarena.exceptions import ValidationError
from promptarena.registry import ProviderName


class TestCreditReconciler:
    """Tests for CreditReconciler.reconcile()."""

    def test_two_failures_out_of_three(self, make_outcome):
        outcomes = [
            make_outcome("chatgpt", error="timeout"),
            make_outcome("claude", error="missing credential"),
            make_outcome("gemini", "An answer"),
        ]

        info = CreditReconciler().reconcile(3, outcomes)

        assert info == CreditInfo(used=3, refunded=2, net=1)

    def test_no_failures_no_refund(self, make_outcome):
        outcomes = [make_outcome("claude", "ok"), make_outcome("gemini", "ok")]

        info = CreditReconciler().reconcile(2, outcomes)

        assert info.refunded == 0
        assert info.net == 2

    def test_refund_never_exceeds_credits_used(self, make_outcome):
        outcomes = [make_outcome(p, error="timeout") for p in ("chatgpt", "claude", "gemini")]

        info = CreditReconciler().reconcile(1, outcomes)

        assert info == CreditInfo(used=1, refunded=1, net=0)

    def test_zero_credits(self, make_outcome):
        info = CreditReconciler().reconcile(0, [make_outcome("claude", error="timeout")])

        assert info == CreditInfo(used=0, refunded=0, net=0)

    def test_negative_credits_rejected(self, make_outcome):
        with pytest.raises(ValidationError) as exc_info:
            CreditReconciler().reconcile(-1, [make_outcome("claude", "ok")])

        assert exc_info.value.field == "creditsUsed"

    def test_to_dict(self):
        assert CreditInfo(used=3, refunded=1, net=2).to_dict() == {
            "used": 3,
            "refunded": 1,
            "net": 2,
        }


class TestCostBreakdown:
    """Tests for CostBreakdown dataclass."""

    def test_total_tokens_property(self):
        breakdown = CostBreakdown(
            input_tokens=100,
            output_tokens=50,
            input_cost_usd=0.0003,
            output_cost_usd=0.00075,
            total_cost_usd=0.00105,
            provider="claude",
        )

        assert breakdown.total_tokens == 150


class TestCostCalculator:
    """Tests for CostCalculator."""

    def test_claude_pricing(self, registry):
        calculator = CostCalculator(registry)
        spec = registry.get(ProviderName.CLAUDE)

        cost = calculator.calculate(spec, input_tokens=1_000_000, output_tokens=1_000_000)

        assert cost.input_cost_usd == pytest.approx(3.00)
        assert cost.output_cost_usd == pytest.approx(15.00)
        assert cost.total_cost_usd == pytest.approx(18.00)
        assert cost.provider == "claude"

    def test_small_request(self, registry):
        calculator = CostCalculator(registry)
        spec = registry.get(ProviderName.CHATGPT)

        cost = calculator.calculate(spec, input_tokens=200, output_tokens=800)

        expected = 200 / 1_000_000 * 0.15 + 800 / 1_000_000 * 0.60
        assert cost.total_cost_usd == pytest.approx(expected)

    def test_zero_tokens_cost_nothing(self, registry):
        calculator = CostCalculator(registry)

        cost = calculator.calculate(registry.get(ProviderName.GEMINI), 0, 0)

        assert cost.total_cost_usd == 0.0

    def test_calculate_for_outcome(self, registry):
        outcome = Outcome(
            provider="gemini",
            display_name="Gemini",
            response_text="hi",
            tokens=TokenUsage(input_tokens=1000, output_tokens=2000),
        )

        cost = CostCalculator(registry).calculate_for_outcome(outcome)

        assert cost.input_tokens == 1000
        assert cost.total_cost_usd == pytest.approx(0.000075 + 0.0006)

    def test_unknown_provider_has_no_cost(self, registry):
        outcome = Outcome.failed("Mistral", "Mistral", "unknown provider: Mistral")

        assert CostCalculator(registry).calculate_for_outcome(outcome) is None
