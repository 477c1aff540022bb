"""
Cost Calculator for Provider Calls

Estimates the USD cost of each provider answer from the token usage it
reported and the pricing stored on its ProviderSpec. Providers that do
not report usage are estimated at zero.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from promptarena.registry.providers import ProviderRegistry, ProviderSpec

if TYPE_CHECKING:
    from promptarena.dispatcher.handlers import Outcome


@dataclass
class CostBreakdown:
    """
    Cost breakdown for a single provider call.

    Attributes:
        input_tokens: Number of input tokens processed
        output_tokens: Number of output tokens generated
        input_cost_usd: Cost for input tokens in USD
        output_cost_usd: Cost for output tokens in USD
        total_cost_usd: Total cost (input + output)
        provider: Provider that served the call
    """

    input_tokens: int
    output_tokens: int
    input_cost_usd: float
    output_cost_usd: float
    total_cost_usd: float
    provider: str

    @property
    def total_tokens(self) -> int:
        """Total tokens processed (input + output)."""
        return self.input_tokens + self.output_tokens


class CostCalculator:
    """
    Calculate provider call costs.

    The calculator only reads the registry, so one instance can be
    shared across requests.

    Example:
        calculator = CostCalculator(registry)
        cost = calculator.calculate_for_outcome(outcome)
        print(f"${cost.total_cost_usd:.4f}")
    """

    def __init__(self, registry: ProviderRegistry):
        self._registry = registry

    def calculate(
        self, spec: ProviderSpec, input_tokens: int, output_tokens: int
    ) -> CostBreakdown:
        """
        Calculate cost breakdown for a call.

        Args:
            spec: Provider spec with pricing information
            input_tokens: Number of input tokens used
            output_tokens: Number of output tokens generated

        Returns:
            Complete cost breakdown
        """
        input_cost = (input_tokens / 1_000_000) * spec.cost_per_1m_input_tokens
        output_cost = (output_tokens / 1_000_000) * spec.cost_per_1m_output_tokens

        return CostBreakdown(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            input_cost_usd=input_cost,
            output_cost_usd=output_cost,
            total_cost_usd=input_cost + output_cost,
            provider=spec.name.value,
        )

    def calculate_for_outcome(self, outcome: "Outcome") -> CostBreakdown | None:
        """
        Calculate cost for a dispatch outcome.

        Returns:
            CostBreakdown if the provider is registered, None otherwise
        """
        spec = self._registry.get(outcome.provider)
        if spec is None:
            return None
        return self.calculate(
            spec, outcome.tokens.input_tokens, outcome.tokens.output_tokens
        )
