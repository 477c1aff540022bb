"""
Test Fixtures

Shared test data and helpers for the PromptArena test suite:
sample provider answers with known scores and a stub adapter that
replaces real provider calls.
"""

import asyncio

from promptarena.dispatcher.adapters import ProviderAdapter, ProviderReply, TokenUsage
from promptarena.registry.providers import ProviderSpec


# Long, structured answer: scores 10.0 in the general context
PHOTOSYNTHESIS_ANSWER = """Photosynthesis is the process plants, algae and some bacteria use to turn light energy into chemical energy stored in sugar.

It happens in two main stages:
- The light-dependent reactions take place in the thylakoid membranes. Chlorophyll absorbs light, water is split, and oxygen is released as a by-product.
- The Calvin cycle runs in the stroma. It uses the ATP and NADPH made in the first stage to fix carbon dioxide into glucose.

For example, a single mature oak tree releases a large amount of oxygen over one growing season. The overall equation is 6CO2 + 6H2O + light energy -> C6H12O6 + 6O2.

If you want to observe it yourself, I recommend placing a water plant under a lamp and counting the oxygen bubbles it produces. You should see more bubbles as the light gets brighter, which shows how light intensity drives the rate of photosynthesis."""

# One sentence, no structure: base score only
SHORT_ANSWER = "Photosynthesis turns sunlight into chemical energy inside green plants."

# Two short sentences on one line: base + coherence
SHORT_TWO_SENTENCES = "Plants use light to make sugar. Oxygen is released too."

# Specialized answer with financial and market vocabulary
REAL_ESTATE_ANSWER = """The duplex looks like a reasonable rental investment.

- Expected cash flow is positive after the mortgage payment.
- The cap rate of 6.5% is in line with local comparables.
- Vacancy risk is low because rental demand in the area is strong.

I recommend budgeting for rising interest rates before you commit."""


class StubAdapter(ProviderAdapter):
    """
    Adapter that answers from a table instead of the network.

    Args:
        replies: Provider identifier -> answer text, or an exception to raise
        delays: Provider identifier -> seconds to sleep before answering
    """

    def __init__(
        self,
        replies: dict[str, "str | Exception"],
        delays: dict[str, float] | None = None,
    ):
        self.replies = replies
        self.delays = delays or {}
        self.calls: list[tuple[str, str, str]] = []

    async def invoke(
        self, spec: ProviderSpec, prompt: str, credential: str
    ) -> ProviderReply:
        name = spec.name.value
        self.calls.append((name, prompt, credential))
        delay = self.delays.get(name, 0.0)
        if delay:
            await asyncio.sleep(delay)
        reply = self.replies.get(name, "")
        if isinstance(reply, Exception):
            raise reply
        return ProviderReply(
            text=reply, tokens=TokenUsage(input_tokens=12, output_tokens=len(reply.split()))
        )

    @property
    def called_providers(self) -> list[str]:
        return [name for name, _, _ in self.calls]
