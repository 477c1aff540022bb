"""
Dispatcher module: Provider adapters and concurrent fan-out.

This module provides a unified interface for sending one prompt to several
LLM providers (OpenAI, Anthropic, Google, Perplexity). It handles
provider-specific API calls, response extraction, timeouts and error
containment.

Key exports:
- TokenUsage: Token consumption tracking for cost estimation
- ProviderReply: Normalized successful provider answer
- ProviderClients: Lazily created SDK / HTTP clients
- ProviderAdapter and its concrete per-shape adapters
- Outcome: Per-provider result of a dispatch
- Dispatcher: Concurrent fan-out with per-call timeouts
- build_dispatcher(): Wire a Dispatcher from a registry
"""

from promptarena.dispatcher.adapters import (
    # Data classes
    TokenUsage,
    ProviderReply,
    # Clients
    ProviderClients,
    # Adapters
    ProviderAdapter,
    OpenAIChatAdapter,
    AnthropicMessagesAdapter,
    GoogleGenerateAdapter,
    adapter_for,
    build_adapters,
)
from promptarena.dispatcher.handlers import (
    Outcome,
    Dispatcher,
    build_dispatcher,
)

__all__ = [
    # Data classes
    "TokenUsage",
    "ProviderReply",
    "Outcome",
    # Clients
    "ProviderClients",
    # Adapters
    "ProviderAdapter",
    "OpenAIChatAdapter",
    "AnthropicMessagesAdapter",
    "GoogleGenerateAdapter",
    "adapter_for",
    "build_adapters",
    # Dispatch
    "Dispatcher",
    "build_dispatcher",
]
