"""
Registry module: Provider pool configuration and metadata.

This module contains:
- providers.py: the supported LLM providers with endpoint, auth, limits and pricing

Public API:
- ProviderName: Enum of provider identifiers
- ResponseShape: Enum of provider wire shapes
- ProviderSpec: Pydantic model for provider configuration
- ProviderRegistry: Central registry class
- build_provider_registry: Build a registry from Settings
"""

from promptarena.registry.providers import (
    ProviderName,
    ProviderRegistry,
    ProviderSpec,
    ResponseShape,
    build_provider_registry,
)

__all__ = [
    "ProviderName",
    "ResponseShape",
    "ProviderSpec",
    "ProviderRegistry",
    "build_provider_registry",
]
