"""
Provider Registry

This module defines the pool of LLM providers a comparison can fan out to:
- ChatGPT (OpenAI chat completions, bearer token)
- Claude (Anthropic messages API, x-api-key header)
- Gemini (Google generateContent, API key in the query string)
- Perplexity (OpenAI-compatible chat completions, bearer token)

Each entry is a static ProviderSpec: endpoint, model, credential, output
limits, timeout and pricing. The registry is built once from Settings at
startup and handed to the Dispatcher.
"""

from enum import Enum

from pydantic import BaseModel, Field, SecretStr

from promptarena.config import Settings


class ProviderName(str, Enum):
    """Identifiers of the supported providers."""

    CHATGPT = "chatgpt"
    CLAUDE = "claude"
    GEMINI = "gemini"
    PERPLEXITY = "perplexity"


class ResponseShape(str, Enum):
    """
    Wire shape of a provider API.

    Selects the adapter that builds the request body, attaches auth
    and extracts the response text.
    """

    OPENAI_CHAT = "openai_chat"  # choices[0].message.content
    ANTHROPIC_MESSAGES = "anthropic_messages"  # content[0].text
    GOOGLE_GENERATE = "google_generate"  # candidates[0].content.parts[0].text


class ProviderSpec(BaseModel):
    """
    Complete configuration for one provider.

    This class holds all information needed to:
    1. Decide whether the provider can be called (credential present)
    2. Build and send the provider-specific request
    3. Estimate the cost of the call
    """

    name: ProviderName = Field(
        ...,
        description="Provider identifier",
    )

    display_name: str = Field(
        ...,
        description="Human-readable provider name used in reports",
    )

    shape: ResponseShape = Field(
        ...,
        description="Request/response wire shape",
    )

    endpoint: str = Field(
        ...,
        description="API endpoint (base URL for OpenAI-compatible providers)",
    )

    api_model_name: str = Field(
        ...,
        description="Model name sent to the provider API",
    )

    credential: SecretStr | None = Field(
        default=None,
        description="API key; None when not configured",
    )

    max_tokens: int = Field(
        default=1000,
        gt=0,
        description="Output length limit",
    )

    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )

    timeout_seconds: float = Field(
        default=25.0,
        gt=0.0,
        description="Per-call timeout",
    )

    cost_per_1m_input_tokens: float = Field(
        default=0.0,
        ge=0,
        description="Cost in USD per 1 million input tokens",
    )

    cost_per_1m_output_tokens: float = Field(
        default=0.0,
        ge=0,
        description="Cost in USD per 1 million output tokens",
    )

    @property
    def has_credential(self) -> bool:
        """True when an API key is configured and not blank."""
        return bool(self.credential and self.credential.get_secret_value().strip())


class ProviderRegistry:
    """
    Registry of all available providers.

    Lookup accepts the enum value ("claude") or the display name ("Claude"),
    case-insensitively, so names coming from checkout forms resolve as-is.

    Attributes:
        _providers: Dictionary mapping provider names to their specs
        _aliases: Lower-cased lookup keys mapped to provider names
    """

    def __init__(self, specs: list[ProviderSpec]) -> None:
        self._providers: dict[ProviderName, ProviderSpec] = {}
        self._aliases: dict[str, ProviderName] = {}
        for spec in specs:
            self._register(spec)

    def _register(self, spec: ProviderSpec) -> None:
        """Register a provider in the registry."""
        self._providers[spec.name] = spec
        self._aliases[spec.name.value] = spec.name
        self._aliases[spec.display_name.lower()] = spec.name

    def resolve(self, name: str) -> ProviderName | None:
        """
        Resolve a user-supplied provider name.

        Args:
            name: Provider name as sent by the client (e.g., "ChatGPT")

        Returns:
            The matching ProviderName, or None if unknown
        """
        return self._aliases.get(name.strip().lower())

    def get(self, name: ProviderName | str) -> ProviderSpec | None:
        """
        Retrieve a provider spec by identifier or alias.

        Args:
            name: ProviderName or any accepted alias

        Returns:
            ProviderSpec if found, None otherwise
        """
        if not isinstance(name, ProviderName):
            name = self.resolve(name)
            if name is None:
                return None
        return self._providers.get(name)

    def list_providers(self) -> list[ProviderSpec]:
        """Return all registered providers in registration order."""
        return list(self._providers.values())

    def configured_providers(self) -> list[ProviderSpec]:
        """Return providers that have a credential configured."""
        return [spec for spec in self._providers.values() if spec.has_credential]


def build_provider_registry(settings: Settings) -> ProviderRegistry:
    """
    Build the provider registry from settings.

    Called once at startup; the result is injected wherever providers
    are needed.

    Args:
        settings: Application settings with API keys and limits

    Returns:
        A populated ProviderRegistry
    """
    common = {
        "max_tokens": settings.provider_max_tokens,
        "temperature": settings.provider_temperature,
        "timeout_seconds": settings.provider_timeout_seconds,
    }

    return ProviderRegistry(
        [
            ProviderSpec(
                name=ProviderName.CHATGPT,
                display_name="ChatGPT",
                shape=ResponseShape.OPENAI_CHAT,
                endpoint="https://api.openai.com/v1",
                api_model_name="gpt-4o-mini",
                credential=settings.openai_api_key,
                cost_per_1m_input_tokens=0.15,
                cost_per_1m_output_tokens=0.60,
                **common,
            ),
            ProviderSpec(
                name=ProviderName.CLAUDE,
                display_name="Claude",
                shape=ResponseShape.ANTHROPIC_MESSAGES,
                endpoint="https://api.anthropic.com/v1/messages",
                api_model_name="claude-3-5-sonnet-20241022",
                credential=settings.anthropic_api_key,
                cost_per_1m_input_tokens=3.00,
                cost_per_1m_output_tokens=15.00,
                **common,
            ),
            ProviderSpec(
                name=ProviderName.GEMINI,
                display_name="Gemini",
                shape=ResponseShape.GOOGLE_GENERATE,
                endpoint=(
                    "https://generativelanguage.googleapis.com/v1beta/models/"
                    "gemini-1.5-flash:generateContent"
                ),
                api_model_name="gemini-1.5-flash",
                credential=settings.google_api_key,
                cost_per_1m_input_tokens=0.075,
                cost_per_1m_output_tokens=0.30,
                **common,
            ),
            ProviderSpec(
                name=ProviderName.PERPLEXITY,
                display_name="Perplexity",
                shape=ResponseShape.OPENAI_CHAT,
                endpoint="https://api.perplexity.ai",
                api_model_name="llama-3.1-sonar-small-128k-online",
                credential=settings.perplexity_api_key,
                cost_per_1m_input_tokens=0.20,
                cost_per_1m_output_tokens=0.20,
                **common,
            ),
        ]
    )
