"""
Provider Adapters - One adapter per provider wire shape.

Every provider speaks a slightly different REST dialect. An adapter knows
one dialect: how to build the request body, where the credential goes,
and which path in the JSON response holds the answer.

Shapes:
- OPENAI_CHAT: OpenAI SDK (bearer token), base_url switched per provider
- ANTHROPIC_MESSAGES: httpx POST with x-api-key header
- GOOGLE_GENERATE: httpx POST with the key in the query string

Response bodies are validated against typed pydantic models. A 2xx
response that does not contain the expected path raises ShapeError,
never an empty default.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from promptarena.exceptions import ProviderTimeoutError, ShapeError, TransportError
from promptarena.registry.providers import ProviderName, ProviderSpec, ResponseShape

logger = logging.getLogger(__name__)

ANTHROPIC_API_VERSION = "2023-06-01"

# Error bodies are echoed into outcomes; keep them short.
_ERROR_BODY_EXCERPT_CHARS = 300


@dataclass
class TokenUsage:
    """
    Token usage reported by a provider.

    Used for cost estimation based on ProviderSpec pricing.
    """

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


@dataclass
class ProviderReply:
    """Normalized successful answer from any provider."""

    text: str
    tokens: TokenUsage = field(default_factory=TokenUsage)


# =============================================================================
# RESPONSE SHAPES
# =============================================================================


class _AnthropicTextBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "text"
    text: str


class _AnthropicUsage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    input_tokens: int = 0
    output_tokens: int = 0


class AnthropicMessagesResponse(BaseModel):
    """Subset of the Anthropic messages response we rely on."""

    model_config = ConfigDict(extra="ignore")

    content: list[_AnthropicTextBlock] = Field(min_length=1)
    usage: _AnthropicUsage = Field(default_factory=_AnthropicUsage)

    def to_reply(self) -> ProviderReply:
        return ProviderReply(
            text=self.content[0].text,
            tokens=TokenUsage(
                input_tokens=self.usage.input_tokens,
                output_tokens=self.usage.output_tokens,
            ),
        )


class _GooglePart(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str


class _GoogleContent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parts: list[_GooglePart] = Field(min_length=1)


class _GoogleCandidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: _GoogleContent


class _GoogleUsage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_token_count: int = Field(default=0, alias="promptTokenCount")
    candidates_token_count: int = Field(default=0, alias="candidatesTokenCount")


class GoogleGenerateResponse(BaseModel):
    """Subset of the Gemini generateContent response we rely on."""

    model_config = ConfigDict(extra="ignore")

    candidates: list[_GoogleCandidate] = Field(min_length=1)
    usage_metadata: _GoogleUsage = Field(
        default_factory=_GoogleUsage, alias="usageMetadata"
    )

    def to_reply(self) -> ProviderReply:
        return ProviderReply(
            text=self.candidates[0].content.parts[0].text,
            tokens=TokenUsage(
                input_tokens=self.usage_metadata.prompt_token_count,
                output_tokens=self.usage_metadata.candidates_token_count,
            ),
        )


# =============================================================================
# CLIENTS
# =============================================================================


class ProviderClients:
    """
    Lazily created HTTP clients shared by all adapters.

    One AsyncOpenAI client is kept per OpenAI-compatible provider (they
    differ in base_url and key) and one httpx.AsyncClient serves the raw
    REST providers. SDK retries are disabled: every provider gets exactly
    one attempt.
    """

    def __init__(self, http: httpx.AsyncClient | None = None) -> None:
        self._http = http
        self._openai: dict[ProviderName, AsyncOpenAI] = {}

    @property
    def http(self) -> httpx.AsyncClient:
        """Get the shared httpx client (lazy initialization)."""
        if self._http is None:
            self._http = httpx.AsyncClient()
            logger.debug("Initialized shared httpx client")
        return self._http

    def openai(self, spec: ProviderSpec, api_key: str) -> AsyncOpenAI:
        """
        Get the OpenAI-compatible client for a provider (lazy initialization).

        Args:
            spec: Provider spec; its endpoint is used as base_url.
            api_key: The provider credential.

        Returns:
            AsyncOpenAI client bound to the provider.
        """
        client = self._openai.get(spec.name)
        if client is None:
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=spec.endpoint,
                max_retries=0,
                timeout=spec.timeout_seconds,
            )
            self._openai[spec.name] = client
            logger.debug(f"Initialized OpenAI-compatible client for {spec.name.value}")
        return client

    async def aclose(self) -> None:
        """Close every client that was created."""
        for client in self._openai.values():
            await client.close()
        self._openai.clear()
        if self._http is not None:
            await self._http.aclose()
            self._http = None


# =============================================================================
# ADAPTERS
# =============================================================================


class ProviderAdapter(ABC):
    """
    Calls one provider and returns its normalized reply.

    Raises:
        TransportError: Connection failure or non-2xx status
        ProviderTimeoutError: Client-side timeout
        ShapeError: 2xx response without the expected answer path
    """

    shape: ResponseShape

    def __init__(self, clients: ProviderClients) -> None:
        self._clients = clients

    @abstractmethod
    async def invoke(
        self, spec: ProviderSpec, prompt: str, credential: str
    ) -> ProviderReply:
        """Send the prompt to the provider described by spec."""


class OpenAIChatAdapter(ProviderAdapter):
    """Chat completions through the OpenAI SDK (ChatGPT, Perplexity)."""

    shape = ResponseShape.OPENAI_CHAT

    async def invoke(
        self, spec: ProviderSpec, prompt: str, credential: str
    ) -> ProviderReply:
        client = self._clients.openai(spec, credential)
        provider = spec.name.value

        try:
            response = await client.chat.completions.create(
                model=spec.api_model_name,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=spec.max_tokens,
                temperature=spec.temperature,
            )
        except openai.APITimeoutError as e:
            raise ProviderTimeoutError(provider) from e
        except openai.APIStatusError as e:
            raise TransportError(
                f"{spec.display_name} API error: {e.status_code} - {e.message}",
                provider=provider,
                status_code=e.status_code,
            ) from e
        except openai.APIError as e:
            raise TransportError(
                f"{spec.display_name} request failed: {e.message}",
                provider=provider,
            ) from e

        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ShapeError(
                f"{spec.display_name} response has no choices[0].message.content",
                provider=provider,
            ) from e
        if text is None:
            raise ShapeError(
                f"{spec.display_name} response has empty message content",
                provider=provider,
            )

        usage = getattr(response, "usage", None)
        tokens = TokenUsage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
        return ProviderReply(text=text, tokens=tokens)


class _RestAdapter(ProviderAdapter):
    """Shared POST + JSON decoding for providers called over raw REST."""

    async def _post_json(
        self,
        spec: ProviderSpec,
        *,
        headers: dict[str, str],
        body: dict,
        params: dict[str, str] | None = None,
    ) -> dict:
        provider = spec.name.value
        try:
            response = await self._clients.http.post(
                spec.endpoint,
                json=body,
                headers=headers,
                params=params,
                timeout=spec.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(provider) from e
        except httpx.HTTPError as e:
            # str(e) can carry the request URL, which holds the Gemini key
            raise TransportError(
                f"{spec.display_name} request failed: {type(e).__name__}",
                provider=provider,
            ) from e

        if response.is_error:
            excerpt = response.text[:_ERROR_BODY_EXCERPT_CHARS]
            raise TransportError(
                f"{spec.display_name} API error: {response.status_code} - {excerpt}",
                provider=provider,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ShapeError(
                f"{spec.display_name} returned a non-JSON body", provider=provider
            ) from e
        if not isinstance(data, dict):
            raise ShapeError(
                f"{spec.display_name} returned a non-object JSON body",
                provider=provider,
            )
        return data


class AnthropicMessagesAdapter(_RestAdapter):
    """Anthropic messages API (x-api-key header)."""

    shape = ResponseShape.ANTHROPIC_MESSAGES

    async def invoke(
        self, spec: ProviderSpec, prompt: str, credential: str
    ) -> ProviderReply:
        data = await self._post_json(
            spec,
            headers={
                "x-api-key": credential,
                "anthropic-version": ANTHROPIC_API_VERSION,
                "Content-Type": "application/json",
            },
            body={
                "model": spec.api_model_name,
                "max_tokens": spec.max_tokens,
                "temperature": spec.temperature,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        try:
            return AnthropicMessagesResponse.model_validate(data).to_reply()
        except PydanticValidationError as e:
            raise ShapeError(
                f"{spec.display_name} response has no content[0].text",
                provider=spec.name.value,
            ) from e


class GoogleGenerateAdapter(_RestAdapter):
    """Gemini generateContent API (key in the query string)."""

    shape = ResponseShape.GOOGLE_GENERATE

    async def invoke(
        self, spec: ProviderSpec, prompt: str, credential: str
    ) -> ProviderReply:
        data = await self._post_json(
            spec,
            headers={"Content-Type": "application/json"},
            params={"key": credential},
            body={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "maxOutputTokens": spec.max_tokens,
                    "temperature": spec.temperature,
                },
            },
        )
        try:
            return GoogleGenerateResponse.model_validate(data).to_reply()
        except PydanticValidationError as e:
            raise ShapeError(
                f"{spec.display_name} response has no candidates[0].content.parts[0].text",
                provider=spec.name.value,
            ) from e


def adapter_for(shape: ResponseShape, clients: ProviderClients) -> ProviderAdapter:
    """
    Create the adapter for a response shape.

    Args:
        shape: Wire shape from a ProviderSpec.
        clients: Shared provider clients.

    Returns:
        The matching ProviderAdapter.
    """
    match shape:
        case ResponseShape.OPENAI_CHAT:
            return OpenAIChatAdapter(clients)
        case ResponseShape.ANTHROPIC_MESSAGES:
            return AnthropicMessagesAdapter(clients)
        case ResponseShape.GOOGLE_GENERATE:
            return GoogleGenerateAdapter(clients)
    raise ValueError(f"No adapter for response shape: {shape}")


def build_adapters(clients: ProviderClients) -> dict[ResponseShape, ProviderAdapter]:
    """Create one adapter per known response shape."""
    return {shape: adapter_for(shape, clients) for shape in ResponseShape}
