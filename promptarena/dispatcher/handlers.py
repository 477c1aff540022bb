"""
Dispatcher - Concurrent fan-out of one prompt to many providers.

The Dispatcher invokes every selected provider at the same time, bounds
each call with its own timeout and converts every per-provider failure
into a failed Outcome. One slow or broken provider never blocks or
aborts the others.

Key components:
- Outcome: Immutable result of one provider call, success or failure
- Dispatcher: dispatch(prompt, provider_names) -> list[Outcome]
- build_dispatcher(): Wire registry, clients and adapters together
"""

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from promptarena.dispatcher.adapters import (
    ProviderAdapter,
    ProviderClients,
    TokenUsage,
    build_adapters,
)
from promptarena.exceptions import (
    CredentialMissingError,
    ProviderError,
    ProviderTimeoutError,
    UnknownProviderError,
    ValidationError,
)
from promptarena.registry.providers import ProviderRegistry, ProviderSpec, ResponseShape

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Outcome:
    """
    Result of invoking one provider for one prompt.

    Attributes:
        provider: Provider identifier (registry name, or the raw name if unknown)
        display_name: Human-readable provider name for reports
        response_text: Provider answer; empty on failure
        error: Failure detail; None on success
        error_code: Failure category (missing_credential, timeout, transport,
                    shape, unknown_provider, unexpected)
        timestamp: When the outcome was recorded (UTC)
        latency_ms: Wall-clock time spent on the call
        tokens: Token usage reported by the provider
    """

    provider: str
    display_name: str
    response_text: str = ""
    error: str | None = None
    error_code: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)
    latency_ms: float = 0.0
    tokens: TokenUsage = field(default_factory=TokenUsage)

    @property
    def success(self) -> bool:
        """Check if the provider answered without errors."""
        return self.error is None

    @classmethod
    def failed(
        cls,
        provider: str,
        display_name: str,
        error: ProviderError | str,
        latency_ms: float = 0.0,
        error_code: str | None = None,
    ) -> "Outcome":
        """Build a failed outcome from a provider error or a message."""
        if isinstance(error, ProviderError):
            error_code = error_code or error.code
        return cls(
            provider=provider,
            display_name=display_name,
            error=str(error),
            error_code=error_code or "unexpected",
            latency_ms=latency_ms,
        )


class Dispatcher:
    """
    Fans a prompt out to the selected providers concurrently.

    The registry is injected, never looked up globally, so tests and
    scripts can run the Dispatcher against any provider pool.

    Usage:
        dispatcher = build_dispatcher(registry)
        outcomes = await dispatcher.dispatch("Explain photosynthesis", ["Claude", "Gemini"])
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        adapters: Mapping[ResponseShape, ProviderAdapter],
    ) -> None:
        self._registry = registry
        self._adapters = dict(adapters)

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    async def dispatch(
        self, prompt: str, provider_names: Sequence[str]
    ) -> list[Outcome]:
        """
        Invoke every selected provider and wait for all of them to settle.

        Args:
            prompt: Prompt text sent unchanged to every provider.
            provider_names: Provider names as selected by the customer.

        Returns:
            One Outcome per provider name, in selection order.

        Raises:
            ValidationError: Empty prompt, empty provider list or duplicate providers.
        """
        self.validate(prompt, provider_names)

        logger.info(
            f"Dispatching prompt to {len(provider_names)} providers: "
            f"{', '.join(provider_names)}"
        )
        start_time = time.perf_counter()

        outcomes = await asyncio.gather(
            *(self._dispatch_one(prompt, name) for name in provider_names)
        )

        failed = [o.provider for o in outcomes if not o.success]
        logger.info(
            f"Dispatch completed: providers={len(outcomes)}, "
            f"failed={len(failed)}, "
            f"elapsed={(time.perf_counter() - start_time) * 1000:.0f}ms"
        )
        return list(outcomes)

    def validate(self, prompt: str, provider_names: Sequence[str]) -> None:
        """
        Reject requests that cannot be dispatched at all.

        Called by dispatch() and, ahead of any credit deduction, by the
        comparison pipeline.

        Raises:
            ValidationError: Empty prompt, empty provider list or duplicate providers.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty", field="prompt")
        if not provider_names:
            raise ValidationError(
                "At least one provider must be selected", field="selectedProviders"
            )
        self._check_duplicates(provider_names)

    def _check_duplicates(self, provider_names: Sequence[str]) -> None:
        """Reject lists that name the same provider twice (e.g. "Claude" and "claude")."""
        seen: set[str] = set()
        for name in provider_names:
            resolved = self._registry.resolve(name)
            key = resolved.value if resolved is not None else name.strip().lower()
            if key in seen:
                raise ValidationError(
                    f"Duplicate provider: {name}", field="selectedProviders"
                )
            seen.add(key)

    async def _dispatch_one(self, prompt: str, name: str) -> Outcome:
        """Invoke one provider; every failure becomes a failed Outcome."""
        spec = self._registry.get(name)
        if spec is None:
            logger.warning(f"Unknown provider requested: {name!r}")
            return Outcome.failed(name, name, UnknownProviderError(name))

        provider = spec.name.value
        if not spec.has_credential:
            logger.warning(f"{spec.display_name}: no API key configured, skipping call")
            return Outcome.failed(provider, spec.display_name, CredentialMissingError(provider))

        return await self._invoke(spec, prompt)

    async def _invoke(self, spec: ProviderSpec, prompt: str) -> Outcome:
        provider = spec.name.value
        adapter = self._adapters[spec.shape]
        credential = spec.credential.get_secret_value()
        start_time = time.perf_counter()

        try:
            reply = await asyncio.wait_for(
                adapter.invoke(spec, prompt, credential),
                timeout=spec.timeout_seconds,
            )
        except asyncio.TimeoutError:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"{spec.display_name} timed out after {spec.timeout_seconds:.0f}s")
            return Outcome.failed(
                provider, spec.display_name, ProviderTimeoutError(provider), latency_ms
            )
        except ProviderError as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"{spec.display_name} dispatch failed ({e.code}): {e}")
            return Outcome.failed(provider, spec.display_name, e, latency_ms)
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(f"{spec.display_name} dispatch raised unexpectedly")
            return Outcome.failed(
                provider,
                spec.display_name,
                f"{type(e).__name__}: {e}",
                latency_ms,
                error_code="unexpected",
            )

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{spec.display_name} dispatch completed: "
            f"latency={latency_ms:.0f}ms, chars={len(reply.text)}"
        )
        return Outcome(
            provider=provider,
            display_name=spec.display_name,
            response_text=reply.text,
            latency_ms=latency_ms,
            tokens=reply.tokens,
        )


def build_dispatcher(
    registry: ProviderRegistry, clients: ProviderClients | None = None
) -> Dispatcher:
    """
    Create a Dispatcher with one adapter per response shape.

    Args:
        registry: Provider registry to dispatch against.
        clients: Shared provider clients; a fresh set is created if omitted.

    Returns:
        A ready-to-use Dispatcher.
    """
    return Dispatcher(registry, build_adapters(clients or ProviderClients()))
