"""
PromptArena Exception Hierarchy

Fatal errors (ValidationError, CreditDeductionError) reach the HTTP layer.
Per-provider errors (ProviderError subclasses) are contained by the
Dispatcher and turned into failed outcomes.
"""


class PromptArenaError(Exception):
    """Base class for all PromptArena errors."""


class ValidationError(PromptArenaError):
    """
    The request cannot be processed at all.

    Raised for an empty prompt, an empty or duplicated provider list,
    or a negative credit count. Nothing is dispatched.
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


# =============================================================================
# PROVIDER ERRORS
# =============================================================================


class ProviderError(PromptArenaError):
    """
    Base class for failures of a single provider call.

    Attributes:
        provider: Provider identifier the error belongs to
        code: Short machine-readable category recorded on the outcome
    """

    code = "provider_error"

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(message)


class CredentialMissingError(ProviderError):
    """The provider has no API key configured; no call was made."""

    code = "missing_credential"

    def __init__(self, provider: str | None = None):
        super().__init__("missing credential", provider=provider)


class UnknownProviderError(ProviderError):
    """The requested provider name is not in the registry."""

    code = "unknown_provider"

    def __init__(self, name: str):
        super().__init__(f"unknown provider: {name}", provider=name)


class TransportError(ProviderError):
    """
    The provider could not be reached or answered with a non-2xx status.

    Attributes:
        status_code: HTTP status when the provider answered, else None
    """

    code = "transport"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider=provider)


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within its per-call timeout."""

    code = "timeout"

    def __init__(self, provider: str | None = None):
        super().__init__("timeout", provider=provider)


class ShapeError(ProviderError):
    """The provider answered 2xx but the expected response path is absent."""

    code = "shape"


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class EmailDeliveryError(PromptArenaError):
    """The email API rejected the report or could not be reached."""


class LedgerError(PromptArenaError):
    """A credit ledger call failed."""


class CreditDeductionError(LedgerError):
    """Credits could not be deducted before running a comparison."""


class WebhookPayloadError(PromptArenaError):
    """A payment webhook body is not a usable payment event."""
