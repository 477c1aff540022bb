"""
Pydantic Schemas for the Comparison API

This module defines the request and response models for the PromptArena API:
- ComparisonRequest: Prompt, selected providers and order metadata
- ComparisonResponse: Ranked per-provider results, email and credit status
- Error responses, webhook acknowledgements, metrics and health schemas

Wire names are camelCase (orderId, selectedProviders, emailSent) to match
the checkout frontend and the payment webhook; Python attributes are
snake_case.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from promptarena.scoring.scorer import ToolContext

if TYPE_CHECKING:
    from promptarena.billing.cost import CostBreakdown
    from promptarena.pipeline import PipelineResult
    from promptarena.reporting.builder import RankedEntry


# =============================================================================
# REQUEST MODELS
# =============================================================================


class ComparisonRequest(BaseModel):
    """
    Request body for the /compare endpoint.

    Older checkout pages send selectedAIs and orderNumber; both are
    accepted as aliases.

    Example:
        {
            "prompt": "Explain photosynthesis",
            "selectedProviders": ["ChatGPT", "Claude", "Gemini"],
            "orderId": "ORD-1042",
            "email": "customer@example.com",
            "creditsUsed": 3
        }
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "prompt": "Explain photosynthesis",
                    "selectedProviders": ["ChatGPT", "Claude", "Gemini"],
                    "orderId": "ORD-1042",
                    "email": "customer@example.com",
                    "creditsUsed": 3,
                },
                {
                    "prompt": "Is this duplex a good rental investment?",
                    "selectedProviders": ["Claude", "Gemini"],
                    "orderId": "ORD-1043",
                    "email": "investor@example.com",
                    "toolContext": "real_estate",
                    "propertyAddress": "12 Elm Street, Springfield",
                },
            ]
        },
    )

    prompt: str = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="Prompt sent to every selected provider",
    )

    selected_providers: list[str] = Field(
        ...,
        min_length=1,
        max_length=10,
        alias="selectedProviders",
        validation_alias=AliasChoices(
            "selectedProviders", "selectedAIs", "selected_providers"
        ),
        description="Provider names (e.g., 'ChatGPT', 'Claude', 'Gemini', 'Perplexity')",
    )

    order_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        alias="orderId",
        validation_alias=AliasChoices("orderId", "orderNumber", "order_id"),
        description="Order identifier echoed in the response and email",
    )

    email: str = Field(
        ...,
        max_length=320,
        description="Address the comparison report is emailed to",
    )

    credits_used: int | None = Field(
        default=None,
        ge=0,
        alias="creditsUsed",
        validation_alias=AliasChoices("creditsUsed", "credits_used"),
        description="Credits charged for this comparison (credit mode)",
    )

    tool_context: ToolContext = Field(
        default=ToolContext.GENERAL,
        alias="toolContext",
        validation_alias=AliasChoices("toolContext", "tool_context"),
        description="Comparison context: general, professional, financial, real_estate",
    )

    property_address: str | None = Field(
        default=None,
        max_length=500,
        alias="propertyAddress",
        validation_alias=AliasChoices("propertyAddress", "property_address"),
        description="Property the prompt is about (real-estate comparisons)",
    )

    payment_id: str | None = Field(
        default=None,
        alias="paymentId",
        validation_alias=AliasChoices("paymentId", "payment_id"),
        description="Payment capture ID when triggered by the payment webhook",
    )

    amount: str | None = Field(default=None, description="Amount paid")

    currency: str | None = Field(default=None, description="Currency of the amount paid")

    @field_validator("prompt")
    @classmethod
    def validate_prompt_not_whitespace(cls, v: str) -> str:
        """Ensure prompt is not empty or whitespace only."""
        if not v.strip():
            raise ValueError("Prompt cannot be empty or whitespace only")
        return v

    @field_validator("tool_context", mode="before")
    @classmethod
    def parse_tool_context(cls, v: object) -> ToolContext:
        """Unknown contexts fall back to general instead of rejecting the order."""
        if v is None or isinstance(v, (str, ToolContext)):
            return ToolContext.parse(v)
        raise ValueError("toolContext must be a string")

    @field_validator("property_address")
    @classmethod
    def blank_address_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    def composed_prompt(self) -> str:
        """Prompt actually sent to the providers."""
        if self.property_address:
            return f"{self.prompt}\n\nProperty address: {self.property_address}"
        return self.prompt


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class TokenUsage(BaseModel):
    """Token consumption reported by a provider."""

    input_tokens: int = Field(default=0, ge=0, description="Input tokens processed")

    output_tokens: int = Field(default=0, ge=0, description="Output tokens generated")

    @computed_field
    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


class CreditInfoSchema(BaseModel):
    """Credit usage for one comparison."""

    used: int = Field(..., ge=0, description="Credits charged")

    refunded: int = Field(..., ge=0, description="Credits refunded for failed providers")

    net: int = Field(..., ge=0, description="Credits consumed")


class ProviderResult(BaseModel):
    """
    One provider's answer, score and metadata.

    Failed providers have success=false, an error, a score of 0 and
    the single con "Response unavailable".
    """

    model_config = ConfigDict(populate_by_name=True)

    rank: int = Field(..., ge=1, description="Position in the ranking (1 = best)")

    provider: str = Field(..., description="Provider identifier")

    display_name: str = Field(..., alias="displayName", description="Provider name")

    success: bool = Field(..., description="Whether the provider answered")

    response: str = Field(default="", description="Provider answer")

    error: str | None = Field(default=None, description="Failure detail")

    error_code: str | None = Field(
        default=None, alias="errorCode", description="Failure category"
    )

    score: float = Field(..., ge=0.0, le=10.0, description="Quality score (0-10)")

    word_count: int = Field(default=0, ge=0, alias="wordCount")

    sentences: int = Field(default=0, ge=0)

    paragraphs: int = Field(default=0, ge=0)

    length: int = Field(default=0, ge=0, description="Response length in characters")

    pros: list[str] = Field(default_factory=list)

    cons: list[str] = Field(default_factory=list)

    latency_ms: float = Field(default=0.0, ge=0.0, alias="latencyMs")

    tokens: TokenUsage = Field(default_factory=TokenUsage)

    estimated_cost_usd: float = Field(default=0.0, ge=0.0, alias="estimatedCostUsd")

    timestamp: datetime = Field(..., description="When the outcome was recorded (UTC)")


class ComparisonResponse(BaseModel):
    """
    Response from the /compare endpoint.

    Example:
        {
            "success": true,
            "orderId": "ORD-1042",
            "winner": "claude",
            "results": [...],
            "emailSent": true,
            "creditInfo": {"used": 3, "refunded": 1, "net": 2},
            "message": "AI test complete"
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True)

    order_id: str = Field(..., alias="orderId")

    winner: str | None = Field(
        default=None, description="Winning provider, null if every provider failed"
    )

    results: list[ProviderResult] = Field(
        default_factory=list, description="Per-provider results in ranked order"
    )

    email_sent: bool = Field(..., alias="emailSent")

    credit_info: CreditInfoSchema | None = Field(default=None, alias="creditInfo")

    summary: str = Field(default="", description="One-line comparison summary")

    report: str = Field(default="", description="Rendered markdown report")

    message: str = Field(default="AI test complete")


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the payment provider."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True)

    message: str = Field(...)

    order_id: str | None = Field(default=None, alias="orderId")


# =============================================================================
# ERROR MODELS
# =============================================================================


class ErrorCodes:
    """
    Standard error codes for API responses.

    These codes enable programmatic error handling by clients
    without parsing human-readable messages.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CREDIT_DEDUCTION_FAILED = "CREDIT_DEDUCTION_FAILED"
    WEBHOOK_ERROR = "WEBHOOK_ERROR"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    HTTP_ERROR = "HTTP_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """
    Standard error response format for all API errors.

    Example:
        {
            "success": false,
            "error": "Prompt cannot be empty",
            "code": "VALIDATION_ERROR",
            "field": "prompt"
        }
    """

    success: bool = Field(default=False)

    error: str = Field(..., description="Human-readable error message")

    code: str = Field(..., description="Machine-readable error code")

    field: str | None = Field(
        default=None, description="Field that caused the error (validation errors)"
    )


# =============================================================================
# METRICS MODELS
# =============================================================================


class ProviderMetrics(BaseModel):
    """
    Aggregated metrics for one provider.

    Tracks call volume, failures, wins, latency and estimated spend.
    """

    provider: str = Field(..., description="Provider identifier")

    call_count: int = Field(default=0, ge=0, description="Times the provider was selected")

    failure_count: int = Field(default=0, ge=0, description="Failed calls")

    win_count: int = Field(default=0, ge=0, description="Comparisons won")

    avg_score: float = Field(default=0.0, ge=0.0, le=10.0, description="Average score")

    avg_latency_ms: float = Field(default=0.0, ge=0.0, description="Average call latency")

    total_cost_usd: float = Field(default=0.0, ge=0.0, description="Estimated spend")

    errors_by_code: dict[str, int] = Field(
        default_factory=dict, description="Failure count per error code"
    )


class MetricsResponse(BaseModel):
    """Response from the /metrics endpoint."""

    total_comparisons: int = Field(default=0, ge=0)

    total_provider_calls: int = Field(default=0, ge=0)

    failed_provider_calls: int = Field(default=0, ge=0)

    provider_failure_percent: float = Field(default=0.0, ge=0.0, le=100.0)

    credits_used: int = Field(default=0, ge=0)

    credits_refunded: int = Field(default=0, ge=0)

    emails_sent: int = Field(default=0, ge=0)

    emails_failed: int = Field(default=0, ge=0)

    total_cost_usd: float = Field(default=0.0, ge=0.0)

    providers: dict[str, ProviderMetrics] = Field(default_factory=dict)

    win_distribution: dict[str, float] = Field(
        default_factory=dict,
        description="Percent of comparisons won by each provider",
    )


# =============================================================================
# HEALTH MODELS
# =============================================================================


class ComponentHealth(BaseModel):
    """Health status of an individual system component."""

    name: str = Field(..., description="Component name (e.g., 'providers', 'email')")

    status: Literal["healthy", "degraded", "unhealthy"] = Field(...)

    message: str | None = Field(default=None)


class HealthResponse(BaseModel):
    """Response from the /health endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"] = Field(...)

    service: str = Field(default="promptarena")

    version: str = Field(...)

    components: list[ComponentHealth] = Field(default_factory=list)

    uptime_seconds: float | None = Field(default=None, ge=0.0)


# =============================================================================
# CONVERSION UTILITIES
# =============================================================================


def provider_result_from_entry(
    entry: "RankedEntry", cost: "CostBreakdown | None" = None
) -> ProviderResult:
    """
    Convert a ranked report entry to its API representation.

    Args:
        entry: RankedEntry from the report builder
        cost: Cost estimate for the call, if known

    Returns:
        ProviderResult Pydantic model
    """
    outcome = entry.outcome
    score = entry.score
    return ProviderResult(
        rank=entry.rank,
        provider=outcome.provider,
        display_name=outcome.display_name,
        success=outcome.success,
        response=outcome.response_text,
        error=outcome.error,
        error_code=outcome.error_code,
        score=score.score,
        word_count=score.word_count,
        sentences=score.sentences,
        paragraphs=score.paragraphs,
        length=score.length,
        pros=list(score.pros),
        cons=list(score.cons),
        latency_ms=round(outcome.latency_ms, 2),
        tokens=TokenUsage(
            input_tokens=outcome.tokens.input_tokens,
            output_tokens=outcome.tokens.output_tokens,
        ),
        estimated_cost_usd=round(cost.total_cost_usd, 10) if cost else 0.0,
        timestamp=outcome.timestamp,
    )


def build_comparison_response(result: "PipelineResult") -> ComparisonResponse:
    """
    Build the /compare response from a pipeline result.

    Args:
        result: Completed PipelineResult

    Returns:
        ComparisonResponse ready for API serialization
    """
    report = result.report
    credit_info = None
    if result.credit_info is not None:
        credit_info = CreditInfoSchema(**result.credit_info.to_dict())

    return ComparisonResponse(
        order_id=result.order_id,
        winner=report.winner.provider if report.winner else None,
        results=[
            provider_result_from_entry(entry, result.costs.get(entry.provider))
            for entry in report.entries
        ],
        email_sent=result.email_sent,
        credit_info=credit_info,
        summary=report.summary,
        report=report.text,
    )
