"""
Schemas module: Pydantic request/response models.

This module provides validated data models for the PromptArena API:
- Request/response models for the /compare endpoint
- Error response models for consistent error handling
- Webhook, metrics and health check response models

Example usage:
    from promptarena.schemas import ComparisonRequest, build_comparison_response

    request = ComparisonRequest.model_validate(payload)
    response = build_comparison_response(pipeline_result)
"""

from promptarena.schemas.comparison import (
    # Request models
    ComparisonRequest,
    # Response models
    ComparisonResponse,
    CreditInfoSchema,
    ProviderResult,
    TokenUsage,
    WebhookResponse,
    # Error models
    ErrorCodes,
    ErrorResponse,
    # Metrics models
    MetricsResponse,
    ProviderMetrics,
    # Health models
    ComponentHealth,
    HealthResponse,
    # Conversion utilities
    build_comparison_response,
    provider_result_from_entry,
)

__all__ = [
    # Request models
    "ComparisonRequest",
    # Response models
    "TokenUsage",
    "CreditInfoSchema",
    "ProviderResult",
    "ComparisonResponse",
    "WebhookResponse",
    # Error models
    "ErrorCodes",
    "ErrorResponse",
    # Metrics models
    "ProviderMetrics",
    "MetricsResponse",
    # Health models
    "ComponentHealth",
    "HealthResponse",
    # Conversion utilities
    "provider_result_from_entry",
    "build_comparison_response",
]
