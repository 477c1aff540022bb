"""
PromptArena: FastAPI Application Entry Point

This module initializes the FastAPI application and defines the endpoints:
- /compare: Run one prompt against the selected providers
- /webhooks/paypal: Start a comparison from a completed payment
- /health: Health check endpoint
- /config: Non-sensitive configuration values
- /providers: Provider registry information
- /metrics: Comparison statistics

The application uses a lifespan context manager to:
1. Load configuration and configure logging
2. Build the provider registry and shared HTTP clients once
3. Wire the dispatcher, email sender, ledger and pipeline into app.state
4. Close the HTTP clients on shutdown
"""

from contextlib import asynccontextmanager
import logging
import time

import httpx
from fastapi import BackgroundTasks, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from promptarena import __version__
from promptarena.config import Settings, configure_logging, get_settings
from promptarena.dispatcher import ProviderClients, build_dispatcher
from promptarena.exceptions import CreditDeductionError, ValidationError, WebhookPayloadError
from promptarena.metrics import MetricsReporter, get_metrics_store
from promptarena.pipeline import ComparisonPipeline
from promptarena.registry import ProviderRegistry, build_provider_registry
from promptarena.reporting import ReportBuilder
from promptarena.schemas.comparison import (
    ComparisonRequest,
    ComparisonResponse,
    ComponentHealth,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    MetricsResponse,
    WebhookResponse,
    build_comparison_response,
)
from promptarena.services import EmailSender, build_ledger_client, parse_payment_event

logger = logging.getLogger(__name__)

_start_time: float = 0.0


def build_pipeline(
    settings: Settings, registry: ProviderRegistry, clients: ProviderClients
) -> ComparisonPipeline:
    """Wire a ComparisonPipeline and its collaborators from settings."""
    return ComparisonPipeline(
        dispatcher=build_dispatcher(registry, clients),
        report_builder=ReportBuilder(settings.report_max_response_chars),
        email_sender=EmailSender(settings, clients.http),
        ledger=build_ledger_client(settings, clients.http),
        metrics_store=get_metrics_store() if settings.track_metrics else None,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup/shutdown events.

    On startup:
    - Loads configuration from environment
    - Configures logging
    - Builds the registry, clients and pipeline

    On shutdown:
    - Closes the shared HTTP clients
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("=" * 60)
    logger.info("PromptArena starting up...")
    logger.info("=" * 60)

    registry = build_provider_registry(settings)
    for spec in registry.list_providers():
        status = "configured" if spec.has_credential else "not configured"
        logger.info(f"{spec.display_name} API key: {status}")
    if not registry.configured_providers():
        logger.warning("No provider API keys configured; every comparison will fail")

    logger.info(f"Provider timeout: {settings.provider_timeout_seconds}s")
    logger.info(f"Email delivery: {'enabled' if settings.email_enabled else 'disabled'}")
    logger.info(f"Credit mode: {'enabled' if settings.credit_mode_enabled else 'disabled'}")
    logger.info(f"Metrics tracking: {'enabled' if settings.track_metrics else 'disabled'}")

    clients = ProviderClients(httpx.AsyncClient())
    app.state.settings = settings
    app.state.registry = registry
    app.state.clients = clients
    app.state.pipeline = build_pipeline(settings, registry, clients)

    global _start_time
    _start_time = time.time()

    logger.info("=" * 60)
    logger.info("PromptArena ready to accept requests")

    yield  # Application runs here

    logger.info("PromptArena shutting down...")
    await clients.aclose()


app = FastAPI(
    title="PromptArena",
    description="Compare LLM answers to one prompt and email a ranked report",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_pipeline(request: Request) -> ComparisonPipeline:
    """Pipeline built by the lifespan."""
    return request.app.state.pipeline


def get_registry(request: Request) -> ProviderRegistry:
    """Registry built by the lifespan."""
    return request.app.state.registry


@app.get("/")
async def root():
    """
    Root endpoint with API information.
    """
    return {
        "name": "PromptArena",
        "description": "Multi-provider LLM prompt comparison",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "compare": "/compare",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check system health and collaborator configuration.",
)
async def health_check(
    registry: ProviderRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    """
    Health check endpoint for monitoring.

    Reports degraded when no provider is configured or the email
    collaborator is missing its IDs; the service still answers requests.
    """
    components = []
    overall_status = "healthy"

    configured = registry.configured_providers()
    total = len(registry.list_providers())
    if configured:
        components.append(
            ComponentHealth(
                name="providers",
                status="healthy",
                message=f"{len(configured)} of {total} providers configured",
            )
        )
    else:
        components.append(
            ComponentHealth(
                name="providers",
                status="unhealthy",
                message="No provider API keys configured",
            )
        )
        overall_status = "degraded"

    if not settings.email_enabled:
        components.append(
            ComponentHealth(name="email", status="healthy", message="Email disabled")
        )
    elif settings.emailjs_service_id and settings.emailjs_template_id:
        components.append(
            ComponentHealth(name="email", status="healthy", message="EmailJS configured")
        )
    else:
        components.append(
            ComponentHealth(
                name="email",
                status="degraded",
                message="EmailJS service or template ID missing",
            )
        )
        overall_status = "degraded"

    components.append(
        ComponentHealth(
            name="ledger",
            status="healthy",
            message="Credit mode enabled" if settings.credit_mode_enabled else "Credit mode disabled",
        )
    )

    uptime = time.time() - _start_time if _start_time > 0 else 0.0

    return HealthResponse(
        status=overall_status,
        service="promptarena",
        version=__version__,
        components=components,
        uptime_seconds=uptime,
    )


@app.get("/config")
async def show_config(settings: Settings = Depends(get_settings)):
    """
    Returns non-sensitive configuration values.

    API keys and shared secrets are SecretStr and are NOT exposed here;
    only their presence is reported.
    """
    return {
        "providers": {
            "timeout_seconds": settings.provider_timeout_seconds,
            "max_tokens": settings.provider_max_tokens,
            "temperature": settings.provider_temperature,
        },
        "email": {
            "enabled": settings.email_enabled,
            "api_url": settings.emailjs_api_url,
            "service_id": settings.emailjs_service_id,
            "template_id": settings.emailjs_template_id,
        },
        "credits": {
            "enabled": settings.credit_mode_enabled,
            "ledger_url": settings.credit_ledger_url,
        },
        "report": {"max_response_chars": settings.report_max_response_chars},
        "metrics": {"enabled": settings.track_metrics},
        "server": {
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
        },
        "logging": {"level": settings.log_level},
        "api_keys_configured": {
            "openai": settings.openai_api_key is not None,
            "anthropic": settings.anthropic_api_key is not None,
            "google": settings.google_api_key is not None,
            "perplexity": settings.perplexity_api_key is not None,
            "emailjs_private_key": settings.emailjs_private_key is not None,
            "credit_ledger_secret": settings.credit_ledger_secret is not None,
        },
    }


@app.get("/providers")
async def list_providers(registry: ProviderRegistry = Depends(get_registry)):
    """
    List all registered providers with their metadata.

    Includes endpoint, model name, limits, pricing and whether an API
    key is configured.
    """
    providers = registry.list_providers()
    return {
        "providers": [
            {
                "name": spec.name.value,
                "display_name": spec.display_name,
                "shape": spec.shape.value,
                "endpoint": spec.endpoint,
                "api_model_name": spec.api_model_name,
                "max_tokens": spec.max_tokens,
                "temperature": spec.temperature,
                "timeout_seconds": spec.timeout_seconds,
                "cost_per_1m_input": spec.cost_per_1m_input_tokens,
                "cost_per_1m_output": spec.cost_per_1m_output_tokens,
                "configured": spec.has_credential,
            }
            for spec in providers
        ],
        "total_providers": len(providers),
    }


@app.post(
    "/compare",
    response_model=ComparisonResponse,
    responses={
        400: {"model": ErrorResponse},
        402: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Compare providers",
    description="Send one prompt to the selected providers and rank their answers.",
)
async def compare(
    request: ComparisonRequest,
    pipeline: ComparisonPipeline = Depends(get_pipeline),
):
    """
    Main comparison endpoint.

    Flow:
    1. Deduct credits (credit mode)
    2. Dispatch the prompt to every selected provider concurrently
    3. Score, rank and render the report
    4. Email the report and refund credits for failed providers
    5. Return the ranked results
    """
    result = await pipeline.run(request)
    return build_comparison_response(result)


async def run_webhook_comparison(
    pipeline: ComparisonPipeline, request: ComparisonRequest
) -> None:
    """Background task for webhook orders; failures are logged."""
    try:
        await pipeline.run(request)
    except Exception:
        logger.exception(f"Webhook comparison for order {request.order_id} failed")


@app.post(
    "/webhooks/paypal",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    summary="Payment webhook",
    description="Start a comparison when a payment capture completes.",
)
async def paypal_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: ComparisonPipeline = Depends(get_pipeline),
):
    """
    Payment provider webhook.

    Completed captures start a comparison in the background and are
    acknowledged immediately; other events are only acknowledged.
    """
    try:
        payload = await request.json()
        comparison = parse_payment_event(payload)
    except (ValueError, WebhookPayloadError) as e:
        logger.error(f"Payment webhook rejected: {e}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Webhook processing failed"},
        )

    if comparison is None:
        return WebhookResponse(message="Webhook received")

    logger.info(f"Triggering comparison for order {comparison.order_id}")
    background_tasks.add_task(run_webhook_comparison, pipeline, comparison)
    return WebhookResponse(
        message="Payment processed, AI testing initiated",
        order_id=comparison.order_id,
    )


@app.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Get metrics",
    description="Retrieve aggregated comparison, credit and cost metrics.",
)
async def get_metrics():
    """
    Return aggregated metrics for monitoring.

    Includes provider call and failure counts, wins, average scores and
    latencies, credits refunded and estimated spend.
    """
    reporter = MetricsReporter()
    return reporter.generate_report()


def _error_response(
    status_code: int, error: str, code: str, field: str | None = None, headers=None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, field=field).model_dump(),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request body validation errors.

    Returns 400 with the first validation error's message and field.
    """
    errors = exc.errors()
    first_error = errors[0] if errors else {}
    message = str(first_error.get("msg", "Validation failed"))
    message = message.removeprefix("Value error, ")
    loc = [str(part) for part in first_error.get("loc", ()) if part != "body"]

    return _error_response(
        400, message, ErrorCodes.VALIDATION_ERROR, ".".join(loc) or None
    )


@app.exception_handler(ValidationError)
async def comparison_validation_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle requests the dispatcher or reconciler refused."""
    return _error_response(400, str(exc), ErrorCodes.VALIDATION_ERROR, exc.field)


@app.exception_handler(CreditDeductionError)
async def credit_deduction_handler(
    request: Request, exc: CreditDeductionError
) -> JSONResponse:
    """Credits could not be deducted; no provider was called."""
    logger.error(f"Credit deduction failed: {exc}")
    return _error_response(
        402, "Credits could not be deducted", ErrorCodes.CREDIT_DEDUCTION_FAILED
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions (404, 405, ...) with the standard error body.
    """
    code = (
        ErrorCodes.METHOD_NOT_ALLOWED if exc.status_code == 405 else ErrorCodes.HTTP_ERROR
    )
    return _error_response(
        exc.status_code, str(exc.detail), code, headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full exception for debugging and returns a generic error
    response to avoid leaking implementation details.
    """
    logger.exception("Unhandled exception")
    return _error_response(500, "An unexpected error occurred", ErrorCodes.INTERNAL_ERROR)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "promptarena.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
