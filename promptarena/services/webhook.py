"""
Payment Webhook Parsing

Turns a PayPal payment event into a ComparisonRequest. Only completed
captures start a comparison; every other event type is acknowledged and
ignored. Order details the customer chose at checkout travel as JSON in
the capture's custom_id.
"""

import json
import logging
import string
import time
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from promptarena.exceptions import WebhookPayloadError
from promptarena.schemas.comparison import ComparisonRequest

logger = logging.getLogger(__name__)

CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"

DEFAULT_PROMPT = "Sample AI test prompt"
DEFAULT_PROVIDERS = ("ChatGPT", "Claude", "Gemini")

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_order_id(now_ms: int | None = None) -> str:
    """Order ID for webhook orders: "WH" + base-36 millisecond timestamp."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return "WH" + _to_base36(now_ms)


def _parse_custom_data(custom_id: Any) -> dict[str, Any]:
    if not custom_id:
        return {}
    try:
        data = json.loads(custom_id)
    except (TypeError, ValueError):
        logger.warning("Could not parse custom_id, using default order data")
        return {}
    if not isinstance(data, dict):
        logger.warning("custom_id is not a JSON object, using default order data")
        return {}
    return data


def parse_payment_event(payload: Any) -> ComparisonRequest | None:
    """
    Build a ComparisonRequest from a payment webhook body.

    Args:
        payload: Decoded JSON body of the webhook.

    Returns:
        The request to run, or None when the event is not a completed capture.

    Raises:
        WebhookPayloadError: The body is not an event, a completed capture
            has no resource, or the merged order data is invalid.
    """
    if not isinstance(payload, dict):
        raise WebhookPayloadError("webhook body must be a JSON object")

    event_type = payload.get("event_type")
    if event_type != CAPTURE_COMPLETED:
        logger.info(f"Acknowledging webhook event {event_type!r} without processing")
        return None

    resource = payload.get("resource")
    if not isinstance(resource, dict):
        raise WebhookPayloadError("completed capture has no resource")

    amount = resource.get("amount") or {}
    payer = resource.get("payer") or {}

    order_data: dict[str, Any] = {
        "prompt": DEFAULT_PROMPT,
        "selectedProviders": list(DEFAULT_PROVIDERS),
        "orderId": generate_order_id(),
        "email": "",
    }
    custom = _parse_custom_data(resource.get("custom_id"))
    # Legacy checkout pages use selectedAIs / orderNumber.
    if "selectedAIs" in custom:
        custom.setdefault("selectedProviders", custom.pop("selectedAIs"))
    if "orderNumber" in custom:
        custom.setdefault("orderId", custom.pop("orderNumber"))
    order_data.update(custom)

    if payer.get("email_address"):
        order_data["email"] = payer["email_address"]
    order_data["paymentId"] = resource.get("id")
    if isinstance(amount, dict):
        order_data["amount"] = amount.get("value")
        order_data["currency"] = amount.get("currency_code")

    try:
        request = ComparisonRequest.model_validate(order_data)
    except PydanticValidationError as e:
        raise WebhookPayloadError(f"invalid order data: {e.error_count()} errors") from e

    logger.info(
        f"Payment {request.payment_id} completed, order {request.order_id} "
        f"created at {payload.get('create_time')}"
    )
    return request
