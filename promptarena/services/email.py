"""
Report Email Delivery

Sends the rendered comparison report through the EmailJS REST API.
Delivery never fails a comparison: every problem is logged and reported
to the caller as emailSent=false.
"""

import logging
from typing import Any

import httpx

from promptarena.billing.credits import CreditInfo
from promptarena.config import Settings
from promptarena.exceptions import EmailDeliveryError
from promptarena.reporting.builder import ComparisonReport

logger = logging.getLogger(__name__)


def is_valid_email(address: str | None) -> bool:
    return isinstance(address, str) and "@" in address


class EmailSender:
    """
    EmailJS client for comparison reports.

    The httpx client is shared with the provider adapters and owned by
    the application lifespan.

    Example:
        sender = EmailSender(settings, http_client)
        sent = await sender.send_report(email, order_id, prompt, report)
    """

    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        self._settings = settings
        self._http = http

    @property
    def enabled(self) -> bool:
        return self._settings.email_enabled

    def build_payload(
        self,
        email: str,
        order_id: str,
        prompt: str,
        report: ComparisonReport,
        payment_id: str | None = None,
        amount: str | None = None,
    ) -> dict[str, Any]:
        """Build the EmailJS request body."""
        settings = self._settings
        credit_info = report.credit_info or CreditInfo(used=0, refunded=0, net=0)

        template_params: dict[str, Any] = {
            "email": email,
            "order_id": order_id,
            "prompt": prompt,
            "providers": ", ".join(e.display_name for e in report.entries),
            "report": report.text,
            "winner": report.winner.display_name if report.winner else "",
            "credits_used": credit_info.used,
            "credits_refunded": credit_info.refunded,
            "credits_net": credit_info.net,
            "refund_status": report.refund_status.value,
        }
        if payment_id:
            template_params["payment_id"] = payment_id
        if amount:
            template_params["cost"] = amount

        payload: dict[str, Any] = {
            "service_id": settings.emailjs_service_id,
            "template_id": settings.emailjs_template_id,
            "user_id": settings.emailjs_public_key,
            "template_params": template_params,
        }
        if settings.emailjs_private_key is not None:
            payload["accessToken"] = settings.emailjs_private_key.get_secret_value()
        return payload

    async def send_report(
        self,
        email: str,
        order_id: str,
        prompt: str,
        report: ComparisonReport,
        payment_id: str | None = None,
        amount: str | None = None,
    ) -> bool:
        """
        Email the report to the customer.

        Returns:
            True if EmailJS accepted the message, False otherwise.
        """
        if not self.enabled:
            logger.info(f"Email disabled, not sending report for order {order_id}")
            return False

        if not is_valid_email(email):
            logger.error(f"Invalid or missing email address for order {order_id}")
            return False

        payload = self.build_payload(email, order_id, prompt, report, payment_id, amount)
        try:
            await self._post(payload)
        except EmailDeliveryError as e:
            logger.error(f"Report email for order {order_id} not sent: {e}")
            return False

        logger.info(f"Report email for order {order_id} accepted")
        return True

    async def _post(self, payload: dict[str, Any]) -> None:
        try:
            response = await self._http.post(
                self._settings.emailjs_api_url,
                json=payload,
                timeout=self._settings.email_timeout_seconds,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise EmailDeliveryError(f"email API unreachable ({type(e).__name__})") from e

        if response.is_error:
            raise EmailDeliveryError(
                f"email API returned {response.status_code}: {response.text[:200]}"
            )
