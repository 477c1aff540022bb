"""
Credit Ledger Client

Talks to the external credit ledger that holds customer balances.
Credits are deducted before any provider is called and refunded after
reconciliation. The shared secret travels in the X-Ledger-Secret header.
"""

import logging
from typing import Any

import httpx

from promptarena.config import Settings
from promptarena.exceptions import CreditDeductionError, LedgerError

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Ledger-Secret"


class CreditLedgerClient:
    """
    Client for the /deduct and /refund ledger endpoints.

    Example:
        ledger = CreditLedgerClient(settings, http_client)
        await ledger.deduct("a@b.com", "ORD-1", 3)
        await ledger.refund("a@b.com", "ORD-1", 1, reason="1 provider failed")
    """

    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        if settings.credit_ledger_url is None:
            raise ValueError("credit_ledger_url is not configured")
        self._base_url = settings.credit_ledger_url
        self._secret = settings.credit_ledger_secret
        self._timeout = settings.ledger_timeout_seconds
        self._http = http

    async def deduct(self, email: str, order_id: str, credits: int) -> None:
        """
        Deduct credits for an order.

        Raises:
            CreditDeductionError: The ledger refused or could not be reached.
        """
        try:
            await self._post("deduct", email, order_id, credits)
        except LedgerError as e:
            raise CreditDeductionError(str(e)) from e
        logger.info(f"Deducted {credits} credits for order {order_id}")

    async def refund(
        self, email: str, order_id: str, credits: int, reason: str | None = None
    ) -> None:
        """
        Refund credits for an order.

        Raises:
            LedgerError: The ledger refused or could not be reached.
        """
        await self._post("refund", email, order_id, credits, reason)
        logger.info(f"Refunded {credits} credits for order {order_id}")

    async def _post(
        self,
        action: str,
        email: str,
        order_id: str,
        credits: int,
        reason: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"email": email, "orderId": order_id, "credits": credits}
        if reason:
            body["reason"] = reason

        headers = {}
        if self._secret is not None:
            headers[SECRET_HEADER] = self._secret.get_secret_value()

        try:
            response = await self._http.post(
                f"{self._base_url}/{action}",
                json=body,
                headers=headers,
                timeout=self._timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise LedgerError(f"ledger {action} unreachable ({type(e).__name__})") from e

        if response.is_error:
            raise LedgerError(
                f"ledger {action} returned {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}


def build_ledger_client(
    settings: Settings, http: httpx.AsyncClient
) -> CreditLedgerClient | None:
    """Return a ledger client when credit mode is enabled, else None."""
    if not settings.credit_mode_enabled:
        return None
    return CreditLedgerClient(settings, http)
