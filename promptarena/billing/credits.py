"""
Credit Reconciliation

One credit is charged per provider tested. Every provider that fails to
answer earns one credit back, but a request is never refunded more than
it was charged.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from promptarena.exceptions import ValidationError

if TYPE_CHECKING:
    from promptarena.dispatcher.handlers import Outcome


class RefundStatus(str, Enum):
    """What happened to the credits owed back for failed providers."""

    NOT_ATTEMPTED = "not_attempted"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class CreditInfo:
    """
    Credit usage for one comparison request.

    Attributes:
        used: Credits charged up front
        refunded: Credits returned for failed providers
        net: Credits actually consumed (used - refunded)
    """

    used: int
    refunded: int
    net: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"used": self.used, "refunded": self.refunded, "net": self.net}


class CreditReconciler:
    """
    Compute refunds from dispatch outcomes.

    Example:
        info = CreditReconciler().reconcile(used=3, outcomes=outcomes)
        if info.refunded:
            await ledger.refund(email, order_id, info.refunded)
    """

    def reconcile(self, used: int, outcomes: Iterable["Outcome"]) -> CreditInfo:
        """
        Reconcile charged credits against provider outcomes.

        Args:
            used: Credits charged for the request.
            outcomes: Dispatch outcomes for the request.

        Returns:
            CreditInfo with refunded = min(failed outcomes, used).

        Raises:
            ValidationError: If used is negative.
        """
        if used < 0:
            raise ValidationError("creditsUsed cannot be negative", field="creditsUsed")

        failed = sum(1 for outcome in outcomes if not outcome.success)
        refunded = min(failed, used)
        return CreditInfo(used=used, refunded=refunded, net=used - refunded)
