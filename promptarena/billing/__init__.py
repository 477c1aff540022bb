"""
Billing module: credit reconciliation and provider cost estimates.

Public API:
- CreditInfo: {used, refunded, net} for one request
- CreditReconciler: reconcile(used, outcomes) -> CreditInfo
- RefundStatus: Whether the refund for failed providers went through
- CostBreakdown: USD cost of one provider call
- CostCalculator: Token-based cost estimates from registry pricing
"""

from promptarena.billing.cost import CostBreakdown, CostCalculator
from promptarena.billing.credits import CreditInfo, CreditReconciler, RefundStatus

__all__ = [
    "CreditInfo",
    "CreditReconciler",
    "RefundStatus",
    "CostBreakdown",
    "CostCalculator",
]
