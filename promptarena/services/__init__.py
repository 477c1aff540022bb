"""
Services module: collaborators outside the comparison core.

Public API:
- EmailSender: Email the rendered report (EmailJS)
- CreditLedgerClient: Deduct and refund credits on the external ledger
- parse_payment_event: Payment webhook body -> ComparisonRequest | None
"""

from promptarena.services.email import EmailSender, is_valid_email
from promptarena.services.ledger import CreditLedgerClient, build_ledger_client
from promptarena.services.webhook import (
    CAPTURE_COMPLETED,
    generate_order_id,
    parse_payment_event,
)

__all__ = [
    "EmailSender",
    "is_valid_email",
    "CreditLedgerClient",
    "build_ledger_client",
    "CAPTURE_COMPLETED",
    "generate_order_id",
    "parse_payment_event",
]
