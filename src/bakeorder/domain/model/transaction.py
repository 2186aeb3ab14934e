"""A single payment attempt against a purchase.

Statuses mirror the ones the payment gateway reports.  The ledger, not
the purchase, is the source of truth for transaction records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from bakeorder.domain.exceptions import ValidationError


class TransactionStatus(Enum):
    CREATED = "CREATED"
    PENDING = "PENDING"
    AUTHORIZE = "AUTHORIZE"
    CAPTURE = "CAPTURE"
    SETTLEMENT = "SETTLEMENT"
    DENY = "DENY"
    CANCELLED = "CANCELLED"
    EXPIRE = "EXPIRE"
    FAILURE = "FAILURE"
    REFUND = "REFUND"
    PARTIAL_REFUND = "PARTIAL_REFUND"

    @staticmethod
    def from_name(name: str) -> TransactionStatus:
        normalized = name.strip().upper()
        # gateway reports "cancel"
        if normalized == "CANCEL":
            normalized = "CANCELLED"
        try:
            return TransactionStatus[normalized]
        except KeyError:
            raise ValidationError(f"Unknown transaction status: '{name}'") from None

    @property
    def is_active(self) -> bool:
        return self in (TransactionStatus.CREATED, TransactionStatus.PENDING)

    @property
    def is_paid(self) -> bool:
        return self in (TransactionStatus.CAPTURE, TransactionStatus.SETTLEMENT)


@dataclass
class Transaction:
    id: int
    purchase_id: int
    account_id: int
    status: TransactionStatus = TransactionStatus.CREATED
    reference_id: str | None = None
    payment_url: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def build(transaction_id: int, purchase_id: int, account_id: int) -> Transaction:
        """Unsaved transaction, filled in once the gateway has answered."""
        return Transaction(
            id=transaction_id,
            purchase_id=purchase_id,
            account_id=account_id,
        )

    def attach_gateway_response(self, payment_url: str, reference_id: str) -> None:
        if not payment_url:
            raise ValidationError("Payment gateway returned no redirect URL")
        if not reference_id:
            raise ValidationError("Payment gateway returned no reference id")
        self.payment_url = payment_url
        self.reference_id = reference_id

    def cancel(self) -> bool:
        """Mark as cancelled.  Returns False when nothing changed."""
        if self.status == TransactionStatus.CANCELLED:
            return False
        self.status = TransactionStatus.CANCELLED
        return True

    def apply_gateway_status(self, status: TransactionStatus) -> bool:
        """Record a status observed at the gateway.

        A locally cancelled transaction stays cancelled.  Returns True
        when the status changed.
        """
        if self.status == TransactionStatus.CANCELLED or status == self.status:
            return False
        self.status = status
        return True

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def is_paid(self) -> bool:
        return self.status.is_paid
