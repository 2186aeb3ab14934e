"""Application service: Record Payment Status use case.

Applies a status reported by the payment gateway (webhook or poll) to
the ledger.  A transaction that becomes paid moves its purchase from
CREATED to PENDING, where it waits for an admin to confirm it.
"""

from __future__ import annotations

import structlog

from bakeorder.application.dto import TransactionDTO, to_transaction_dto
from bakeorder.domain.exceptions import EntityNotFoundError
from bakeorder.domain.model.purchase import PurchaseStatus
from bakeorder.domain.model.transaction import Transaction, TransactionStatus
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger

logger = structlog.get_logger(__name__)


class RecordPaymentStatusHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        ledger: TransactionLedger,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._ledger = ledger

    def handle(self, reference_id: str, status_name: str) -> TransactionDTO:
        status = TransactionStatus.from_name(status_name)

        transaction = self._ledger.get_by_reference(reference_id)
        if transaction is None:
            raise EntityNotFoundError(
                f"No transaction with gateway reference '{reference_id}'"
            )

        self.apply(transaction, status)
        return to_transaction_dto(transaction)

    def apply(self, transaction: Transaction, status: TransactionStatus) -> bool:
        """Persist a gateway status on the transaction.  Returns True if it changed."""
        previous = transaction.status
        if not transaction.apply_gateway_status(status):
            return False
        self._ledger.save(transaction)

        logger.info(
            "payment_status_recorded",
            transaction_id=transaction.id,
            purchase_id=transaction.purchase_id,
            from_status=previous.value,
            to_status=status.value,
        )

        if transaction.is_paid:
            purchase = self._purchase_repo.get_by_id(transaction.purchase_id)
            if purchase is not None and purchase.status == PurchaseStatus.CREATED:
                purchase.transition_to(PurchaseStatus.PENDING)
                self._purchase_repo.save(purchase)
                logger.info("order_paid", purchase_id=purchase.id)
        return True
