"""Application service: Confirm Order use case.

An admin confirms a purchase once the ledger shows it has been paid.
"""

from __future__ import annotations

import structlog

from bakeorder.application.dto import PurchaseDTO, to_purchase_dto
from bakeorder.application.identity import Identity
from bakeorder.application.notifications import PurchaseNotifier
from bakeorder.domain.exceptions import EntityNotFoundError, ValidationError
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger

logger = structlog.get_logger(__name__)


class ConfirmOrderHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        ledger: TransactionLedger,
        notifier: PurchaseNotifier,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._ledger = ledger
        self._notifier = notifier

    def handle(self, identity: Identity, purchase_id: int) -> PurchaseDTO:
        identity.require_admin()

        purchase = self._purchase_repo.get_by_id(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase #{purchase_id} not found")

        purchase.ensure_confirmable()

        transactions = self._ledger.list_by_purchase(purchase_id)
        if not any(t.is_paid for t in transactions):
            raise ValidationError("Transaction for this purchase has not been paid yet")

        purchase.confirm()
        self._purchase_repo.save(purchase)

        logger.info("order_confirmed", purchase_id=purchase_id, by_account=identity.account_id)

        self._notifier.order_confirmed(purchase)

        return to_purchase_dto(purchase, transactions)
