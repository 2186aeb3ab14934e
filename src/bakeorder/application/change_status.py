"""Application service: admin status changes.

Covers the explicit status override, the "next status" shortcut and the
list of statuses reachable from where a purchase stands now.  Legality
is always decided by the purchase's transition table.
"""

from __future__ import annotations

import structlog

from bakeorder.application.cancel_order import CancelOrderHandler
from bakeorder.application.dto import PurchaseDTO, to_purchase_dto
from bakeorder.application.identity import Identity
from bakeorder.domain.exceptions import EntityNotFoundError
from bakeorder.domain.model.purchase import Purchase, PurchaseStatus
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger

logger = structlog.get_logger(__name__)


class ChangeStatusHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        ledger: TransactionLedger,
        cancel_handler: CancelOrderHandler,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._ledger = ledger
        self._cancel_handler = cancel_handler

    def change(self, identity: Identity, purchase_id: int, status_name: str) -> PurchaseDTO:
        """Move a purchase to the named status.

        Cancelling this way has the same effect as a regular admin
        cancellation: transactions are cancelled and dates reopened.
        """
        identity.require_admin()
        target = PurchaseStatus.from_name(status_name)

        purchase = self._get(purchase_id)
        if target == PurchaseStatus.CANCELLED:
            return self._cancel_handler.handle(identity, purchase_id)

        previous = purchase.status
        purchase.transition_to(target)
        self._purchase_repo.save(purchase)

        logger.info(
            "order_status_changed",
            purchase_id=purchase_id,
            from_status=previous.value,
            to_status=target.value,
        )
        return to_purchase_dto(purchase, self._ledger.list_by_purchase(purchase_id))

    def upgrade(self, identity: Identity, purchase_id: int) -> PurchaseDTO:
        identity.require_admin()

        purchase = self._get(purchase_id)
        previous = purchase.status
        target = purchase.upgrade()
        self._purchase_repo.save(purchase)

        logger.info(
            "order_status_upgraded",
            purchase_id=purchase_id,
            from_status=previous.value,
            to_status=target.value,
        )
        return to_purchase_dto(purchase, self._ledger.list_by_purchase(purchase_id))

    def available(self, identity: Identity, purchase_id: int) -> dict[str, str]:
        identity.ensure_owner_or_admin(self._ledger, purchase_id)
        return self._get(purchase_id).available_statuses()

    def _get(self, purchase_id: int) -> Purchase:
        purchase = self._purchase_repo.get_by_id(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase #{purchase_id} not found")
        return purchase
