"""Application service: purchase queries."""

from __future__ import annotations

from datetime import date

import structlog

from bakeorder.application.dto import (
    ClosedDateDTO,
    PurchaseDTO,
    TransactionDTO,
    to_closed_date_dto,
    to_purchase_dto,
    to_transaction_dto,
)
from bakeorder.application.identity import Identity
from bakeorder.application.ports import PaymentGatewayClient
from bakeorder.application.record_payment import RecordPaymentStatusHandler
from bakeorder.domain.exceptions import (
    EntityNotFoundError,
    PaymentGatewayError,
    ValidationError,
)
from bakeorder.domain.model.purchase import Purchase
from bakeorder.domain.repository.closed_date_calendar import ClosedDateCalendar
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger

logger = structlog.get_logger(__name__)


class ShowPurchaseHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        ledger: TransactionLedger,
        calendar: ClosedDateCalendar,
        gateway: PaymentGatewayClient,
        payments: RecordPaymentStatusHandler,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._ledger = ledger
        self._calendar = calendar
        self._gateway = gateway
        self._payments = payments

    def purchase(self, identity: Identity, purchase_id: int) -> PurchaseDTO:
        identity.ensure_owner_or_admin(self._ledger, purchase_id)
        purchase = self._get(purchase_id)
        return to_purchase_dto(purchase, self._ledger.list_by_purchase(purchase_id))

    def transaction(self, identity: Identity, purchase_id: int) -> TransactionDTO:
        """Newest transaction of a purchase, refreshed from the gateway.

        If the gateway cannot be reached the stored status is returned.
        """
        identity.ensure_owner_or_admin(self._ledger, purchase_id)
        self._get(purchase_id)

        transaction = self._ledger.latest_of(purchase_id)
        if transaction is None:
            raise ValidationError("No transaction found for this purchase")

        if transaction.reference_id:
            try:
                status = self._gateway.fetch_status(transaction.reference_id)
            except PaymentGatewayError as exc:
                logger.warning(
                    "payment_status_refresh_failed",
                    transaction_id=transaction.id,
                    error=str(exc),
                )
            else:
                self._payments.apply(transaction, status)

        return to_transaction_dto(transaction)

    def purchases(self, identity: Identity) -> list[PurchaseDTO]:
        """Every purchase for admins, only their own for customers."""
        if identity.is_admin:
            purchases = self._purchase_repo.list_all()
        else:
            purchase_ids = dict.fromkeys(
                t.purchase_id for t in self._ledger.list_by_account(identity.account_id)
            )
            purchases = [
                p
                for p in (self._purchase_repo.get_by_id(pid) for pid in purchase_ids)
                if p is not None
            ]
        return [
            to_purchase_dto(p, self._ledger.list_by_purchase(p.id)) for p in purchases
        ]

    def closed_dates(self, start: date, end: date) -> list[ClosedDateDTO]:
        if end < start:
            raise ValidationError(f"End date {end} is before start date {start}")
        return [to_closed_date_dto(cd) for cd in self._calendar.all_between(start, end)]

    def _get(self, purchase_id: int) -> Purchase:
        purchase = self._purchase_repo.get_by_id(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase #{purchase_id} not found")
        return purchase
