"""Application service: Cancel Order use case.

Cancels every transaction of the purchase and reopens the calendar
window it had closed.  Customers may cancel their own purchase until the
preparation period starts; admins may cancel any purchase up to and
including the event day, and the customer is told about it.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import structlog

from bakeorder.application.dto import PurchaseDTO, to_purchase_dto
from bakeorder.application.identity import Identity
from bakeorder.application.notifications import PurchaseNotifier
from bakeorder.domain.exceptions import EntityNotFoundError, UnauthorizedError
from bakeorder.domain.repository.closed_date_calendar import ClosedDateCalendar
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger
from bakeorder.domain.service.schedule_reservation_service import (
    ScheduleReservationService,
)

logger = structlog.get_logger(__name__)


class CancelOrderHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        ledger: TransactionLedger,
        calendar: ClosedDateCalendar,
        notifier: PurchaseNotifier,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._ledger = ledger
        self._calendar = calendar
        self._notifier = notifier
        self._clock = clock

    def handle(self, identity: Identity, purchase_id: int) -> PurchaseDTO:
        purchase = self._purchase_repo.get_by_id(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase #{purchase_id} not found")

        purchase.ensure_cancellable()

        if not identity.is_admin and not self._ledger.is_owner(
            purchase_id, identity.account_id
        ):
            raise UnauthorizedError("You are not authorized to cancel this purchase")

        schedule = ScheduleReservationService(self._calendar)
        schedule.ensure_cancellable_on(
            purchase, today=self._clock(), is_admin=identity.is_admin
        )

        cancelled = self._ledger.cancel_all_of(purchase_id)
        purchase.cancel()
        self._purchase_repo.save(purchase)
        released = schedule.release_for(purchase)

        logger.info(
            "order_cancelled",
            purchase_id=purchase_id,
            by_account=identity.account_id,
            by_admin=identity.is_admin,
            transactions_cancelled=cancelled,
            dates_released=released,
        )

        if identity.is_admin:
            self._notifier.order_cancelled(purchase)

        return to_purchase_dto(purchase, self._ledger.list_by_purchase(purchase_id))
