"""The single entry point of the ordering flow.

Wires the use-case handlers together, serialises operations that touch
the same account, purchase or calendar, and reports every outcome as a
``Result`` instead of letting domain exceptions escape.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, TypeVar

import structlog

from bakeorder.application.cancel_order import CancelOrderHandler
from bakeorder.application.change_status import ChangeStatusHandler
from bakeorder.application.confirm_order import ConfirmOrderHandler
from bakeorder.application.dto import (
    ClosedDateDTO,
    OrderItemSpec,
    PurchaseDTO,
    TransactionDTO,
)
from bakeorder.application.identity import Identity
from bakeorder.application.locking import (
    CALENDAR_KEY,
    KeyedLocks,
    account_key,
    purchase_key,
)
from bakeorder.application.notifications import NotificationDispatcher, PurchaseNotifier
from bakeorder.application.ports import IdGenerator, PaymentGatewayClient
from bakeorder.application.process_order import ProcessOrderHandler
from bakeorder.application.record_payment import RecordPaymentStatusHandler
from bakeorder.application.result import OrderError, Result
from bakeorder.application.show_purchase import ShowPurchaseHandler
from bakeorder.domain.exceptions import DomainException, ErrorKind
from bakeorder.domain.model.value_objects import Money
from bakeorder.domain.repository.account_repository import AccountRepository
from bakeorder.domain.repository.cart_repository import CartRepository
from bakeorder.domain.repository.closed_date_calendar import ClosedDateCalendar
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger
from bakeorder.domain.repository.variant_repository import VariantRepository

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class OrderOrchestrator:

    def __init__(
        self,
        *,
        purchase_repo: PurchaseRepository,
        ledger: TransactionLedger,
        calendar: ClosedDateCalendar,
        variant_repo: VariantRepository,
        cart_repo: CartRepository,
        account_repo: AccountRepository,
        gateway: PaymentGatewayClient,
        dispatcher: NotificationDispatcher,
        ids: IdGenerator,
        service_fee: Money,
        expiry_minutes: int = 60,
        frontend_url: str = "",
        clock: Callable[[], date] = date.today,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._ledger = ledger
        self._locks = locks or KeyedLocks()

        notifier = PurchaseNotifier(dispatcher, ledger, account_repo, frontend_url)
        self._process = ProcessOrderHandler(
            purchase_repo=purchase_repo,
            ledger=ledger,
            calendar=calendar,
            variant_repo=variant_repo,
            cart_repo=cart_repo,
            gateway=gateway,
            notifier=notifier,
            ids=ids,
            service_fee=service_fee,
            expiry_minutes=expiry_minutes,
            clock=clock,
        )
        self._cancel = CancelOrderHandler(
            purchase_repo=purchase_repo,
            ledger=ledger,
            calendar=calendar,
            notifier=notifier,
            clock=clock,
        )
        self._confirm = ConfirmOrderHandler(purchase_repo, ledger, notifier)
        self._status = ChangeStatusHandler(purchase_repo, ledger, self._cancel)
        self._payments = RecordPaymentStatusHandler(purchase_repo, ledger)
        self._show = ShowPurchaseHandler(
            purchase_repo=purchase_repo,
            ledger=ledger,
            calendar=calendar,
            gateway=gateway,
            payments=self._payments,
        )

    # --- Commands -------------------------------------------------------------

    def process_order(
        self,
        identity: Identity,
        event_date: date,
        items: list[OrderItemSpec],
        delivery_fee: Money | None = None,
    ) -> Result[PurchaseDTO]:
        with self._locks.hold(account_key(identity.account_id), CALENDAR_KEY):
            return self._run(
                "process_order",
                lambda: self._process.handle(identity, event_date, items, delivery_fee),
            )

    def cancel_order(self, identity: Identity, purchase_id: int) -> Result[PurchaseDTO]:
        with self._locks.hold(purchase_key(purchase_id), CALENDAR_KEY):
            return self._run(
                "cancel_order", lambda: self._cancel.handle(identity, purchase_id)
            )

    def confirm_order(self, identity: Identity, purchase_id: int) -> Result[PurchaseDTO]:
        with self._locks.hold(purchase_key(purchase_id)):
            return self._run(
                "confirm_order", lambda: self._confirm.handle(identity, purchase_id)
            )

    def change_status(
        self, identity: Identity, purchase_id: int, status: str
    ) -> Result[PurchaseDTO]:
        with self._locks.hold(purchase_key(purchase_id), CALENDAR_KEY):
            return self._run(
                "change_status",
                lambda: self._status.change(identity, purchase_id, status),
            )

    def upgrade_status(self, identity: Identity, purchase_id: int) -> Result[PurchaseDTO]:
        with self._locks.hold(purchase_key(purchase_id)):
            return self._run(
                "upgrade_status", lambda: self._status.upgrade(identity, purchase_id)
            )

    def record_payment_status(
        self, reference_id: str, status: str
    ) -> Result[TransactionDTO]:
        transaction = self._ledger.get_by_reference(reference_id)
        keys = [purchase_key(transaction.purchase_id)] if transaction else []
        with self._locks.hold(*keys):
            return self._run(
                "record_payment_status",
                lambda: self._payments.handle(reference_id, status),
            )

    # --- Queries --------------------------------------------------------------

    def available_statuses(
        self, identity: Identity, purchase_id: int
    ) -> Result[dict[str, str]]:
        return self._run(
            "available_statuses", lambda: self._status.available(identity, purchase_id)
        )

    def find_purchase(self, identity: Identity, purchase_id: int) -> Result[PurchaseDTO]:
        return self._run(
            "find_purchase", lambda: self._show.purchase(identity, purchase_id)
        )

    def find_transaction_of_purchase(
        self, identity: Identity, purchase_id: int
    ) -> Result[TransactionDTO]:
        # the gateway refresh may write the transaction and the purchase
        with self._locks.hold(purchase_key(purchase_id)):
            return self._run(
                "find_transaction_of_purchase",
                lambda: self._show.transaction(identity, purchase_id),
            )

    def list_purchases(self, identity: Identity) -> Result[list[PurchaseDTO]]:
        return self._run("list_purchases", lambda: self._show.purchases(identity))

    def closed_dates(self, start: date, end: date) -> Result[list[ClosedDateDTO]]:
        return self._run("closed_dates", lambda: self._show.closed_dates(start, end))

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _run(operation: str, action: Callable[[], T]) -> Result[T]:
        try:
            return Result.success(action())
        except DomainException as exc:
            log = logger.warning if exc.kind == ErrorKind.DEPENDENCY_FAILURE else logger.info
            log(
                "order_operation_rejected",
                operation=operation,
                kind=exc.kind.value,
                reason=str(exc),
            )
            return Result.failure(OrderError.from_exception(exc))
