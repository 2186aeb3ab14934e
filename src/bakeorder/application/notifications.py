"""Best-effort customer notifications.

Messages are handed to an executor and the caller never waits for them.
A failed delivery is logged and otherwise ignored.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor

import structlog

from bakeorder.application.ports import NotificationClient
from bakeorder.domain.model.account import Account
from bakeorder.domain.model.purchase import Purchase
from bakeorder.domain.repository.account_repository import AccountRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger

logger = structlog.get_logger(__name__)


class NotificationDispatcher:

    def __init__(
        self,
        client: NotificationClient,
        country_code: str = "62",
        executor: Executor | None = None,
    ) -> None:
        self._client = client
        self._country_code = country_code
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="notify"
        )

    def dispatch(self, phone: str, message: str) -> Future | None:
        """Queue a message for delivery and return immediately."""
        if not phone:
            logger.warning("notification_skipped", reason="no phone number")
            return None
        try:
            return self._executor.submit(self._deliver, phone, message)
        except RuntimeError:
            # executor already shut down
            logger.exception("notification_not_queued", phone=phone)
            return None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _deliver(self, phone: str, message: str) -> bool:
        try:
            self._client.send(phone, message, self._country_code)
        except Exception:
            logger.exception("notification_failed", phone=phone)
            return False
        logger.info("notification_sent", phone=phone)
        return True


class PurchaseNotifier:
    """Formats the customer-facing messages of the purchase lifecycle."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        ledger: TransactionLedger,
        account_repo: AccountRepository,
        frontend_url: str,
    ) -> None:
        self._dispatcher = dispatcher
        self._ledger = ledger
        self._account_repo = account_repo
        self._frontend_url = frontend_url

    def recipient_of(self, purchase: Purchase) -> Account | None:
        """The account behind the purchase's newest transaction."""
        transaction = self._ledger.latest_of(purchase.id)
        if transaction is None:
            return None
        return self._account_repo.get_by_id(transaction.account_id)

    def order_created(self, account: Account, purchase: Purchase, payment_url: str) -> None:
        self._dispatcher.dispatch(
            account.phone,
            f"Order {purchase.id} has been created. Please complete your payment "
            f"to secure the schedule for {purchase.event_date.isoformat()}: {payment_url}",
        )

    def order_cancelled(self, purchase: Purchase) -> None:
        self._to_owner(
            purchase,
            f"Order *{purchase.id}* has been cancelled by the admin. "
            f"Check it here:\n\n{self._frontend_url}",
        )

    def order_confirmed(self, purchase: Purchase) -> None:
        self._to_owner(
            purchase,
            f"Order *{purchase.id}* has been confirmed by the admin. "
            f"Check it here:\n\n{self._frontend_url}",
        )

    def _to_owner(self, purchase: Purchase, message: str) -> None:
        account = self.recipient_of(purchase)
        if account is None:
            logger.warning("notification_skipped", purchase_id=purchase.id, reason="no owner")
            return
        self._dispatcher.dispatch(account.phone, message)
