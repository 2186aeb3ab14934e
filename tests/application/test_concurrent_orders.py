"""Concurrent orchestrator calls against the JSON-file repositories.

Each test builds the orchestrator the way the composition root does,
with real files under tmp_path, and races two operations against each
other from separate threads.
"""

import threading
import time
from datetime import date

from bakeorder.application.dto import OrderItemSpec
from bakeorder.application.notifications import NotificationDispatcher
from bakeorder.application.orchestrator import OrderOrchestrator
from bakeorder.domain.model.purchase import PurchaseStatus
from bakeorder.domain.model.transaction import TransactionStatus
from bakeorder.domain.model.value_objects import Money
from bakeorder.infrastructure.bootstrap import (
    cart_repository,
    closed_date_calendar,
    purchase_repository,
)
from bakeorder.infrastructure.persistence.file_locks import FileKeyedLocks
from bakeorder.infrastructure.persistence.json_transaction_ledger import (
    JsonTransactionLedger,
)
from tests.fakes import (
    ADMIN,
    CUPCAKES,
    CUSTOMER,
    OTHER_CUSTOMER,
    RETIRED,
    ROUND_CAKE,
    TODAY,
    FakeAccountRepository,
    FakeNotificationClient,
    FakePaymentGateway,
    FakeVariantRepository,
    InlineExecutor,
    SequentialIdGenerator,
    as_identity,
)


class SlowGateway(FakePaymentGateway):
    """Answers after a short delay so racing callers overlap."""

    def create_transaction(self, request):
        time.sleep(0.05)
        return super().create_transaction(request)


class RendezvousLedger(JsonTransactionLedger):
    """Makes writers wait for each other right before replacing the file.

    With the file lock in place the second writer cannot get here until
    the first is done, so the wait times out and both writes go through
    one after the other.
    """

    rendezvous: threading.Barrier | None = None

    def _persist_raw(self, records):
        if self.rendezvous is not None:
            try:
                self.rendezvous.wait(timeout=0.5)
            except threading.BrokenBarrierError:
                pass
        super()._persist_raw(records)


def _orchestrator(data_dir, ledger=None, first_id=1000):
    return OrderOrchestrator(
        purchase_repo=purchase_repository(data_dir),
        ledger=ledger or RendezvousLedger(data_dir / "transactions.json"),
        calendar=closed_date_calendar(data_dir),
        variant_repo=FakeVariantRepository([ROUND_CAKE, CUPCAKES, RETIRED]),
        cart_repo=cart_repository(data_dir),
        account_repo=FakeAccountRepository([CUSTOMER, OTHER_CUSTOMER, ADMIN]),
        gateway=SlowGateway(),
        dispatcher=NotificationDispatcher(FakeNotificationClient(), executor=InlineExecutor()),
        ids=SequentialIdGenerator(start=first_id),
        service_fee=Money.of("5000"),
        clock=lambda: TODAY,
        locks=FileKeyedLocks(data_dir / ".locks"),
    )


def _order(orchestrator, account, event_date):
    return orchestrator.process_order(
        as_identity(account), event_date, [OrderItemSpec(variant_id=12, quantity=1)]
    )


def _race(*calls):
    results = [None] * len(calls)
    start = threading.Barrier(len(calls))

    def run(i, call):
        start.wait()
        results[i] = call()

    threads = [threading.Thread(target=run, args=(i, c)) for i, c in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results


class TestConcurrentWrites:

    def test_payment_update_and_new_order_both_survive(self, tmp_path):
        ledger = RendezvousLedger(tmp_path / "transactions.json")
        orchestrator = _orchestrator(tmp_path, ledger=ledger)
        existing = _order(orchestrator, OTHER_CUSTOMER, date(2025, 6, 20)).unwrap()
        reference = existing.transactions[0].reference_id

        ledger.rendezvous = threading.Barrier(2)
        created, paid = _race(
            lambda: _order(orchestrator, CUSTOMER, date(2025, 6, 10)),
            lambda: orchestrator.record_payment_status(reference, "settlement"),
        )

        assert created.ok and paid.ok
        new_transactions = ledger.list_by_purchase(created.value.id)
        assert [t.status for t in new_transactions] == [TransactionStatus.CREATED]
        assert ledger.has_active_for_account(CUSTOMER.id)
        assert ledger.latest_of(existing.id).status == TransactionStatus.SETTLEMENT

    def test_confirm_and_new_order_both_survive(self, tmp_path):
        orchestrator = _orchestrator(tmp_path)
        existing = _order(orchestrator, OTHER_CUSTOMER, date(2025, 6, 20)).unwrap()
        orchestrator.record_payment_status(
            existing.transactions[0].reference_id, "settlement"
        ).unwrap()

        created, confirmed = _race(
            lambda: _order(orchestrator, CUSTOMER, date(2025, 6, 10)),
            lambda: orchestrator.confirm_order(as_identity(ADMIN), existing.id),
        )

        assert created.ok and confirmed.ok
        purchases = purchase_repository(tmp_path)
        assert purchases.get_by_id(created.value.id) is not None
        assert purchases.get_by_id(existing.id).status == PurchaseStatus.CONFIRMED


class TestConcurrentOrdersAcrossProcesses:
    """Two orchestrators over one data directory stand in for two CLI runs."""

    def test_overlapping_dates_booked_once(self, tmp_path):
        first = _orchestrator(tmp_path, first_id=1000)
        second = _orchestrator(tmp_path, first_id=5000)

        results = _race(
            lambda: _order(first, CUSTOMER, date(2025, 6, 10)),
            lambda: _order(second, OTHER_CUSTOMER, date(2025, 6, 11)),
        )

        assert sorted(r.ok for r in results) == [False, True]
        closed = closed_date_calendar(tmp_path).all_between(date(2025, 6, 1), date(2025, 6, 30))
        assert len(closed) == 3
        assert len(purchase_repository(tmp_path).list_all()) == 1

    def test_same_account_gets_one_active_transaction(self, tmp_path):
        first = _orchestrator(tmp_path, first_id=1000)
        second = _orchestrator(tmp_path, first_id=5000)

        results = _race(
            lambda: _order(first, CUSTOMER, date(2025, 6, 10)),
            lambda: _order(second, CUSTOMER, date(2025, 6, 20)),
        )

        assert sorted(r.ok for r in results) == [False, True]
        failed = next(r for r in results if not r.ok)
        assert "ongoing transaction" in failed.error.message
        ledger = JsonTransactionLedger(tmp_path / "transactions.json")
        assert len(ledger.list_by_account(CUSTOMER.id)) == 1
