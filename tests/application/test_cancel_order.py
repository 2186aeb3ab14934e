"""Integration tests for the CancelOrder use case."""

from datetime import date

from bakeorder.application.dto import OrderItemSpec
from bakeorder.domain.exceptions import ErrorKind
from bakeorder.domain.model.purchase import PurchaseStatus
from bakeorder.domain.model.transaction import TransactionStatus
from tests.fakes import ADMIN, CUSTOMER, OTHER_CUSTOMER, as_identity, build_harness

EVENT = date(2025, 6, 10)


def _setup(status: PurchaseStatus | None = None):
    """Harness with one purchase for CUSTOMER, optionally forced into a status."""
    h = build_harness()
    dto = h.orchestrator.process_order(
        as_identity(CUSTOMER), EVENT, [OrderItemSpec(12, 1)]
    ).unwrap()
    if status is not None:
        purchase = h.purchases.get_by_id(dto.id)
        purchase.status = status
        h.purchases.save(purchase)
    h.messaging.sent.clear()
    return h, dto.id


def _closed_days(h):
    return [cd.date for cd in h.calendar.all_between(date(2025, 6, 1), date(2025, 6, 30))]


class TestCancelByCustomer:

    def test_cancels_purchase_transactions_and_dates(self):
        h, pid = _setup()

        result = h.orchestrator.cancel_order(as_identity(CUSTOMER), pid)

        assert result.ok
        assert result.value.status == "CANCELLED"
        assert h.purchases.get_by_id(pid).status == PurchaseStatus.CANCELLED
        assert all(
            t.status == TransactionStatus.CANCELLED for t in h.ledger.list_by_purchase(pid)
        )
        assert _closed_days(h) == []

    def test_leaves_other_closed_dates_alone(self):
        h, pid = _setup()
        h.orchestrator.process_order(
            as_identity(OTHER_CUSTOMER), date(2025, 6, 20), [OrderItemSpec(13, 1)]
        ).unwrap()

        h.orchestrator.cancel_order(as_identity(CUSTOMER), pid).unwrap()

        assert _closed_days(h) == [date(2025, 6, 18), date(2025, 6, 19), date(2025, 6, 20)]

    def test_customer_cancel_sends_no_notification(self):
        h, pid = _setup()
        h.orchestrator.cancel_order(as_identity(CUSTOMER), pid).unwrap()
        assert h.messaging.sent == []

    def test_released_window_can_be_booked_again(self):
        h, pid = _setup()
        h.orchestrator.cancel_order(as_identity(CUSTOMER), pid).unwrap()
        again = h.orchestrator.process_order(
            as_identity(OTHER_CUSTOMER), EVENT, [OrderItemSpec(12, 1)]
        )
        assert again.ok

    def test_someone_elses_purchase_rejected(self):
        h, pid = _setup()
        result = h.orchestrator.cancel_order(as_identity(OTHER_CUSTOMER), pid)
        assert result.error.kind == ErrorKind.UNAUTHORIZED
        assert h.purchases.get_by_id(pid).status == PurchaseStatus.CREATED

    def test_during_preparation_rejected(self):
        h, pid = _setup(PurchaseStatus.CONFIRMED)
        h.set_today(date(2025, 6, 8))

        result = h.orchestrator.cancel_order(as_identity(CUSTOMER), pid)

        assert "during preparation period" in result.error.message
        assert len(_closed_days(h)) == 3


class TestCancelByAdmin:

    def test_two_days_before_event(self):
        h, pid = _setup(PurchaseStatus.CONFIRMED)
        h.set_today(date(2025, 6, 8))

        result = h.orchestrator.cancel_order(as_identity(ADMIN), pid)

        assert result.ok
        assert _closed_days(h) == []

    def test_notifies_owner(self):
        h, pid = _setup(PurchaseStatus.CONFIRMED)
        h.orchestrator.cancel_order(as_identity(ADMIN), pid).unwrap()

        assert len(h.messaging.sent) == 1
        phone, message, _ = h.messaging.sent[0]
        assert phone == CUSTOMER.phone
        assert "cancelled by the admin" in message

    def test_after_event_rejected(self):
        h, pid = _setup(PurchaseStatus.CONFIRMED)
        h.set_today(date(2025, 6, 11))
        result = h.orchestrator.cancel_order(as_identity(ADMIN), pid)
        assert "after event date" in result.error.message


class TestCancelRejections:

    def test_already_cancelled(self):
        h, pid = _setup()
        h.orchestrator.cancel_order(as_identity(CUSTOMER), pid).unwrap()
        result = h.orchestrator.cancel_order(as_identity(CUSTOMER), pid)
        assert "already cancelled" in result.error.message

    def test_delivered(self):
        h, pid = _setup(PurchaseStatus.DELIVERED)
        result = h.orchestrator.cancel_order(as_identity(ADMIN), pid)
        assert "Cannot cancel delivered purchase" in result.error.message
        assert len(_closed_days(h)) == 3

    def test_unknown_purchase(self):
        h, _ = _setup()
        result = h.orchestrator.cancel_order(as_identity(ADMIN), 1)
        assert result.error.kind == ErrorKind.NOT_FOUND

    def test_transactions_cancelled_in_one_write(self):
        h, pid = _setup()
        h.orchestrator.cancel_order(as_identity(CUSTOMER), pid).unwrap()
        assert h.ledger.save_all_calls == 1
