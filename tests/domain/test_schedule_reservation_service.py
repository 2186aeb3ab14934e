"""Tests for the ScheduleReservationService domain service.

Uses the in-memory calendar from tests.fakes.
"""

from datetime import date

import pytest

from bakeorder.domain.exceptions import ValidationError
from bakeorder.domain.model.closed_date import ClosedDate, ClosureType
from bakeorder.domain.model.purchase import Purchase, PurchaseItem
from bakeorder.domain.model.value_objects import Money, Quantity
from bakeorder.domain.service.schedule_reservation_service import (
    ScheduleReservationService,
    order_cutoff,
)
from tests.fakes import FakeClosedDateCalendar

EVENT = date(2025, 6, 10)


def _purchase(event_date: date = EVENT) -> Purchase:
    item = PurchaseItem(12, "Round Cake", "20cm", Quantity(1), Money.of("150000"))
    return Purchase.create(1, event_date, [item])


def _setup(closed: list[ClosedDate] | None = None):
    calendar = FakeClosedDateCalendar(closed)
    return ScheduleReservationService(calendar), calendar


class TestEnsureBookable:

    def test_cutoff_is_day_before_preparation(self):
        assert order_cutoff(EVENT) == date(2025, 6, 7)

    def test_free_window_is_bookable(self):
        service, _ = _setup()
        window = service.ensure_bookable(EVENT, today=date(2025, 6, 1))
        assert (window.start, window.end) == (date(2025, 6, 8), EVENT)

    def test_last_bookable_day(self):
        service, _ = _setup()
        service.ensure_bookable(EVENT, today=date(2025, 6, 6))

    @pytest.mark.parametrize("today", [date(2025, 6, 7), date(2025, 6, 9), date(2025, 6, 12)])
    def test_too_close_rejected(self, today):
        service, _ = _setup()
        with pytest.raises(ValidationError, match="within 2 days"):
            service.ensure_bookable(EVENT, today=today)

    def test_any_closed_day_in_window_rejected(self):
        service, _ = _setup([ClosedDate(date(2025, 6, 9), ClosureType.PREP)])
        with pytest.raises(ValidationError, match="closed date: 2025-06-08 ~ 2025-06-10"):
            service.ensure_bookable(EVENT, today=date(2025, 6, 1))

    def test_neighbouring_closed_day_does_not_block(self):
        service, _ = _setup([ClosedDate(date(2025, 6, 7), ClosureType.RESERVED)])
        service.ensure_bookable(EVENT, today=date(2025, 6, 1))


class TestReserveAndRelease:

    def test_reserve_closes_three_days(self):
        service, calendar = _setup()
        service.reserve_for(_purchase())
        closed = calendar.all_between(date(2025, 6, 1), date(2025, 6, 30))
        assert [(cd.date.day, cd.closure_type) for cd in closed] == [
            (8, ClosureType.PREP),
            (9, ClosureType.PREP),
            (10, ClosureType.RESERVED),
        ]

    def test_reserve_over_closed_day_writes_nothing(self):
        service, calendar = _setup([ClosedDate(date(2025, 6, 10), ClosureType.RESERVED)])
        with pytest.raises(ValidationError, match="already closed"):
            service.reserve_for(_purchase())
        assert len(calendar.all_between(date(2025, 6, 1), date(2025, 6, 30))) == 1

    def test_release_reopens_window(self):
        service, calendar = _setup()
        purchase = _purchase()
        service.reserve_for(purchase)
        assert service.release_for(purchase) == 3
        assert calendar.is_free(purchase.reserved_window)


class TestEnsureCancellableOn:

    def test_customer_before_preparation(self):
        ScheduleReservationService.ensure_cancellable_on(
            _purchase(), today=date(2025, 6, 7), is_admin=False
        )

    def test_customer_during_preparation_rejected(self):
        with pytest.raises(ValidationError, match="during preparation period"):
            ScheduleReservationService.ensure_cancellable_on(
                _purchase(), today=date(2025, 6, 8), is_admin=False
            )

    def test_admin_during_preparation(self):
        ScheduleReservationService.ensure_cancellable_on(
            _purchase(), today=date(2025, 6, 8), is_admin=True
        )

    def test_admin_on_event_day(self):
        ScheduleReservationService.ensure_cancellable_on(
            _purchase(), today=EVENT, is_admin=True
        )

    def test_after_event_rejected_for_everyone(self):
        with pytest.raises(ValidationError, match="after event date"):
            ScheduleReservationService.ensure_cancellable_on(
                _purchase(), today=date(2025, 6, 11), is_admin=True
            )
