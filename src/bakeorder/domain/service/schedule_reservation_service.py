"""Domain service: Schedule Reservation.

Coordinates the Purchase aggregate with the closed-date calendar.  A
purchase blocks its preparation days and its event day; the calendar is
the shared resource that keeps two purchases from claiming the same
days.

Like any reservation, the work is split into validate-then-mutate:
``ensure_bookable`` runs every check without touching the calendar and
``reserve_for`` writes the whole window in one batch.
"""

from __future__ import annotations

from datetime import date, timedelta

from bakeorder.domain.exceptions import ValidationError
from bakeorder.domain.model.closed_date import ClosedDate
from bakeorder.domain.model.purchase import PREPARATION_DAYS, Purchase
from bakeorder.domain.model.value_objects import DateRange
from bakeorder.domain.repository.closed_date_calendar import ClosedDateCalendar


def reserved_window(event_date: date) -> DateRange:
    return DateRange.ending_on(event_date, PREPARATION_DAYS)


def order_cutoff(event_date: date) -> date:
    """First day on which an order for ``event_date`` is too late.

    That is the day before the first preparation day.
    """
    return reserved_window(event_date).start - timedelta(days=1)


class ScheduleReservationService:

    def __init__(self, calendar: ClosedDateCalendar) -> None:
        self._calendar = calendar

    def ensure_bookable(self, event_date: date, today: date) -> DateRange:
        """Check lead time and calendar availability for a new purchase.

        Returns the window that ``reserve_for`` will close.
        """
        if today >= order_cutoff(event_date):
            raise ValidationError("Cannot create within 2 days before event date")

        window = reserved_window(event_date)
        if not self._calendar.is_free(window):
            raise ValidationError(
                f"Cannot create purchase on a closed date: {window}"
            )
        return window

    def reserve_for(self, purchase: Purchase) -> list[ClosedDate]:
        """Close the purchase's preparation days and event day as one batch."""
        batch = ClosedDate.for_window(purchase.reserved_window)
        self._calendar.save_batch(batch)
        return batch

    def release_for(self, purchase: Purchase) -> int:
        """Reopen the purchase's whole window as one batch."""
        window = purchase.reserved_window
        return self._calendar.delete_between(window.start, window.end)

    @staticmethod
    def ensure_cancellable_on(purchase: Purchase, today: date, is_admin: bool) -> None:
        """Date rules for cancelling.  Admins may cancel during preparation."""
        if today > purchase.event_date:
            raise ValidationError("Cannot cancel purchase after event date")
        if not is_admin and today >= purchase.reserved_window.start:
            raise ValidationError("Cannot cancel purchase during preparation period")
