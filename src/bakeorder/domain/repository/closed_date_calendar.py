"""Abstract calendar of closed dates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from bakeorder.domain.model.closed_date import ClosedDate
from bakeorder.domain.model.value_objects import DateRange


class ClosedDateCalendar(ABC):

    @abstractmethod
    def all_between(self, start: date, end: date) -> list[ClosedDate]:
        """Return closed dates within [start, end], ordered by date."""

    @abstractmethod
    def save_batch(self, batch: list[ClosedDate]) -> None:
        """Insert every closed date or none of them.

        Raises ValidationError if any day in the batch is already closed
        or appears twice in the batch.
        """

    @abstractmethod
    def delete_between(self, start: date, end: date) -> int:
        """Remove every closed date within [start, end] and return the count."""

    def is_free(self, window: DateRange) -> bool:
        return not self.all_between(window.start, window.end)
