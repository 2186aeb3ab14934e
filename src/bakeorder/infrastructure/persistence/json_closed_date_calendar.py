"""JSON-file-backed implementation of ClosedDateCalendar."""

from __future__ import annotations

from datetime import date

from bakeorder.domain.exceptions import ValidationError
from bakeorder.domain.model.closed_date import ClosedDate, ClosureType
from bakeorder.domain.repository.closed_date_calendar import ClosedDateCalendar
from bakeorder.infrastructure.persistence.json_file import JsonFile


class JsonClosedDateCalendar(JsonFile, ClosedDateCalendar):

    # --- ClosedDateCalendar interface -----------------------------------------

    def all_between(self, start: date, end: date) -> list[ClosedDate]:
        found = [
            cd for cd in map(self._to_domain, self._load_raw()) if start <= cd.date <= end
        ]
        return sorted(found, key=lambda cd: cd.date)

    def save_batch(self, batch: list[ClosedDate]) -> None:
        with self._exclusive():
            records = self._load_raw()
            taken = {raw["date"] for raw in records}

            # Phase 1: validate the whole batch before writing anything
            for closed_date in batch:
                day = closed_date.date.isoformat()
                if day in taken:
                    raise ValidationError(f"Date {day} is already closed")
                taken.add(day)

            # Phase 2: a single write
            records.extend(self._to_raw(cd) for cd in batch)
            records.sort(key=lambda raw: raw["date"])
            self._persist_raw(records)

    def delete_between(self, start: date, end: date) -> int:
        with self._exclusive():
            records = self._load_raw()
            kept = [
                raw for raw in records if not start <= date.fromisoformat(raw["date"]) <= end
            ]
            removed = len(records) - len(kept)
            if removed:
                self._persist_raw(kept)
        return removed

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(closed_date: ClosedDate) -> dict:
        return {
            "date": closed_date.date.isoformat(),
            "closure_type": closed_date.closure_type.value,
        }

    @staticmethod
    def _to_domain(raw: dict) -> ClosedDate:
        return ClosedDate(
            date=date.fromisoformat(raw["date"]),
            closure_type=ClosureType(raw["closure_type"]),
        )
