"""A calendar day that no new purchase may claim."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from bakeorder.domain.model.value_objects import DateRange


class ClosureType(Enum):
    PREP = "PREP"
    RESERVED = "RESERVED"


@dataclass(frozen=True)
class ClosedDate:
    date: date
    closure_type: ClosureType

    @staticmethod
    def for_window(window: DateRange) -> list[ClosedDate]:
        """Every day of the window is PREP except the last, which is RESERVED."""
        return [
            ClosedDate(
                date=day,
                closure_type=(
                    ClosureType.RESERVED if day == window.end else ClosureType.PREP
                ),
            )
            for day in window
        ]
