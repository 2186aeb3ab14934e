"""Abstract repository for the Purchase aggregate.

Defined in the domain layer so the domain never depends on
infrastructure.  Concrete implementations live in the infrastructure
layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bakeorder.domain.model.purchase import Purchase


class PurchaseRepository(ABC):

    @abstractmethod
    def get_by_id(self, purchase_id: int) -> Purchase | None:
        """Return a purchase by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Purchase]:
        """Return every purchase, oldest first."""

    @abstractmethod
    def save(self, purchase: Purchase) -> None:
        """Persist a new or updated purchase."""
