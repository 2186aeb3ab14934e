"""Abstract read-only repository for accounts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from bakeorder.domain.model.account import Account


class AccountRepository(ABC):

    @abstractmethod
    def get_by_id(self, account_id: int) -> Account | None:
        """Return an account by its ID, or None if not found."""
