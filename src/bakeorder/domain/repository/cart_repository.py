"""Abstract repository for customer carts.

Only the operations the ordering flow needs are declared here; cart
editing belongs to the catalogue side of the system.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CartRepository(ABC):

    @abstractmethod
    def items_of(self, account_id: int) -> dict[int, int]:
        """Return ``{variant_id: quantity}`` currently in the account's cart."""

    @abstractmethod
    def clear(self, account_id: int) -> int:
        """Remove every cart item of the account and return how many were removed."""
