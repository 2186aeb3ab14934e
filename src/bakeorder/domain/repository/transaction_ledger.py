"""Abstract ledger of payment transactions.

Implementations only provide storage primitives; the ledger rules
(active-transaction check, bulk cancel, ownership) are shared here so
every backend enforces them the same way.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bakeorder.domain.model.transaction import Transaction


class TransactionLedger(ABC):

    @abstractmethod
    def get_by_id(self, transaction_id: int) -> Transaction | None:
        """Return a transaction by its ID, or None if not found."""

    @abstractmethod
    def get_by_reference(self, reference_id: str) -> Transaction | None:
        """Return the transaction with the given gateway reference, or None."""

    @abstractmethod
    def list_by_account(self, account_id: int) -> list[Transaction]:
        """Return every transaction of an account, any status, oldest first."""

    @abstractmethod
    def list_by_purchase(self, purchase_id: int) -> list[Transaction]:
        """Return every transaction of a purchase, oldest first."""

    @abstractmethod
    def save(self, transaction: Transaction) -> None:
        """Persist a new or updated transaction."""

    @abstractmethod
    def save_all(self, transactions: list[Transaction]) -> None:
        """Persist several transactions in a single atomic write."""

    # --- Ledger rules ---------------------------------------------------------

    def has_active_for_account(self, account_id: int) -> bool:
        return any(t.is_active for t in self.list_by_account(account_id))

    def cancel_all_of(self, purchase_id: int) -> int:
        """Cancel every transaction of a purchase.

        Already-cancelled transactions are left untouched.  Returns the
        number of transactions that changed.
        """
        changed = [t for t in self.list_by_purchase(purchase_id) if t.cancel()]
        if changed:
            self.save_all(changed)
        return len(changed)

    def is_owner(self, purchase_id: int, account_id: int) -> bool:
        return any(
            t.account_id == account_id for t in self.list_by_purchase(purchase_id)
        )

    def latest_of(self, purchase_id: int) -> Transaction | None:
        transactions = self.list_by_purchase(purchase_id)
        return transactions[-1] if transactions else None
