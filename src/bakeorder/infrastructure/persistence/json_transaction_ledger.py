"""JSON-file-backed implementation of TransactionLedger."""

from __future__ import annotations

from datetime import datetime

from bakeorder.domain.model.transaction import Transaction, TransactionStatus
from bakeorder.domain.repository.transaction_ledger import TransactionLedger
from bakeorder.infrastructure.persistence.json_file import JsonFile


class JsonTransactionLedger(JsonFile, TransactionLedger):

    # --- TransactionLedger interface ------------------------------------------

    def get_by_id(self, transaction_id: int) -> Transaction | None:
        return self._find(lambda raw: raw["id"] == transaction_id)

    def get_by_reference(self, reference_id: str) -> Transaction | None:
        return self._find(lambda raw: raw.get("reference_id") == reference_id)

    def list_by_account(self, account_id: int) -> list[Transaction]:
        return [
            self._to_domain(raw)
            for raw in self._load_raw()
            if raw["account_id"] == account_id
        ]

    def list_by_purchase(self, purchase_id: int) -> list[Transaction]:
        return [
            self._to_domain(raw)
            for raw in self._load_raw()
            if raw["purchase_id"] == purchase_id
        ]

    def save(self, transaction: Transaction) -> None:
        self.save_all([transaction])

    def save_all(self, transactions: list[Transaction]) -> None:
        with self._exclusive():
            records = self._load_raw()
            index = {raw["id"]: i for i, raw in enumerate(records)}
            for transaction in transactions:
                raw = self._to_raw(transaction)
                if transaction.id in index:
                    records[index[transaction.id]] = raw
                else:
                    index[transaction.id] = len(records)
                    records.append(raw)
            self._persist_raw(records)

    # --- Serialization --------------------------------------------------------

    def _find(self, predicate) -> Transaction | None:
        for raw in self._load_raw():
            if predicate(raw):
                return self._to_domain(raw)
        return None

    @staticmethod
    def _to_raw(transaction: Transaction) -> dict:
        return {
            "id": transaction.id,
            "purchase_id": transaction.purchase_id,
            "account_id": transaction.account_id,
            "status": transaction.status.value,
            "reference_id": transaction.reference_id,
            "payment_url": transaction.payment_url,
            "created_at": transaction.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Transaction:
        return Transaction(
            id=raw["id"],
            purchase_id=raw["purchase_id"],
            account_id=raw["account_id"],
            status=TransactionStatus(raw["status"]),
            reference_id=raw.get("reference_id"),
            payment_url=raw.get("payment_url"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
