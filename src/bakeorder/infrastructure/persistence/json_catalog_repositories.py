"""JSON-file-backed repositories for the data the ordering flow only reads.

Variants, accounts and carts are maintained by other parts of the
system; here they are loaded as-is.
"""

from __future__ import annotations

from decimal import Decimal

from bakeorder.domain.model.account import Account
from bakeorder.domain.model.value_objects import DEFAULT_CURRENCY, Money
from bakeorder.domain.model.variant import Variant
from bakeorder.domain.repository.account_repository import AccountRepository
from bakeorder.domain.repository.cart_repository import CartRepository
from bakeorder.domain.repository.variant_repository import VariantRepository
from bakeorder.infrastructure.persistence.json_file import JsonFile


class JsonVariantRepository(JsonFile, VariantRepository):

    def get_by_id(self, variant_id: int) -> Variant | None:
        for raw in self._load_raw():
            if raw["id"] == variant_id:
                return self._to_domain(raw)
        return None

    @staticmethod
    def _to_domain(raw: dict) -> Variant:
        return Variant(
            id=raw["id"],
            product_name=raw["product_name"],
            label=raw["label"],
            price=Money(Decimal(raw["price"]), raw.get("currency", DEFAULT_CURRENCY)),
            available=raw.get("available", True),
        )


class JsonAccountRepository(JsonFile, AccountRepository):

    def get_by_id(self, account_id: int) -> Account | None:
        for raw in self._load_raw():
            if raw["id"] == account_id:
                return Account(
                    id=raw["id"],
                    name=raw["name"],
                    phone=raw.get("phone", ""),
                    email=raw.get("email", ""),
                    is_admin=raw.get("is_admin", False),
                )
        return None


class JsonCartRepository(JsonFile, CartRepository):

    def items_of(self, account_id: int) -> dict[int, int]:
        return {
            raw["variant_id"]: raw["quantity"]
            for raw in self._load_raw()
            if raw["account_id"] == account_id
        }

    def clear(self, account_id: int) -> int:
        with self._exclusive():
            records = self._load_raw()
            kept = [raw for raw in records if raw["account_id"] != account_id]
            removed = len(records) - len(kept)
            if removed:
                self._persist_raw(kept)
        return removed
