"""JSON-file-backed implementation of PurchaseRepository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from bakeorder.domain.model.purchase import Purchase, PurchaseItem, PurchaseStatus
from bakeorder.domain.model.value_objects import Money, Quantity
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.infrastructure.persistence.json_file import JsonFile


class JsonPurchaseRepository(JsonFile, PurchaseRepository):

    # --- PurchaseRepository interface -----------------------------------------

    def get_by_id(self, purchase_id: int) -> Purchase | None:
        for raw in self._load_raw():
            if raw["id"] == purchase_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Purchase]:
        return [self._to_domain(raw) for raw in self._load_raw()]

    def save(self, purchase: Purchase) -> None:
        with self._exclusive():
            purchases = self._load_raw()

            # Upsert: replace if exists, otherwise append
            replaced = False
            for i, raw in enumerate(purchases):
                if raw["id"] == purchase.id:
                    purchases[i] = self._to_raw(purchase)
                    replaced = True
                    break
            if not replaced:
                purchases.append(self._to_raw(purchase))

            self._persist_raw(purchases)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(purchase: Purchase) -> dict:
        return {
            "id": purchase.id,
            "event_date": purchase.event_date.isoformat(),
            "status": purchase.status.value,
            "delivery_fee": (
                str(purchase.delivery_fee.amount) if purchase.delivery_fee else None
            ),
            "currency": purchase.currency,
            "transaction_ids": list(purchase.transaction_ids),
            "created_at": purchase.created_at.isoformat(),
            "items": [
                {
                    "variant_id": item.variant_id,
                    "product_name": item.product_name,
                    "variant_label": item.variant_label,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                }
                for item in purchase.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Purchase:
        currency = raw["currency"]
        items = [
            PurchaseItem(
                variant_id=i["variant_id"],
                product_name=i["product_name"],
                variant_label=i["variant_label"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), currency),
            )
            for i in raw["items"]
        ]
        fee = raw.get("delivery_fee")
        return Purchase(
            id=raw["id"],
            event_date=date.fromisoformat(raw["event_date"]),
            items=items,
            delivery_fee=Money(Decimal(fee), currency) if fee is not None else None,
            status=PurchaseStatus(raw["status"]),
            transaction_ids=list(raw.get("transaction_ids", [])),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
