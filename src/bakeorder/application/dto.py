"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from bakeorder.domain.model.closed_date import ClosedDate
from bakeorder.domain.model.purchase import Purchase
from bakeorder.domain.model.transaction import Transaction


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (variant id + quantity)."""

    variant_id: int
    quantity: int


@dataclass(frozen=True)
class PurchaseItemDTO:
    variant_id: int
    name: str
    quantity: int
    unit_price: str  # formatted, e.g. "IDR 150,000.00"
    line_total: str


@dataclass(frozen=True)
class TransactionDTO:
    id: int
    purchase_id: int
    account_id: int
    status: str
    reference_id: str | None
    payment_url: str | None
    created_at: str


@dataclass(frozen=True)
class PurchaseDTO:
    id: int
    event_date: str
    status: str
    items: list[PurchaseItemDTO]
    delivery_fee: str | None
    subtotal: str
    total: str
    created_at: str
    transactions: list[TransactionDTO]


@dataclass(frozen=True)
class ClosedDateDTO:
    date: str
    closure_type: str


# --- Mapping ------------------------------------------------------------------


def to_transaction_dto(transaction: Transaction) -> TransactionDTO:
    return TransactionDTO(
        id=transaction.id,
        purchase_id=transaction.purchase_id,
        account_id=transaction.account_id,
        status=transaction.status.value,
        reference_id=transaction.reference_id,
        payment_url=transaction.payment_url,
        created_at=transaction.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


def to_purchase_dto(
    purchase: Purchase,
    transactions: list[Transaction] | None = None,
) -> PurchaseDTO:
    return PurchaseDTO(
        id=purchase.id,
        event_date=purchase.event_date.isoformat(),
        status=purchase.status.value,
        items=[
            PurchaseItemDTO(
                variant_id=item.variant_id,
                name=item.display_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in purchase.items
        ],
        delivery_fee=str(purchase.delivery_fee) if purchase.delivery_fee else None,
        subtotal=str(purchase.subtotal),
        total=str(purchase.total),
        created_at=purchase.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        transactions=[to_transaction_dto(t) for t in transactions or []],
    )


def to_closed_date_dto(closed_date: ClosedDate) -> ClosedDateDTO:
    return ClosedDateDTO(
        date=closed_date.date.isoformat(),
        closure_type=closed_date.closure_type.value,
    )
