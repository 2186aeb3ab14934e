"""Purchase aggregate — the core of the ordering domain.

A Purchase is a customer's order for a future event date.  It owns its
line items and the ordered list of payment transaction ids (newest last).
Status changes go through the transition table below; nothing else may
set ``status`` directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from bakeorder.domain.exceptions import ValidationError
from bakeorder.domain.model.value_objects import DateRange, Money, Quantity

# Days blocked for production ahead of the event date.
PREPARATION_DAYS = 2


class PurchaseStatus(Enum):
    CREATED = "CREATED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    DELIVERED = "DELIVERED"

    @staticmethod
    def from_name(name: str) -> PurchaseStatus:
        try:
            return PurchaseStatus[name.strip().upper()]
        except KeyError:
            raise ValidationError(f"Unknown purchase status: '{name}'") from None

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def next_status(self) -> PurchaseStatus | None:
        """The next step of the normal lifecycle, or None at the end."""
        return _NEXT.get(self)

    def can_transition_to(self, target: PurchaseStatus) -> bool:
        return target in TRANSITIONS[self]


TRANSITIONS: dict[PurchaseStatus, tuple[PurchaseStatus, ...]] = {
    PurchaseStatus.CREATED: (
        PurchaseStatus.PENDING,
        PurchaseStatus.CONFIRMED,
        PurchaseStatus.CANCELLED,
    ),
    PurchaseStatus.PENDING: (PurchaseStatus.CONFIRMED, PurchaseStatus.CANCELLED),
    PurchaseStatus.CONFIRMED: (PurchaseStatus.DELIVERED, PurchaseStatus.CANCELLED),
    PurchaseStatus.DELIVERED: (),
    PurchaseStatus.CANCELLED: (),
}

_NEXT = {
    PurchaseStatus.CREATED: PurchaseStatus.PENDING,
    PurchaseStatus.PENDING: PurchaseStatus.CONFIRMED,
    PurchaseStatus.CONFIRMED: PurchaseStatus.DELIVERED,
}

_LABELS = {
    PurchaseStatus.CREATED: "Waiting for payment",
    PurchaseStatus.PENDING: "Paid, waiting for confirmation",
    PurchaseStatus.CONFIRMED: "Confirmed",
    PurchaseStatus.CANCELLED: "Cancelled",
    PurchaseStatus.DELIVERED: "Delivered",
}


@dataclass(frozen=True)
class PurchaseItem:
    """A line item with the variant price captured at order time."""

    variant_id: int
    product_name: str
    variant_label: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value

    @property
    def display_name(self) -> str:
        return f"{self.product_name} ({self.variant_label})"


@dataclass
class Purchase:
    """Aggregate root for customer purchases.

    Use ``Purchase.create()`` for new purchases.  ``__init__`` stays
    plain so repositories can reconstitute stored purchases as-is.
    """

    id: int
    event_date: date
    items: list[PurchaseItem]
    delivery_fee: Money | None = None
    status: PurchaseStatus = PurchaseStatus.CREATED
    transaction_ids: list[int] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW purchases only) --------------------------------

    @staticmethod
    def create(
        purchase_id: int,
        event_date: date,
        items: list[PurchaseItem],
        delivery_fee: Money | None = None,
    ) -> Purchase:
        if event_date is None:
            raise ValidationError("Event date is required")
        if not items:
            raise ValidationError("Purchase must contain at least one item")

        currencies = {item.unit_price.currency for item in items}
        if delivery_fee is not None:
            currencies.add(delivery_fee.currency)
        if len(currencies) > 1:
            raise ValidationError(
                f"Purchase mixes currencies: {', '.join(sorted(currencies))}"
            )

        return Purchase(
            id=purchase_id,
            event_date=event_date,
            items=list(items),
            delivery_fee=delivery_fee,
        )

    # --- Transactions ---------------------------------------------------------

    def attach_transaction(self, transaction_id: int) -> None:
        if transaction_id in self.transaction_ids:
            raise ValidationError(
                f"Transaction {transaction_id} already belongs to purchase {self.id}"
            )
        self.transaction_ids.append(transaction_id)

    # --- State transitions ----------------------------------------------------

    def ensure_cancellable(self) -> None:
        if self.status == PurchaseStatus.CANCELLED:
            raise ValidationError("Purchase is already cancelled")
        if self.status == PurchaseStatus.DELIVERED:
            raise ValidationError("Cannot cancel delivered purchase")

    def cancel(self) -> None:
        """Transition CREATED|PENDING|CONFIRMED -> CANCELLED.

        Releasing the reserved dates and cancelling the transactions is
        the caller's job; this only guards the status change.
        """
        self.ensure_cancellable()
        self.transition_to(PurchaseStatus.CANCELLED)

    def ensure_confirmable(self) -> None:
        if self.status == PurchaseStatus.DELIVERED:
            raise ValidationError("Purchase is already delivered")
        if self.status == PurchaseStatus.CANCELLED:
            raise ValidationError("Cannot confirm cancelled purchase")
        if self.status == PurchaseStatus.CONFIRMED:
            raise ValidationError("Purchase is already confirmed")

    def confirm(self) -> None:
        """Transition CREATED|PENDING -> CONFIRMED.

        Payment must be verified against the ledger before calling this.
        """
        self.ensure_confirmable()
        self.transition_to(PurchaseStatus.CONFIRMED)

    def upgrade(self) -> PurchaseStatus:
        """Advance to the next step of the lifecycle and return it."""
        target = self.status.next_status
        if target is None:
            raise ValidationError(
                f"Purchase in {self.status.value} status has no next status"
            )
        self.transition_to(target)
        return target

    def transition_to(self, target: PurchaseStatus) -> None:
        if not self.status.can_transition_to(target):
            raise ValidationError(
                f"Cannot change purchase status from {self.status.value} "
                f"to {target.value}"
            )
        self.status = target

    def available_statuses(self) -> dict[str, str]:
        return {s.value: s.label for s in TRANSITIONS[self.status]}

    # --- Computed properties --------------------------------------------------

    @property
    def currency(self) -> str:
        return self.items[0].unit_price.currency

    @property
    def subtotal(self) -> Money:
        result = Money.zero(self.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def total(self) -> Money:
        if self.delivery_fee is None:
            return self.subtotal
        return self.subtotal + self.delivery_fee

    @property
    def reserved_window(self) -> DateRange:
        """Preparation days plus the event day itself."""
        return DateRange.ending_on(self.event_date, PREPARATION_DAYS)

    @property
    def latest_transaction_id(self) -> int | None:
        return self.transaction_ids[-1] if self.transaction_ids else None
