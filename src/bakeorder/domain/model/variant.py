"""A purchasable size or flavour of a catalogue product.

Variants are maintained outside the ordering flow; purchases only read
them to snapshot the current price into a line item.
"""

from __future__ import annotations

from dataclasses import dataclass

from bakeorder.domain.exceptions import ValidationError
from bakeorder.domain.model.value_objects import Money


@dataclass
class Variant:
    """A priced variant of a product in the catalogue."""

    id: int
    product_name: str
    label: str
    price: Money
    available: bool = True

    def ensure_orderable(self) -> None:
        if not self.available:
            raise ValidationError(
                f"{self.product_name} ({self.label}) is not available for order"
            )
        if self.price.amount <= 0:
            raise ValidationError(
                f"{self.product_name} ({self.label}) has no valid price"
            )
