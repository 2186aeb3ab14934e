"""Ports for the external collaborators of the ordering flow.

The application layer talks to the payment gateway, the messaging
provider and the id scheme only through these interfaces.  Adapters
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from bakeorder.domain.model.transaction import TransactionStatus


@dataclass(frozen=True)
class PaymentItemLine:
    id: str
    name: str
    price: int
    quantity: int

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True)
class CustomerDetails:
    first_name: str
    email: str
    phone: str


@dataclass(frozen=True)
class PaymentExpiry:
    duration: int
    unit: str = "minutes"


@dataclass(frozen=True)
class PaymentRequest:
    """Itemised payment request for one transaction of a purchase."""

    order_id: str
    purchase_id: int
    items: list[PaymentItemLine]
    customer: CustomerDetails
    expiry: PaymentExpiry
    currency: str = "IDR"
    gross_amount: int = field(init=False)

    def __post_init__(self) -> None:
        # must equal the item sum or the gateway rejects the request
        object.__setattr__(self, "gross_amount", sum(i.subtotal for i in self.items))


@dataclass(frozen=True)
class PaymentResponse:
    redirect_url: str
    reference_id: str


class PaymentGatewayClient(ABC):

    @abstractmethod
    def create_transaction(self, request: PaymentRequest) -> PaymentResponse:
        """Register a payment and return where the customer should pay.

        Raises PaymentGatewayError on any failure.
        """

    @abstractmethod
    def fetch_status(self, reference_id: str) -> TransactionStatus:
        """Return the gateway's current status for a transaction.

        Raises PaymentGatewayError on any failure.
        """


class NotificationClient(ABC):

    @abstractmethod
    def send(self, phone: str, message: str, country_code: str) -> None:
        """Deliver a text message.  May raise; callers treat it as best-effort."""


class IdGenerator(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Return a unique, roughly time-ordered identifier."""
