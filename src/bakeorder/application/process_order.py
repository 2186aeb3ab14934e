"""Application service: Process Order use case.

Turns a list of requested variants into a purchase with a payment
transaction and a reserved slot on the calendar.

Every check runs before anything is written, and nothing is written
until the payment gateway has answered.  A gateway failure therefore
leaves no trace of the attempted order, and a failed write after the
window is closed reopens it and cancels the new transaction.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import structlog

from bakeorder.application.dto import (
    OrderItemSpec,
    PurchaseDTO,
    to_purchase_dto,
)
from bakeorder.application.identity import Identity
from bakeorder.application.notifications import PurchaseNotifier
from bakeorder.application.ports import (
    CustomerDetails,
    IdGenerator,
    PaymentExpiry,
    PaymentGatewayClient,
    PaymentItemLine,
    PaymentRequest,
)
from bakeorder.domain.exceptions import EntityNotFoundError, ValidationError
from bakeorder.domain.model.purchase import Purchase, PurchaseItem
from bakeorder.domain.model.transaction import Transaction
from bakeorder.domain.model.value_objects import Money, Quantity
from bakeorder.domain.repository.cart_repository import CartRepository
from bakeorder.domain.repository.closed_date_calendar import ClosedDateCalendar
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger
from bakeorder.domain.repository.variant_repository import VariantRepository
from bakeorder.domain.service.schedule_reservation_service import (
    ScheduleReservationService,
)

logger = structlog.get_logger(__name__)


class ProcessOrderHandler:

    def __init__(
        self,
        purchase_repo: PurchaseRepository,
        ledger: TransactionLedger,
        calendar: ClosedDateCalendar,
        variant_repo: VariantRepository,
        cart_repo: CartRepository,
        gateway: PaymentGatewayClient,
        notifier: PurchaseNotifier,
        ids: IdGenerator,
        service_fee: Money,
        expiry_minutes: int = 60,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._purchase_repo = purchase_repo
        self._ledger = ledger
        self._calendar = calendar
        self._variant_repo = variant_repo
        self._cart_repo = cart_repo
        self._gateway = gateway
        self._notifier = notifier
        self._ids = ids
        self._service_fee = service_fee
        self._expiry_minutes = expiry_minutes
        self._clock = clock

    def handle(
        self,
        identity: Identity,
        event_date: date,
        item_specs: list[OrderItemSpec],
        delivery_fee: Money | None = None,
    ) -> PurchaseDTO:
        """Create a purchase and register its first payment.

        Steps:
        1. Reject if the account still has an unpaid transaction.
        2. Reject if the event is too close or its window is closed.
        3. Snapshot variant prices into a new purchase.
        4. Ask the gateway for a payment link.
        5. Close the window, persist transaction and purchase, empty the cart.
        6. Queue the customer notification.
        """
        account = identity.account

        if self._ledger.has_active_for_account(account.id):
            raise ValidationError("There's already an ongoing transaction")

        schedule = ScheduleReservationService(self._calendar)
        schedule.ensure_bookable(event_date, today=self._clock())

        purchase = Purchase.create(
            purchase_id=self._ids.next_id(),
            event_date=event_date,
            items=self._resolve_items(item_specs),
            delivery_fee=delivery_fee,
        )
        transaction = Transaction.build(
            transaction_id=self._ids.next_id(),
            purchase_id=purchase.id,
            account_id=account.id,
        )

        request = self._payment_request(identity, purchase, transaction)
        response = self._gateway.create_transaction(request)

        transaction.attach_gateway_response(
            payment_url=response.redirect_url,
            reference_id=response.reference_id,
        )
        purchase.attach_transaction(transaction.id)

        # the calendar batch is the only write that can still be refused
        schedule.reserve_for(purchase)
        try:
            self._ledger.save(transaction)
            self._purchase_repo.save(purchase)
        except Exception:
            self._undo_creation(schedule, purchase, transaction)
            raise

        try:
            self._cart_repo.clear(account.id)
        except OSError:
            # the order is already stored
            logger.warning("cart_clear_failed", account_id=account.id, exc_info=True)

        logger.info(
            "order_created",
            purchase_id=purchase.id,
            transaction_id=transaction.id,
            account_id=account.id,
            event_date=event_date.isoformat(),
            gross_amount=request.gross_amount,
        )

        self._notifier.order_created(account, purchase, response.redirect_url)

        return to_purchase_dto(purchase, [transaction])

    # --- Helpers --------------------------------------------------------------

    def _undo_creation(
        self,
        schedule: ScheduleReservationService,
        purchase: Purchase,
        transaction: Transaction,
    ) -> None:
        """Reopen the window and retire the transaction of a half-written order.

        Runs while the original error is propagating, so failures here are
        logged rather than raised over it.
        """
        logger.error(
            "order_create_rolled_back",
            purchase_id=purchase.id,
            transaction_id=transaction.id,
        )
        try:
            schedule.release_for(purchase)
        except Exception:
            logger.exception("order_rollback_failed", step="calendar", purchase_id=purchase.id)
        if transaction.cancel():
            try:
                self._ledger.save(transaction)
            except Exception:
                logger.exception(
                    "order_rollback_failed", step="ledger", transaction_id=transaction.id
                )

    def _resolve_items(self, item_specs: list[OrderItemSpec]) -> list[PurchaseItem]:
        items: list[PurchaseItem] = []
        for spec in item_specs:
            variant = self._variant_repo.get_by_id(spec.variant_id)
            if variant is None:
                raise EntityNotFoundError(f"Variant not found: {spec.variant_id}")
            variant.ensure_orderable()
            items.append(
                PurchaseItem(
                    variant_id=variant.id,
                    product_name=variant.product_name,
                    variant_label=variant.label,
                    quantity=Quantity(spec.quantity),
                    unit_price=variant.price,  # <-- price snapshot
                )
            )
        return items

    def _payment_request(
        self,
        identity: Identity,
        purchase: Purchase,
        transaction: Transaction,
    ) -> PaymentRequest:
        lines = [
            PaymentItemLine(
                id=str(item.variant_id),
                name=item.display_name,
                price=item.unit_price.whole_units,
                quantity=item.quantity.value,
            )
            for item in purchase.items
        ]
        if purchase.delivery_fee is not None:
            lines.append(
                PaymentItemLine(
                    id="delivery_fee",
                    name="Delivery Fee",
                    price=purchase.delivery_fee.whole_units,
                    quantity=1,
                )
            )
        lines.append(
            PaymentItemLine(
                id="service_fee",
                name="Service Fee",
                price=self._service_fee.whole_units,
                quantity=1,
            )
        )

        account = identity.account
        return PaymentRequest(
            order_id=str(transaction.id),
            purchase_id=purchase.id,
            items=lines,
            customer=CustomerDetails(
                first_name=account.name,
                email=account.email,
                phone=account.phone,
            ),
            expiry=PaymentExpiry(duration=self._expiry_minutes),
            currency=purchase.currency,
        )
