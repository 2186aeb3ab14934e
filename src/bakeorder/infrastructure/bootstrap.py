"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from bakeorder.application.notifications import NotificationDispatcher
from bakeorder.application.orchestrator import OrderOrchestrator
from bakeorder.domain.model.value_objects import Money
from bakeorder.infrastructure.config import Settings
from bakeorder.infrastructure.gateway.snap_payment_gateway import SnapPaymentGateway
from bakeorder.infrastructure.ids import SnowflakeIdGenerator
from bakeorder.infrastructure.notify.whatsapp_notification_client import (
    WhatsappNotificationClient,
)
from bakeorder.infrastructure.persistence.file_locks import FileKeyedLocks
from bakeorder.infrastructure.persistence.json_catalog_repositories import (
    JsonAccountRepository,
    JsonCartRepository,
    JsonVariantRepository,
)
from bakeorder.infrastructure.persistence.json_closed_date_calendar import (
    JsonClosedDateCalendar,
)
from bakeorder.infrastructure.persistence.json_purchase_repository import (
    JsonPurchaseRepository,
)
from bakeorder.infrastructure.persistence.json_transaction_ledger import (
    JsonTransactionLedger,
)


def purchase_repository(data_dir: Path) -> JsonPurchaseRepository:
    return JsonPurchaseRepository(data_dir / "purchases.json")


def transaction_ledger(data_dir: Path) -> JsonTransactionLedger:
    return JsonTransactionLedger(data_dir / "transactions.json")


def closed_date_calendar(data_dir: Path) -> JsonClosedDateCalendar:
    return JsonClosedDateCalendar(data_dir / "closed_dates.json")


def variant_repository(data_dir: Path) -> JsonVariantRepository:
    return JsonVariantRepository(data_dir / "variants.json")


def account_repository(data_dir: Path) -> JsonAccountRepository:
    return JsonAccountRepository(data_dir / "accounts.json")


def cart_repository(data_dir: Path) -> JsonCartRepository:
    return JsonCartRepository(data_dir / "cart_items.json")


@dataclass
class Application:
    """Everything a front end needs, plus the resources to release at exit."""

    orchestrator: OrderOrchestrator
    accounts: JsonAccountRepository
    carts: JsonCartRepository
    dispatcher: NotificationDispatcher
    _closers: list = field(default_factory=list)

    def close(self) -> None:
        # let queued notifications go out before the HTTP clients close
        self.dispatcher.shutdown(wait=True)
        for close in self._closers:
            close()


def build_application(settings: Settings) -> Application:
    data_dir = settings.data_dir
    ledger = transaction_ledger(data_dir)
    accounts = account_repository(data_dir)
    carts = cart_repository(data_dir)

    gateway = SnapPaymentGateway(
        base_url=settings.payment_base_url,
        status_base_url=settings.payment_status_base_url,
        server_key=settings.payment_server_key,
        timeout=settings.payment_timeout_seconds,
    )
    messaging = WhatsappNotificationClient(
        url=settings.notification_url,
        token=settings.notification_token,
        timeout=settings.notification_timeout_seconds,
    )
    dispatcher = NotificationDispatcher(
        messaging,
        country_code=settings.notification_country_code,
        executor=ThreadPoolExecutor(
            max_workers=settings.notification_workers, thread_name_prefix="notify"
        ),
    )

    orchestrator = OrderOrchestrator(
        purchase_repo=purchase_repository(data_dir),
        ledger=ledger,
        calendar=closed_date_calendar(data_dir),
        variant_repo=variant_repository(data_dir),
        cart_repo=carts,
        account_repo=accounts,
        gateway=gateway,
        dispatcher=dispatcher,
        ids=SnowflakeIdGenerator(worker_id=settings.worker_id),
        service_fee=Money.of(settings.service_fee, settings.currency),
        expiry_minutes=settings.payment_expiry_minutes,
        frontend_url=settings.frontend_base_url,
        locks=FileKeyedLocks(data_dir / ".locks"),
    )
    return Application(
        orchestrator=orchestrator,
        accounts=accounts,
        carts=carts,
        dispatcher=dispatcher,
        _closers=[gateway.close, messaging.close],
    )
