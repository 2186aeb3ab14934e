"""In-memory fakes for testing.

These implement the same abstract interfaces as the JSON repositories
and HTTP adapters but keep everything in memory. No file I/O, no network.
"""

from __future__ import annotations

import copy
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from datetime import date

from bakeorder.application.identity import Identity
from bakeorder.application.notifications import NotificationDispatcher
from bakeorder.application.orchestrator import OrderOrchestrator
from bakeorder.application.ports import (
    IdGenerator,
    NotificationClient,
    PaymentGatewayClient,
    PaymentRequest,
    PaymentResponse,
)
from bakeorder.domain.exceptions import DependencyFailureError, PaymentGatewayError, ValidationError
from bakeorder.domain.model.account import Account
from bakeorder.domain.model.closed_date import ClosedDate
from bakeorder.domain.model.purchase import Purchase
from bakeorder.domain.model.transaction import Transaction, TransactionStatus
from bakeorder.domain.model.value_objects import Money
from bakeorder.domain.model.variant import Variant
from bakeorder.domain.repository.account_repository import AccountRepository
from bakeorder.domain.repository.cart_repository import CartRepository
from bakeorder.domain.repository.closed_date_calendar import ClosedDateCalendar
from bakeorder.domain.repository.purchase_repository import PurchaseRepository
from bakeorder.domain.repository.transaction_ledger import TransactionLedger
from bakeorder.domain.repository.variant_repository import VariantRepository


# Stored copies are returned so a handler cannot change state without saving it.


class FakePurchaseRepository(PurchaseRepository):

    def __init__(self) -> None:
        self._store: dict[int, Purchase] = {}

    def get_by_id(self, purchase_id: int) -> Purchase | None:
        purchase = self._store.get(purchase_id)
        return copy.deepcopy(purchase) if purchase else None

    def list_all(self) -> list[Purchase]:
        return [copy.deepcopy(p) for p in self._store.values()]

    def save(self, purchase: Purchase) -> None:
        self._store[purchase.id] = copy.deepcopy(purchase)


class FakeTransactionLedger(TransactionLedger):

    def __init__(self) -> None:
        self._store: dict[int, Transaction] = {}
        self.save_all_calls = 0

    def get_by_id(self, transaction_id: int) -> Transaction | None:
        t = self._store.get(transaction_id)
        return copy.deepcopy(t) if t else None

    def get_by_reference(self, reference_id: str) -> Transaction | None:
        for t in self._store.values():
            if t.reference_id == reference_id:
                return copy.deepcopy(t)
        return None

    def list_by_account(self, account_id: int) -> list[Transaction]:
        return [copy.deepcopy(t) for t in self._store.values() if t.account_id == account_id]

    def list_by_purchase(self, purchase_id: int) -> list[Transaction]:
        return [copy.deepcopy(t) for t in self._store.values() if t.purchase_id == purchase_id]

    def save(self, transaction: Transaction) -> None:
        self._store[transaction.id] = copy.deepcopy(transaction)

    def save_all(self, transactions: list[Transaction]) -> None:
        self.save_all_calls += 1
        for t in transactions:
            self.save(t)


class FakeClosedDateCalendar(ClosedDateCalendar):

    def __init__(self, closed: list[ClosedDate] | None = None) -> None:
        self._store: dict[date, ClosedDate] = {cd.date: cd for cd in closed or []}

    def all_between(self, start: date, end: date) -> list[ClosedDate]:
        return sorted(
            (cd for d, cd in self._store.items() if start <= d <= end),
            key=lambda cd: cd.date,
        )

    def save_batch(self, batch: list[ClosedDate]) -> None:
        seen: set[date] = set()
        for cd in batch:
            if cd.date in self._store or cd.date in seen:
                raise ValidationError(f"Date {cd.date.isoformat()} is already closed")
            seen.add(cd.date)
        for cd in batch:
            self._store[cd.date] = cd

    def delete_between(self, start: date, end: date) -> int:
        doomed = [d for d in self._store if start <= d <= end]
        for d in doomed:
            del self._store[d]
        return len(doomed)


class FakeVariantRepository(VariantRepository):

    def __init__(self, variants: list[Variant] | None = None) -> None:
        self._store: dict[int, Variant] = {v.id: copy.deepcopy(v) for v in variants or []}

    def get_by_id(self, variant_id: int) -> Variant | None:
        variant = self._store.get(variant_id)
        return copy.deepcopy(variant) if variant else None

    def reprice(self, variant_id: int, price: Money) -> None:
        self._store[variant_id].price = price


class FakeAccountRepository(AccountRepository):

    def __init__(self, accounts: list[Account] | None = None) -> None:
        self._store: dict[int, Account] = {a.id: a for a in accounts or []}

    def get_by_id(self, account_id: int) -> Account | None:
        return self._store.get(account_id)


class FakeCartRepository(CartRepository):

    def __init__(self, carts: dict[int, dict[int, int]] | None = None) -> None:
        self._store: dict[int, dict[int, int]] = {k: dict(v) for k, v in (carts or {}).items()}

    def items_of(self, account_id: int) -> dict[int, int]:
        return dict(self._store.get(account_id, {}))

    def clear(self, account_id: int) -> int:
        return len(self._store.pop(account_id, {}))


class FakePaymentGateway(PaymentGatewayClient):
    """Records every request.  Set ``fail`` or ``status`` to steer it."""

    def __init__(self) -> None:
        self.requests: list[PaymentRequest] = []
        self.fail = False
        self.status: TransactionStatus | None = TransactionStatus.PENDING
        self.status_calls: list[str] = []

    def create_transaction(self, request: PaymentRequest) -> PaymentResponse:
        if self.fail:
            raise PaymentGatewayError("Payment gateway unreachable: boom")
        self.requests.append(request)
        return PaymentResponse(
            redirect_url=f"https://pay.example/{request.order_id}",
            reference_id=f"ref-{request.order_id}",
        )

    def fetch_status(self, reference_id: str) -> TransactionStatus:
        self.status_calls.append(reference_id)
        if self.fail or self.status is None:
            raise PaymentGatewayError("Payment gateway unreachable: boom")
        return self.status


class FakeNotificationClient(NotificationClient):

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = fail

    def send(self, phone: str, message: str, country_code: str) -> None:
        if self.fail:
            raise DependencyFailureError("Messaging API unreachable: boom")
        self.sent.append((phone, message, country_code))


class SequentialIdGenerator(IdGenerator):

    def __init__(self, start: int = 1000) -> None:
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


# ── Harness ──────────────────────────────────────────────────────────────────

TODAY = date(2025, 6, 1)

CUSTOMER = Account(id=1, name="Alice", phone="81234567890", email="alice@example.com")
OTHER_CUSTOMER = Account(id=2, name="Bob", phone="81200000000", email="bob@example.com")
ADMIN = Account(id=99, name="Admin", phone="81299999999", is_admin=True)

ROUND_CAKE = Variant(id=12, product_name="Round Cake", label="20cm", price=Money.of("150000"))
CUPCAKES = Variant(id=13, product_name="Cupcakes", label="Box of 6", price=Money.of("60000"))
RETIRED = Variant(
    id=14, product_name="Rainbow Cake", label="24cm", price=Money.of("300000"), available=False
)


@dataclass
class Harness:
    orchestrator: OrderOrchestrator
    purchases: FakePurchaseRepository
    ledger: FakeTransactionLedger
    calendar: FakeClosedDateCalendar
    variants: FakeVariantRepository
    carts: FakeCartRepository
    gateway: FakePaymentGateway
    messaging: FakeNotificationClient
    today: list[date] = field(default_factory=lambda: [TODAY])

    def set_today(self, day: date) -> None:
        self.today[0] = day


def build_harness(
    closed: list[ClosedDate] | None = None,
    carts: dict[int, dict[int, int]] | None = None,
    messaging_fails: bool = False,
) -> Harness:
    purchases = FakePurchaseRepository()
    ledger = FakeTransactionLedger()
    calendar = FakeClosedDateCalendar(closed)
    variants = FakeVariantRepository([ROUND_CAKE, CUPCAKES, RETIRED])
    cart_repo = FakeCartRepository(carts)
    gateway = FakePaymentGateway()
    messaging = FakeNotificationClient(fail=messaging_fails)
    today = [TODAY]

    orchestrator = OrderOrchestrator(
        purchase_repo=purchases,
        ledger=ledger,
        calendar=calendar,
        variant_repo=variants,
        cart_repo=cart_repo,
        account_repo=FakeAccountRepository([CUSTOMER, OTHER_CUSTOMER, ADMIN]),
        gateway=gateway,
        dispatcher=NotificationDispatcher(messaging, executor=InlineExecutor()),
        ids=SequentialIdGenerator(),
        service_fee=Money.of("5000"),
        expiry_minutes=60,
        frontend_url="https://shop.example",
        clock=lambda: today[0],
    )
    return Harness(
        orchestrator=orchestrator,
        purchases=purchases,
        ledger=ledger,
        calendar=calendar,
        variants=variants,
        carts=cart_repo,
        gateway=gateway,
        messaging=messaging,
        today=today,
    )


def as_identity(account: Account) -> Identity:
    return Identity(account)
