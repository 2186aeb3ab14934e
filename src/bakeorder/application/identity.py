"""The acting account of a request.

Passed explicitly into every orchestrator call; there is no global
"current user".
"""

from __future__ import annotations

from dataclasses import dataclass

from bakeorder.domain.exceptions import UnauthorizedError
from bakeorder.domain.model.account import Account
from bakeorder.domain.repository.transaction_ledger import TransactionLedger


@dataclass(frozen=True)
class Identity:
    account: Account

    @property
    def account_id(self) -> int:
        return self.account.id

    @property
    def is_admin(self) -> bool:
        return self.account.is_admin

    def require_admin(self) -> None:
        if not self.is_admin:
            raise UnauthorizedError("Admin privileges are required")

    def ensure_owner_or_admin(self, ledger: TransactionLedger, purchase_id: int) -> None:
        if self.is_admin:
            return
        if not ledger.is_owner(purchase_id, self.account_id):
            raise UnauthorizedError("You are not authorized to view this transaction")
