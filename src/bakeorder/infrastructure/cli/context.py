"""State shared by every CLI command of one invocation."""

from __future__ import annotations

from dataclasses import dataclass

import click

from bakeorder.application.identity import Identity
from bakeorder.infrastructure.bootstrap import Application
from bakeorder.infrastructure.config import Settings


@dataclass
class CliContext:
    settings: Settings
    app: Application
    account_id: int | None = None

    def identity(self) -> Identity:
        if self.account_id is None:
            raise click.UsageError("No acting account; pass --account or set BAKEORDER_ACCOUNT.")
        account = self.app.accounts.get_by_id(self.account_id)
        if account is None:
            raise click.ClickException(f"Account #{self.account_id} not found")
        return Identity(account)


pass_cli = click.make_pass_decorator(CliContext)
