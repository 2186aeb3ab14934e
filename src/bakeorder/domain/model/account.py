"""The customer or admin on whose behalf an operation runs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Account:
    id: int
    name: str
    phone: str
    email: str = ""
    is_admin: bool = False
