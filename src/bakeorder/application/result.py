"""Typed outcome of an orchestrator operation.

Callers branch on ``result.ok`` and ``result.error.kind`` instead of
catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from bakeorder.domain.exceptions import DomainException, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class OrderError:
    kind: ErrorKind
    message: str

    @staticmethod
    def from_exception(exc: DomainException) -> OrderError:
        return OrderError(kind=exc.kind, message=str(exc))

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class FailedResultError(Exception):
    """Raised by ``Result.unwrap()`` on a failed result."""

    def __init__(self, error: OrderError) -> None:
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: OrderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(value: T) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def failure(error: OrderError) -> Result[T]:
        return Result(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise FailedResultError(self.error)
        return self.value  # type: ignore[return-value]
