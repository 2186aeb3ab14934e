"""Domain-level exceptions.

Every business rule violation is a subclass of DomainException.  Each
subclass carries an ``ErrorKind`` so the application layer can turn a
raised exception into a typed ``Result`` without inspecting the class
hierarchy.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    BUSINESS_RULE = "BUSINESS_RULE"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"


class DomainException(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.BUSINESS_RULE


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    kind = ErrorKind.BUSINESS_RULE


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class UnauthorizedError(DomainException):
    """The acting account may not perform this operation."""

    kind = ErrorKind.UNAUTHORIZED


class DependencyFailureError(DomainException):
    """An external collaborator failed while serving the request."""

    kind = ErrorKind.DEPENDENCY_FAILURE


class PaymentGatewayError(DependencyFailureError):
    """The payment gateway rejected the request or could not be reached."""
