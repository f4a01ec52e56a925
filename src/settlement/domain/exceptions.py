"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Every error carries an HTTP-equivalent ``status_code`` and a list of
machine-readable ``details``.  The five intermediate classes are the error
categories callers switch on; the leaf classes name the specific failure.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    status_code = 400

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: list[str] = list(details or [])

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({'; '.join(self.details)})"
        return self.message


# --- Categories -----------------------------------------------------------------


class ValidationError(DomainException):
    """A business rule or invariant was violated by the caller's input."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    status_code = 404


class StateConflictError(DomainException):
    """The operation was invoked out of sequence for the entity's state."""

    status_code = 409


class IntegrityError(DomainException):
    """Potential tampering or staleness; always rejected, never corrected."""


class AuthorizationError(DomainException):
    """The caller may not perform the operation."""

    status_code = 401


class ConfigurationError(Exception):
    """The process was started with unusable settings."""


# --- Input / shape --------------------------------------------------------------


class MalformedToken(ValidationError):
    pass


class SchemaViolation(ValidationError):
    pass


class InvalidDisputedItems(ValidationError):
    pass


class EmptySnapshot(ValidationError):
    pass


# --- State preconditions --------------------------------------------------------


class NotLocked(StateConflictError):
    pass


class OrderLocked(StateConflictError):
    pass


class NoConfirmedItems(StateConflictError):
    pass


class NoDisputedItems(StateConflictError):
    pass


class InvalidDisputeTransition(StateConflictError):
    pass


# --- Integrity ------------------------------------------------------------------


class InvalidSignature(IntegrityError):
    pass


class TokenUserMismatch(IntegrityError):
    status_code = 403


class QuoteMismatch(IntegrityError):
    pass


class QuoteExpired(IntegrityError):
    pass


class DuplicateReceipt(IntegrityError):
    status_code = 409


# --- Authorization --------------------------------------------------------------


class Unauthorized(AuthorizationError):
    pass


class Forbidden(AuthorizationError):
    status_code = 403
