from abc import ABC
from dataclasses import dataclass

import pydantic


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class FieldError:
    """A single rejected field with the reason it was rejected."""

    field: str
    reason: str


class ValidationError(UserError):
    """Raised when user input fails validation.

    Carries every offending field so callers can present all of them at once.
    `field` and `reason` refer to the first error.
    """

    def __init__(self, message: str, errors: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, reason: str) -> "ValidationError":
        return cls(f"{field}: {reason}", [FieldError(field, reason)])

    @classmethod
    def from_errors(cls, errors: list[FieldError]) -> "ValidationError":
        message = "; ".join(f"{e.field}: {e.reason}" for e in errors)
        return cls(message, errors)

    @classmethod
    def from_pydantic(cls, exc: pydantic.ValidationError) -> "ValidationError":
        """Convert a model validation failure, one FieldError per offending dotted path."""
        return cls.from_errors([FieldError(".".join(str(part) for part in e["loc"]), e["msg"]) for e in exc.errors()])

    @property
    def field(self) -> str | None:
        return self.errors[0].field if self.errors else None

    @property
    def reason(self) -> str | None:
        return self.errors[0].reason if self.errors else None


class IllegalTransitionError(UserError):
    """Raised when the requested status is not reachable from the current one."""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"Illegal status transition: '{from_status}' -> '{to_status}'")
        self.from_status = from_status
        self.to_status = to_status


class InvalidTransportModeError(UserError):
    """Raised when a transport mode is outside the known set."""

    def __init__(self, mode: object) -> None:
        super().__init__(f"Invalid transport mode: '{mode}'")
        self.mode = mode


class ConcurrentModificationError(UserError):
    """Raised when a shipment changed underneath a transition; re-fetch and retry."""


class StoreUnavailableError(Exception):
    """Raised when the document store cannot be reached. Safe to retry the whole operation."""


class ReferenceCollisionError(Exception):
    """Raised when a freshly allocated reference clashes with an existing one twice in a row."""
