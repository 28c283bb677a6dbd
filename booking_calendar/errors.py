"""Exception types raised by the booking engine and its stores."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .booking import Reservation


class ParseError(ValueError):
    """Raised when a time or date string (or a persisted row) is malformed."""


class ValidationError(ValueError):
    """Raised when a reservation request is rejected before touching the store."""

    reason = "invalid"

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class OrderingError(ValidationError):
    reason = "ordering"


class MinimumDurationError(ValidationError):
    reason = "minimum_duration"


class UnknownResourceError(ValidationError):
    reason = "unknown_resource"


class ResourceKindMismatchError(ValidationError):
    reason = "kind_mismatch"


class MissingFieldError(ValidationError):
    reason = "missing_field"


class InvalidFormatError(ValidationError):
    """Raised when a client-supplied time or date string cannot be parsed."""

    reason = "parse"


class ConflictError(ValueError):
    """Raised when the requested slot overlaps an existing reservation."""

    def __init__(self, conflicting: Reservation) -> None:
        self.conflicting = conflicting
        super().__init__(
            f"Reservation overlaps with an existing reservation by {conflicting.reserved_by} "
            f"({conflicting.start_time}~{conflicting.end_time})."
        )

    @property
    def reservation_id(self) -> str:
        return self.conflicting.reservation_id

    @property
    def start_time(self) -> str:
        return self.conflicting.start_time

    @property
    def end_time(self) -> str:
        return self.conflicting.end_time

    @property
    def reserved_by(self) -> str:
        return self.conflicting.reserved_by

    def to_payload(self) -> dict[str, Any]:
        return conflict_payload(self.conflicting)


def conflict_payload(conflicting: Reservation) -> dict[str, Any]:
    """Summary of a conflicting reservation, enough to render a human-readable message."""
    return {
        "id": conflicting.reservation_id,
        "time": f"{conflicting.start_time}~{conflicting.end_time}",
        "reservedBy": conflicting.reserved_by,
    }


class NotFoundError(LookupError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"Reservation not found: {reservation_id}")


class ReservationStorageError(RuntimeError):
    pass
