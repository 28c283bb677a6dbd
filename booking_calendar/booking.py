from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Union

from .errors import (
    InvalidFormatError,
    MinimumDurationError,
    MissingFieldError,
    OrderingError,
    ParseError,
    ValidationError,
)
from .resources import RESOURCE_KINDS, Resource, ResourceRegistry
from .timeutil import format_local_date, is_same_day, parse_local_date, ranges_overlap, time_to_minutes

MINIMUM_DURATION_MINUTES = 30


@dataclass(frozen=True)
class NewReservation:
    kind: str
    resource_id: str
    date: date
    start_time: str
    end_time: str
    reserved_by: str
    purpose: str = ""

    @staticmethod
    def from_payload(data: dict[str, Any]) -> "NewReservation":
        """Build a request from the camelCase wire shape used by the HTTP and MCP surfaces.

        Malformed client input is reported as a ValidationError; ParseError is
        left for data that was already stored.
        """
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.", reason="invalid_payload")

        missing = [
            key
            for key in ("type", "resourceId", "date", "startTime", "endTime", "reservedBy")
            if not str(data.get(key) or "").strip()
        ]
        if missing:
            raise MissingFieldError(f"Missing required fields: {', '.join(missing)}")

        start_time = str(data["startTime"]).strip()
        end_time = str(data["endTime"]).strip()
        try:
            day = parse_local_date(str(data["date"]).strip())
            time_to_minutes(start_time)
            time_to_minutes(end_time)
        except ParseError as error:
            raise InvalidFormatError(str(error)) from error

        return NewReservation(
            kind=str(data["type"]).strip(),
            resource_id=str(data["resourceId"]).strip(),
            date=day,
            start_time=start_time,
            end_time=end_time,
            reserved_by=str(data["reservedBy"]).strip(),
            purpose=str(data.get("purpose") or "").strip(),
        )


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    kind: str
    resource_id: str
    resource_name: str
    date: date
    start_time: str
    end_time: str
    reserved_by: str
    purpose: str
    created_at: datetime

    def __post_init__(self) -> None:
        time_to_minutes(self.start_time)
        time_to_minutes(self.end_time)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.reservation_id,
            "type": self.kind,
            "resource_id": self.resource_id,
            "resource_name": self.resource_name,
            "date": format_local_date(self.date),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "reserved_by": self.reserved_by,
            "purpose": self.purpose,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Reservation":
        try:
            created_at = datetime.fromisoformat(str(data["created_at"]))
            return Reservation(
                reservation_id=str(data["id"]),
                kind=str(data["type"]),
                resource_id=str(data["resource_id"]),
                resource_name=str(data.get("resource_name") or data["resource_id"]),
                date=parse_local_date(str(data["date"])),
                start_time=str(data["start_time"]),
                end_time=str(data["end_time"]),
                reserved_by=str(data.get("reserved_by") or ""),
                purpose=str(data.get("purpose") or ""),
                created_at=created_at,
            )
        except KeyError as error:
            raise ParseError(f"Stored reservation is missing field {error.args[0]!r}") from error
        except ValueError as error:
            if isinstance(error, ParseError):
                raise
            raise ParseError(f"Stored reservation has an invalid timestamp: {data.get('created_at')!r}") from error

    def to_payload(self) -> dict[str, str]:
        return {
            "id": self.reservation_id,
            "type": self.kind,
            "resourceId": self.resource_id,
            "resourceName": self.resource_name,
            "date": format_local_date(self.date),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "reservedBy": self.reserved_by,
            "purpose": self.purpose,
            "createdAt": self.created_at.isoformat(timespec="seconds"),
        }


SlotCandidate = Union[NewReservation, Reservation]


def validate_time_range(start_time: str, end_time: str) -> None:
    """Reject a range that is not strictly ordered or is shorter than the minimum.

    Raises OrderingError, MinimumDurationError, or ParseError for malformed times.
    """
    start_minutes = time_to_minutes(start_time)
    end_minutes = time_to_minutes(end_time)

    if start_minutes >= end_minutes:
        raise OrderingError("Reservation end time must be later than start time.")
    if end_minutes - start_minutes < MINIMUM_DURATION_MINUTES:
        raise MinimumDurationError(
            f"Reservation must be at least {MINIMUM_DURATION_MINUTES} minutes long."
        )


def is_valid_time_range(start_time: str, end_time: str) -> bool:
    try:
        validate_time_range(start_time, end_time)
    except ValidationError:
        return False
    return True


def validate_new_reservation(candidate: NewReservation, registry: ResourceRegistry) -> Resource:
    """Run every input check for a creation request and return the referenced resource."""
    if candidate.kind not in RESOURCE_KINDS:
        raise ValidationError(f"Unsupported reservation type: {candidate.kind!r}", reason="invalid_type")
    if not candidate.reserved_by.strip():
        raise MissingFieldError("reserved_by must not be empty")

    resource = registry.require(candidate.resource_id, candidate.kind)
    validate_time_range(candidate.start_time, candidate.end_time)
    return resource


def find_conflict(
    candidate: SlotCandidate,
    existing_reservations: Iterable[Reservation],
    exclude_id: str | None = None,
) -> Reservation | None:
    """Return the first existing reservation (in input order) overlapping the candidate.

    Only reservations for the same resource on the same calendar day are
    considered; ``exclude_id`` skips one record so a reservation can be checked
    against everyone but itself.
    """
    start_minutes = time_to_minutes(candidate.start_time)
    end_minutes = time_to_minutes(candidate.end_time)

    for reservation in existing_reservations:
        if exclude_id is not None and reservation.reservation_id == exclude_id:
            continue
        if reservation.resource_id != candidate.resource_id:
            continue
        if not is_same_day(reservation.date, candidate.date):
            continue
        if ranges_overlap(start_minutes, end_minutes, reservation.start_minutes, reservation.end_minutes):
            return reservation
    return None


def can_reserve(
    candidate: SlotCandidate,
    existing_reservations: Iterable[Reservation],
    exclude_id: str | None = None,
) -> bool:
    return find_conflict(candidate, existing_reservations, exclude_id) is None
