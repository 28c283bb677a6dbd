"""Authoritative reservation stores.

``ReservationStore`` holds the write path shared by every backend: validation,
conflict detection and the insert run as one unit per (resource, day), so two
overlapping requests for the same slot can never both succeed. Backends only
provide ``_load``/``_save``.
"""

from __future__ import annotations

import logging
import threading
import weakref
from datetime import date, datetime
from typing import Any, Callable
from uuid import uuid4

from .availability import DEFAULT_SLOT_MINUTES, available_slots
from .booking import (
    NewReservation,
    Reservation,
    SlotCandidate,
    find_conflict,
    validate_new_reservation,
    validate_time_range,
)
from .errors import ConflictError, NotFoundError, ValidationError
from .resources import ResourceRegistry
from .timeutil import format_local_date, in_month, is_same_day, month_bounds

EXPORT_VERSION = "1.0"


class ReservationStore:
    def __init__(
        self,
        registry: ResourceRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry or ResourceRegistry()
        self._clock: Callable[[], datetime] = clock or datetime.now
        self._logger = logger or logging.getLogger("booking_calendar.store")
        self._write_lock = threading.RLock()
        # Entries vanish once no create holds the lock.
        self._slot_locks: weakref.WeakValueDictionary[tuple[str, date], threading.Lock] = weakref.WeakValueDictionary()
        self._slot_locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Backend hooks
    def _load(self) -> list[Reservation]:
        raise NotImplementedError

    def _save(self, records: list[Reservation]) -> None:
        raise NotImplementedError

    def _record_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        """Audit hook; backends without an event trail ignore it."""

    # ------------------------------------------------------------------
    # Queries
    def list_all(self) -> list[Reservation]:
        with self._write_lock:
            return self._load()

    def list_by_month(self, year: int, month: int) -> list[Reservation]:
        month_bounds(year, month)
        return [record for record in self.list_all() if in_month(record.date, year, month)]

    def list_by_resource_and_date(self, resource_id: str, target_date: date) -> list[Reservation]:
        return [
            record
            for record in self.list_all()
            if record.resource_id == resource_id and is_same_day(record.date, target_date)
        ]

    def get(self, reservation_id: str) -> Reservation | None:
        for record in self.list_all():
            if record.reservation_id == reservation_id:
                return record
        return None

    def find_conflict(self, candidate: SlotCandidate, exclude_id: str | None = None) -> Reservation | None:
        existing = self.list_by_resource_and_date(candidate.resource_id, candidate.date)
        return find_conflict(candidate, existing, exclude_id)

    def check_request(self, candidate: NewReservation, exclude_id: str | None = None) -> Reservation | None:
        """Validate a draft without writing it; return the conflicting record, if any."""
        validate_new_reservation(candidate, self.registry)
        return self.find_conflict(candidate, exclude_id)

    def available_slots(
        self,
        resource_id: str,
        target_date: date,
        slot_duration: int = DEFAULT_SLOT_MINUTES,
    ) -> list[str]:
        self.registry.require(resource_id)
        existing = self.list_by_resource_and_date(resource_id, target_date)
        return available_slots(resource_id, target_date, existing, slot_duration)

    def stats(self) -> dict[str, Any]:
        records = self.list_all()
        last_created = max((record.created_at for record in records), default=None)
        return {
            "reservation_count": len(records),
            "last_modified": last_created.isoformat(timespec="seconds") if last_created else None,
        }

    # ------------------------------------------------------------------
    # Commands
    def create(self, candidate: NewReservation, now: datetime | None = None) -> Reservation:
        try:
            resource = validate_new_reservation(candidate, self.registry)
        except ValidationError as error:
            self._logger.info(
                "Reservation rejected",
                extra={"event": "reservation_rejected", "reason": error.reason, "resource_id": candidate.resource_id},
            )
            raise

        # Stored timestamps keep whole seconds only.
        effective_now = (now or self._clock()).replace(microsecond=0)
        with self._slot_lock(candidate.resource_id, candidate.date):
            conflict = self.find_conflict(candidate)
            if conflict is None:
                record = Reservation(
                    reservation_id=str(uuid4()),
                    kind=candidate.kind,
                    resource_id=resource.resource_id,
                    resource_name=resource.display_name,
                    date=candidate.date,
                    start_time=candidate.start_time,
                    end_time=candidate.end_time,
                    reserved_by=candidate.reserved_by.strip(),
                    purpose=candidate.purpose,
                    created_at=effective_now,
                )
                conflict = self._append_if_free(record, effective_now)

            if conflict is not None:
                self._report_conflict(candidate, conflict, effective_now)
                raise ConflictError(conflict)

        self._logger.info(
            "Reservation created",
            extra={
                "event": "reservation_created",
                "reservation_id": record.reservation_id,
                "resource_id": record.resource_id,
                "day": format_local_date(record.date),
                "start_time": record.start_time,
                "end_time": record.end_time,
            },
        )
        return record

    def delete(self, reservation_id: str, now: datetime | None = None) -> Reservation:
        effective_now = now or self._clock()
        with self._write_lock:
            records = self._load()
            found_index = -1
            for index, record in enumerate(records):
                if record.reservation_id == reservation_id:
                    found_index = index
                    break

            if found_index < 0:
                self._logger.info(
                    "Reservation not found for delete",
                    extra={"event": "reservation_delete_missing", "reservation_id": reservation_id},
                )
                raise NotFoundError(reservation_id)

            deleted = records.pop(found_index)
            self._save(records)
            self._record_event(
                "RESERVATION_DELETED",
                {
                    "reservation_id": reservation_id,
                    "resource_id": deleted.resource_id,
                    "date": format_local_date(deleted.date),
                },
                effective_now,
            )

        self._logger.info(
            "Reservation deleted",
            extra={"event": "reservation_deleted", "reservation_id": reservation_id},
        )
        return deleted

    def clear_all(self, now: datetime | None = None) -> int:
        with self._write_lock:
            removed = len(self._load())
            self._save([])
            self._record_event("DATA_CLEARED", {"count": removed}, now or self._clock())
        self._logger.warning("All reservations cleared", extra={"event": "reservations_cleared", "count": removed})
        return removed

    def export_data(self, now: datetime | None = None) -> dict[str, Any]:
        return {
            "reservations": [record.to_dict() for record in self.list_all()],
            "resources": self.registry.to_payload(),
            "exportDate": (now or self._clock()).isoformat(timespec="seconds"),
            "version": EXPORT_VERSION,
        }

    def import_data(self, payload: dict[str, Any], now: datetime | None = None) -> int:
        """Replace the dataset with ``payload["reservations"]``.

        Every row is parsed and re-validated and the whole set is checked for
        overlaps before anything is written; on any error the current data is
        left untouched.
        """
        rows = payload.get("reservations") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise ValueError("Import payload must contain a 'reservations' list.")

        accepted: list[Reservation] = []
        for row in rows:
            if not isinstance(row, dict):
                raise ValueError("Each imported reservation must be a mapping.")
            record = Reservation.from_dict(row)
            self.registry.require(record.resource_id, record.kind)
            validate_time_range(record.start_time, record.end_time)
            conflict = find_conflict(record, accepted)
            if conflict is not None:
                raise ConflictError(conflict)
            accepted.append(record)

        with self._write_lock:
            self._save(accepted)
            self._record_event("DATA_IMPORTED", {"count": len(accepted)}, now or self._clock())

        self._logger.info("Reservations imported", extra={"event": "reservations_imported", "count": len(accepted)})
        return len(accepted)

    # ------------------------------------------------------------------
    # Internals
    def _slot_lock(self, resource_id: str, target_date: date) -> threading.Lock:
        key = (resource_id, target_date)
        with self._slot_locks_guard:
            lock = self._slot_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._slot_locks[key] = lock
            return lock

    def _append_if_free(self, record: Reservation, now: datetime) -> Reservation | None:
        with self._write_lock:
            records = self._load()
            # The dataset may have been replaced (import/clear) since the slot snapshot was taken.
            conflict = find_conflict(record, records)
            if conflict is not None:
                return conflict

            records.append(record)
            self._save(records)
            self._record_event(
                "RESERVATION_CREATED",
                {
                    "reservation_id": record.reservation_id,
                    "resource_id": record.resource_id,
                    "date": format_local_date(record.date),
                    "start_time": record.start_time,
                    "end_time": record.end_time,
                    "reserved_by": record.reserved_by,
                },
                now,
            )
        return None

    def _report_conflict(self, candidate: NewReservation, conflict: Reservation, now: datetime) -> None:
        self._logger.info(
            "Reservation conflict",
            extra={
                "event": "reservation_conflict",
                "resource_id": candidate.resource_id,
                "day": format_local_date(candidate.date),
                "start_time": candidate.start_time,
                "end_time": candidate.end_time,
                "conflicting_id": conflict.reservation_id,
            },
        )
        self._record_event(
            "RESERVATION_CONFLICT",
            {
                "resource_id": candidate.resource_id,
                "date": format_local_date(candidate.date),
                "start_time": candidate.start_time,
                "end_time": candidate.end_time,
                "conflicting_id": conflict.reservation_id,
            },
            now,
        )


class InMemoryReservationStore(ReservationStore):
    """Process-local store, the counterpart of a per-client local store."""

    def __init__(
        self,
        registry: ResourceRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(registry, clock, logger)
        self._records: list[Reservation] = []

    def _load(self) -> list[Reservation]:
        return list(self._records)

    def _save(self, records: list[Reservation]) -> None:
        self._records = list(records)
