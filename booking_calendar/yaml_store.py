from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import yaml

from .booking import Reservation
from .errors import ReservationStorageError
from .resources import ResourceRegistry
from .store import ReservationStore


class ReservationYamlRepository(ReservationStore):
    """Reservation store persisted as YAML lists under ``base_dir``.

    ``reservations.yaml`` holds the authoritative set in insertion order and
    ``reservation_events.yaml`` is an append-only audit trail.
    """

    def __init__(
        self,
        base_dir: str | Path = "data",
        registry: ResourceRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(registry, clock, logger)
        self.base_dir = Path(base_dir)
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._ensure_files()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.reservations_file, self.log_file):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise ReservationStorageError(f"Failed to prepare data directory: {self.base_dir}") from error

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            raise ReservationStorageError(f"Failed to read YAML file: {path}") from error

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ReservationStorageError(f"Top-level YAML is not a list: {path}")

        for index, row in enumerate(payload):
            if not isinstance(row, dict):
                raise ReservationStorageError(f"Row {index} in {path.name} is not a mapping")
        return payload

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _load(self) -> list[Reservation]:
        rows = self._read_yaml_list(self.reservations_file)
        return [Reservation.from_dict(row) for row in rows]

    def _save(self, records: list[Reservation]) -> None:
        self._write_yaml_list(self.reservations_file, [record.to_dict() for record in records])

    def _record_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or self._clock()).isoformat(timespec="seconds")
        with self._write_lock:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)

    def get_events(self) -> list[dict[str, Any]]:
        with self._write_lock:
            return self._read_yaml_list(self.log_file)
