from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from .availability import DEFAULT_SLOT_MINUTES
from .booking import NewReservation
from .calendar_view import build_month_calendar, resource_status, sort_reservations
from .errors import (
    ConflictError,
    InvalidFormatError,
    MissingFieldError,
    NotFoundError,
    ParseError,
    ReservationStorageError,
    ValidationError,
    conflict_payload,
)
from .logging_config import configure_logging
from .settings import Settings, build_store, load_settings
from .store import ReservationStore
from .timeutil import format_local_date, parse_local_date

logger = logging.getLogger("booking_calendar.web")


def create_app(
    data_dir: str | Path | None = None,
    now_provider: Callable[[], datetime] | None = None,
    store: ReservationStore | None = None,
    settings: Settings | None = None,
) -> Flask:
    app = Flask(__name__)
    settings = settings or load_settings()
    if data_dir is not None:
        settings = replace(settings, data_dir=Path(data_dir), store_backend="yaml")
    repository = store or build_store(settings)
    clock: Callable[[], datetime] = now_provider or datetime.now

    app.config["BOOKING_SETTINGS"] = settings
    app.extensions["booking_store"] = repository

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type,Authorization"
        return response

    @app.errorhandler(ConflictError)
    def handle_conflict(error: ConflictError) -> Any:
        return (
            jsonify(
                {
                    "ok": False,
                    "error": "conflict",
                    "message": str(error),
                    "conflicts": [error.to_payload()],
                }
            ),
            409,
        )

    @app.errorhandler(ValidationError)
    def handle_validation(error: ValidationError) -> Any:
        return jsonify({"ok": False, "error": error.reason, "message": str(error)}), 400

    @app.errorhandler(ParseError)
    def handle_parse(error: ParseError) -> Any:
        # Client input is checked before it reaches the store, so this is stored data.
        logger.error("Stored reservation data is malformed", extra={"event": "data_integrity", "reason": str(error)})
        return jsonify({"ok": False, "error": "data_integrity", "message": "저장된 예약 데이터가 손상되었습니다."}), 500

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError) -> Any:
        return jsonify({"ok": False, "error": "invalid", "message": str(error)}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(error: NotFoundError) -> Any:
        return jsonify({"ok": False, "error": "not_found", "message": "예약을 찾을 수 없습니다."}), 404

    @app.errorhandler(ReservationStorageError)
    def handle_storage(error: ReservationStorageError) -> Any:
        logger.exception("Storage failure", extra={"event": "storage_error"})
        return jsonify({"ok": False, "error": "storage", "message": "저장소 오류가 발생했습니다."}), 500

    @app.get("/api/health")
    def health() -> Any:
        now = clock()
        try:
            stats = repository.stats()
        except ReservationStorageError as error:
            logger.error("Health check failed", extra={"event": "health_failed", "reason": str(error)})
            return (
                jsonify(
                    {
                        "status": "unhealthy",
                        "timestamp": now.isoformat(timespec="seconds"),
                        "message": str(error),
                    }
                ),
                500,
            )
        return jsonify({"status": "healthy", "timestamp": now.isoformat(timespec="seconds"), "stats": stats})

    @app.get("/api/resources")
    def list_resources() -> Any:
        return jsonify({"ok": True, **repository.registry.to_payload()})

    @app.get("/api/reservations")
    def list_reservations() -> Any:
        year = _int_arg("year")
        month = _int_arg("month")
        records = sort_reservations(repository.list_by_month(year, month))
        logger.debug(
            "Listed reservations",
            extra={"event": "reservations_listed", "year": year, "month": month, "count": len(records)},
        )
        return jsonify({"ok": True, "reservations": [record.to_payload() for record in records], "count": len(records)})

    @app.post("/api/reservations")
    def create_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        candidate = NewReservation.from_payload(payload)
        created = repository.create(candidate, now=clock())
        return (
            jsonify({"ok": True, "reservation": created.to_payload(), "message": "예약이 생성되었습니다."}),
            201,
        )

    @app.delete("/api/reservations/<reservation_id>")
    def delete_reservation(reservation_id: str) -> Any:
        deleted = repository.delete(reservation_id, now=clock())
        return jsonify({"ok": True, "reservation": deleted.to_payload(), "message": "예약이 삭제되었습니다."})

    @app.post("/api/reservations/check")
    def check_reservation() -> Any:
        payload = request.get_json(silent=True) or {}
        candidate = NewReservation.from_payload(payload)
        exclude_id = str(payload.get("excludeId") or "").strip() or None
        conflict = repository.check_request(candidate, exclude_id=exclude_id)
        return jsonify(
            {
                "ok": True,
                "available": conflict is None,
                "conflict": conflict_payload(conflict) if conflict is not None else None,
            }
        )

    @app.get("/api/availability")
    def availability() -> Any:
        resource_id = _str_arg("resourceId")
        target_date = _date_arg("date")
        slot_duration = _int_arg("slotDuration", DEFAULT_SLOT_MINUTES)
        slots = repository.available_slots(resource_id, target_date, slot_duration)
        return jsonify(
            {
                "ok": True,
                "resourceId": resource_id,
                "date": format_local_date(target_date),
                "slotDuration": slot_duration,
                "slots": slots,
            }
        )

    @app.get("/api/calendar")
    def month_calendar() -> Any:
        year = _int_arg("year")
        month = _int_arg("month")
        days = build_month_calendar(
            year,
            month,
            repository.list_by_month(year, month),
            country=settings.holiday_country,
            today=clock().date(),
        )
        return jsonify({"ok": True, "year": year, "month": month, "days": days})

    @app.get("/api/status")
    def status() -> Any:
        target_date = _date_arg("date", clock().date())
        reservations = repository.list_by_month(target_date.year, target_date.month)
        return jsonify(
            {
                "ok": True,
                "date": format_local_date(target_date),
                **resource_status(repository.registry, reservations, target_date),
            }
        )

    return app


def _str_arg(name: str) -> str:
    value = str(request.args.get(name, "")).strip()
    if not value:
        raise MissingFieldError(f"Query parameter {name!r} is required.")
    return value


def _date_arg(name: str, default: date | None = None) -> date:
    raw = str(request.args.get(name, "")).strip()
    if not raw:
        if default is None:
            raise MissingFieldError(f"Query parameter {name!r} is required.")
        return default
    try:
        return parse_local_date(raw)
    except ParseError as error:
        raise InvalidFormatError(str(error)) from error


def _int_arg(name: str, default: int | None = None) -> int:
    raw = str(request.args.get(name, "")).strip()
    if not raw:
        if default is None:
            raise MissingFieldError(f"Query parameter {name!r} is required.")
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"Query parameter {name!r} must be an integer: {raw!r}") from error


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_file)
    app = create_app(settings=settings)
    app.run(host=settings.host, port=settings.port, debug=False)


if __name__ == "__main__":
    main()
