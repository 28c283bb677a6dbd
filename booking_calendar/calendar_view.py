"""Read-only views for rendering a month calendar and per-day resource status."""

from __future__ import annotations

import calendar
from datetime import date
from typing import Any, Iterable

import holidays as pyholidays

from .booking import Reservation
from .resources import KIND_SPACE, KIND_VEHICLE, ResourceRegistry
from .timeutil import format_local_date, in_month, is_same_day, month_bounds

DEFAULT_HOLIDAY_COUNTRY = "KR"
_HOLIDAY_CACHE: dict[tuple[str, int], dict[date, str]] = {}


def holiday_name(target_date: date, country: str = DEFAULT_HOLIDAY_COUNTRY) -> str | None:
    key = (country, target_date.year)
    if key not in _HOLIDAY_CACHE:
        holiday_map = pyholidays.country_holidays(country, years=[target_date.year])
        _HOLIDAY_CACHE[key] = dict(holiday_map.items())
    return _HOLIDAY_CACHE[key].get(target_date)


def sort_reservations(reservations: Iterable[Reservation]) -> list[Reservation]:
    return sorted(reservations, key=lambda record: (record.date, record.start_minutes, record.end_minutes))


def build_month_calendar(
    year: int,
    month: int,
    reservations: Iterable[Reservation],
    country: str = DEFAULT_HOLIDAY_COUNTRY,
    today: date | None = None,
) -> list[dict[str, Any]]:
    first_day, last_day = month_bounds(year, month)
    reference_today = today or date.today()

    by_day: dict[int, list[Reservation]] = {}
    for record in reservations:
        if in_month(record.date, year, month):
            by_day.setdefault(record.date.day, []).append(record)

    cells: list[dict[str, Any]] = []
    for day_number in range(first_day.day, last_day.day + 1):
        current = date(year, month, day_number)
        day_reservations = sort_reservations(by_day.get(day_number, []))
        cells.append(
            {
                "date": format_local_date(current),
                "day": day_number,
                "weekday": current.weekday(),
                "weekdayName": calendar.day_abbr[current.weekday()],
                "isWeekend": current.weekday() >= 5,
                "isToday": is_same_day(current, reference_today),
                "holiday": holiday_name(current, country),
                "reservations": [record.to_payload() for record in day_reservations],
            }
        )
    return cells


def resource_status(
    registry: ResourceRegistry,
    reservations: Iterable[Reservation],
    target_date: date,
) -> dict[str, list[dict[str, Any]]]:
    counts: dict[str, int] = {}
    for record in reservations:
        if is_same_day(record.date, target_date):
            counts[record.resource_id] = counts.get(record.resource_id, 0) + 1

    def _rows(kind: str) -> list[dict[str, Any]]:
        return [
            {
                **resource.to_dict(),
                "label": resource.label,
                "bookingCount": counts.get(resource.resource_id, 0),
                "isBooked": counts.get(resource.resource_id, 0) > 0,
            }
            for resource in registry.by_kind(kind)
        ]

    return {"vehicles": _rows(KIND_VEHICLE), "spaces": _rows(KIND_SPACE)}
