from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from .availability import DEFAULT_SLOT_MINUTES
from .booking import NewReservation
from .calendar_view import sort_reservations
from .logging_config import configure_logging
from .resources import KIND_SPACE, KIND_VEHICLE
from .settings import build_store, load_settings
from .store import ReservationStore
from .timeutil import parse_local_date

mcp = FastMCP(
    "Booking Calendar MCP Server",
    instructions="Expose shared vehicle and room reservations: list, book, cancel and find free slots.",
    json_response=True,
)

_REPOSITORY: ReservationStore | None = None


def get_repository() -> ReservationStore:
    global _REPOSITORY
    if _REPOSITORY is None:
        _REPOSITORY = build_store(load_settings())
    return _REPOSITORY


def set_repository(repository: ReservationStore | None) -> None:
    global _REPOSITORY
    _REPOSITORY = repository


@mcp.resource("booking://vehicles")
async def list_vehicles() -> list[dict[str, str]]:
    """List bookable vehicles."""
    return [resource.to_dict() for resource in get_repository().registry.by_kind(KIND_VEHICLE)]


@mcp.resource("booking://spaces")
async def list_spaces() -> list[dict[str, str]]:
    """List bookable rooms and halls."""
    return [resource.to_dict() for resource in get_repository().registry.by_kind(KIND_SPACE)]


@mcp.tool()
def list_reservations(year: int, month: int) -> list[dict[str, str]]:
    """Return the reservations of one calendar month, ordered by date and start time."""
    records = sort_reservations(get_repository().list_by_month(year, month))
    return [record.to_payload() for record in records]


@mcp.tool()
def create_reservation(
    resource_id: str,
    date: str,
    start_time: str,
    end_time: str,
    reserved_by: str,
    purpose: str = "",
) -> dict[str, Any]:
    """Book a resource for HH:MM-HH:MM on YYYY-MM-DD. Fails when the slot is taken."""
    repository = get_repository()
    resource = repository.registry.require(resource_id)
    candidate = NewReservation(
        kind=resource.kind,
        resource_id=resource_id,
        date=parse_local_date(date),
        start_time=start_time,
        end_time=end_time,
        reserved_by=reserved_by,
        purpose=purpose,
    )
    return repository.create(candidate).to_payload()


@mcp.tool()
def delete_reservation(reservation_id: str) -> dict[str, str]:
    """Cancel a reservation by id."""
    return get_repository().delete(reservation_id).to_payload()


@mcp.tool()
def find_available_slots(resource_id: str, date: str, slot_duration: int = DEFAULT_SLOT_MINUTES) -> list[str]:
    """Return free start times (HH:MM) for a resource on a given day."""
    return get_repository().available_slots(resource_id, parse_local_date(date), slot_duration)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_file)
    mcp.run()


if __name__ == "__main__":
    main()
