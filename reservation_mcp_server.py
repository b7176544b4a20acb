from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from fleet_reservations import (
    ConflictDetail,
    PayloadError,
    ReservationRejectedError,
    ReservationYamlRepository,
    parse_date_filter,
    parse_reservation_payload,
)

mcp = FastMCP(
    "Fleet Reservation MCP Server",
    instructions="Expose vehicle reservation calendars and booking from the fleet_reservations project.",
    json_response=True,
)

DATA_DIR = Path(os.environ.get("FLEET_RESERVATIONS_DATA_DIR", Path(__file__).parent / "data"))
_repository: ReservationYamlRepository | None = None


def get_repository() -> ReservationYamlRepository:
    global _repository
    if _repository is None:
        _repository = ReservationYamlRepository(DATA_DIR)
    return _repository


@mcp.resource("reservation://vehicles")
async def list_vehicles() -> list[dict[str, str]]:
    """List bookable vehicles."""
    return [vehicle.to_dict() for vehicle in get_repository().get_vehicles()]


@mcp.tool()
def list_calendar(
    resource_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict[str, Any]:
    """Return expanded booking occurrences, optionally filtered by vehicle and date range."""
    try:
        range_start = parse_date_filter(start_date, "start_date")
        range_end = parse_date_filter(end_date, "end_date")
    except PayloadError as error:
        return {"ok": False, "kind": "invalid_payload", "message": str(error)}

    occurrences = get_repository().list_calendar(resource_id, range_start, range_end)
    return {"ok": True, "bookings": [occurrence.to_dict() for occurrence in occurrences]}


@mcp.tool()
def create_reservation(
    resource_id: str,
    anchor_date: str,
    start_time: str,
    end_time: str,
    recurrence_rule: str = "none",
    recurrence_end_date: str | None = None,
    days_of_week: list[str] | None = None,
) -> dict[str, Any]:
    """Book a vehicle. Weekday names restrict a weekly recurrence."""
    try:
        candidate = parse_reservation_payload(
            {
                "resource_id": resource_id,
                "anchor_date": anchor_date,
                "start_time": start_time,
                "end_time": end_time,
                "recurrence_rule": recurrence_rule,
                "recurrence_end_date": recurrence_end_date,
                "days_of_week": days_of_week,
            }
        )
        created = get_repository().add_reservation(candidate)
    except ReservationRejectedError as error:
        result: dict[str, Any] = {"ok": False, "kind": error.kind.value, "message": str(error)}
        if isinstance(error.rejection, ConflictDetail):
            result["date"] = error.rejection.date.isoformat()
        return result
    except PayloadError as error:
        return {"ok": False, "kind": "invalid_payload", "message": str(error)}

    return {"ok": True, "reservation": created.to_dict()}


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
