from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Any, Iterable, Mapping

from .booking import Reservation, format_time
from .recurrence import iter_active_dates


@dataclass(frozen=True)
class ExpandedOccurrence:
    date: date
    start_time: time
    end_time: time
    resource_id: str
    resource_label: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "booking_date": self.date.isoformat(),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "resource_id": self.resource_id,
            "resource_label": self.resource_label,
        }


def project_calendar(
    reservations: Iterable[Reservation],
    range_start: date | None = None,
    range_end: date | None = None,
    resource_labels: Mapping[str, str] | None = None,
) -> list[ExpandedOccurrence]:
    """Flatten reservations into one row per active date.

    Rows keep the input reservation order and are ascending by date within a
    reservation. Dates outside ``[range_start, range_end]`` are dropped; either
    bound may be omitted.
    """
    labels = resource_labels or {}
    occurrences: list[ExpandedOccurrence] = []

    for reservation in reservations:
        label = labels.get(reservation.resource_id, reservation.resource_id)
        for active_date in iter_active_dates(
            reservation.anchor_date,
            reservation.recurrence_end_date,
            reservation.days_of_week,
        ):
            if range_start is not None and active_date < range_start:
                continue
            if range_end is not None and active_date > range_end:
                break
            occurrences.append(
                ExpandedOccurrence(
                    date=active_date,
                    start_time=reservation.start_time,
                    end_time=reservation.end_time,
                    resource_id=reservation.resource_id,
                    resource_label=label,
                )
            )

    return occurrences
