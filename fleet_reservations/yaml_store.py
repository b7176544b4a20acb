from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from pathlib import Path
from typing import Any
import shutil
import tempfile
import threading
from uuid import uuid4

import yaml

from .booking import (
    Accepted,
    ConflictDetail,
    Reservation,
    ReservationRejectedError,
    ReservationRequest,
    check_conflict,
    format_time,
)
from .calendar_view import ExpandedOccurrence, project_calendar
from .recurrence import RecurrenceRule, Weekday, WeekdaySet


@dataclass(frozen=True)
class Vehicle:
    vehicle_id: str
    make: str
    model: str

    def to_dict(self) -> dict[str, str]:
        return {"vehicle_id": self.vehicle_id, "make": self.make, "model": self.model}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Vehicle":
        return Vehicle(
            vehicle_id=str(data["vehicle_id"]),
            make=str(data.get("make", "")),
            model=str(data.get("model", "")),
        )


class ReservationStorageError(RuntimeError):
    pass


UNKNOWN_VEHICLE_LABEL = "Unknown"


class ReservationYamlRepository:
    """YAML-backed store for vehicles and reservations.

    ``add_reservation`` holds the repository lock across the conflict check and
    the write, so concurrent callers sharing one repository cannot both accept
    overlapping reservations.
    """

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.vehicles_file = self.base_dir / "vehicles.yaml"
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self._lock = threading.RLock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.vehicles_file, self.reservations_file, self.log_file):
            if not path.exists():
                self._store_rows(path, [])

    def _load_rows(self, path: Path) -> list[dict[str, Any]]:
        """Return the mapping rows of a YAML list file.

        An unreadable file is quarantined and reset to an empty list. Rows that
        are not mappings are dropped and reported in the event log.
        """
        with self._lock:
            try:
                payload = yaml.safe_load(path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                self._store_rows(path, [])
                return []
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
                self._quarantine(path, str(error))
                return []

            if payload is None:
                return []
            if not isinstance(payload, list):
                self._quarantine(path, "top-level YAML is not a list")
                return []

            rows = [row for row in payload if isinstance(row, dict)]
            if path != self.log_file:
                for index, row in enumerate(payload):
                    if not isinstance(row, dict):
                        self._record_event(
                            "YAML_ROW_SKIPPED",
                            {"file": path.name, "index": index, "reason": "row is not a mapping"},
                        )
            return rows

    def _store_rows(self, path: Path, rows: list[dict[str, Any]]) -> None:
        document = yaml.safe_dump(rows, allow_unicode=True, sort_keys=False)
        staged: Path | None = None
        with self._lock:
            try:
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=path.parent,
                    prefix=f".{path.name}.",
                    suffix=".tmp",
                    delete=False,
                ) as handle:
                    staged = Path(handle.name)
                    handle.write(document)
                staged.replace(path)
            except OSError as error:
                raise ReservationStorageError(f"Failed to write YAML file: {path}") from error
            finally:
                if staged is not None and staged.exists():
                    staged.unlink(missing_ok=True)

    def _quarantine(self, path: Path, reason: str) -> None:
        with self._lock:
            stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
            backup: Path | None = path.with_name(f"{path.stem}.corrupt.{stamp}{path.suffix}")
            try:
                shutil.copy2(path, backup)
            except OSError:
                backup = None

            self._store_rows(path, [])
            if path != self.log_file:
                self._record_event(
                    "YAML_RECOVERED",
                    {"file": path.name, "backup": (backup.name if backup is not None else None), "reason": reason},
                )

    def _record_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        entry = {
            "event_time": (event_time or datetime.now()).isoformat(timespec="seconds"),
            "event_type": event_type,
            "payload": payload,
        }
        # read-append-write of the log must not interleave with another thread's
        with self._lock:
            events = self._load_rows(self.log_file)
            events.append(entry)
            self._store_rows(self.log_file, events)

    def get_events(self) -> list[dict[str, Any]]:
        return self._load_rows(self.log_file)

    def get_vehicles(self) -> list[Vehicle]:
        return [Vehicle.from_dict(row) for row in self._load_rows(self.vehicles_file)]

    def get_vehicle_labels(self) -> dict[str, str]:
        return {vehicle.vehicle_id: vehicle.model or UNKNOWN_VEHICLE_LABEL for vehicle in self.get_vehicles()}

    def get_reservations(self, resource_id: str | None = None) -> list[Reservation]:
        reservations: list[Reservation] = []
        for index, row in enumerate(self._load_rows(self.reservations_file)):
            try:
                reservation = Reservation.from_dict(row)
            except (KeyError, TypeError, ValueError) as error:
                self._record_event(
                    "YAML_ROW_SKIPPED",
                    {"file": str(self.reservations_file.name), "index": index, "reason": str(error)},
                )
                continue
            if resource_id is None or reservation.resource_id == resource_id:
                reservations.append(reservation)
        return reservations

    def add_reservation(self, request: ReservationRequest, now: datetime | None = None) -> Reservation:
        effective_now = now or datetime.now()
        resource_id = request.resource_id.strip() if request.resource_id else None

        with self._lock:
            existing = self.get_reservations(resource_id) if resource_id else []
            verdict = check_conflict(request, existing, now=effective_now)

            if not isinstance(verdict, Accepted):
                self._record_event(
                    "RESERVATION_REJECTED",
                    {
                        "resource_id": resource_id,
                        "kind": verdict.kind.value,
                        "message": verdict.message,
                        "date": (verdict.date.isoformat() if isinstance(verdict, ConflictDetail) else None),
                    },
                    effective_now,
                )
                raise ReservationRejectedError(verdict)

            record = verdict.reservation
            rows = self._load_rows(self.reservations_file)
            rows.append(record.to_dict())
            self._store_rows(self.reservations_file, rows)

            self._record_event(
                "RESERVATION_CREATED",
                {
                    "reservation_id": record.reservation_id,
                    "resource_id": record.resource_id,
                    "anchor_date": record.anchor_date.isoformat(),
                    "start_time": format_time(record.start_time),
                    "end_time": format_time(record.end_time),
                    "recurrence_rule": record.recurrence_rule.value,
                },
                effective_now,
            )
        return record

    def list_calendar(
        self,
        resource_id: str | None = None,
        range_start: date | None = None,
        range_end: date | None = None,
    ) -> list[ExpandedOccurrence]:
        labels = self.get_vehicle_labels()
        reservations = self.get_reservations(resource_id)
        occurrences = project_calendar(reservations, range_start, range_end, labels)
        return [
            occurrence if occurrence.resource_id in labels else replace(occurrence, resource_label=UNKNOWN_VEHICLE_LABEL)
            for occurrence in occurrences
        ]

    def seed_sample_data(self, now: datetime | None = None, overwrite: bool = True) -> list[Reservation]:
        effective_now = now or datetime.now()

        with self._lock:
            if not overwrite and self._load_rows(self.reservations_file):
                return self.get_reservations()

            vehicles, generated = generate_sample_data(effective_now)
            self._store_rows(self.vehicles_file, [vehicle.to_dict() for vehicle in vehicles])
            self._store_rows(self.reservations_file, [row.to_dict() for row in generated])

            self._record_event(
                "SAMPLE_DATA_SEEDED",
                {"vehicles": len(vehicles), "reservations": len(generated), "overwrite": overwrite},
                effective_now,
            )
        return generated


def generate_sample_data(now: datetime | None = None) -> tuple[list[Vehicle], list[Reservation]]:
    requested_at = now or datetime.now()
    vehicles = [
        Vehicle(vehicle_id=str(uuid4()), make="Toyota", model="Corolla"),
        Vehicle(vehicle_id=str(uuid4()), make="Honda", model="Civic"),
        Vehicle(vehicle_id=str(uuid4()), make="Ford", model="Focus"),
    ]
    corolla, civic, focus = (vehicle.vehicle_id for vehicle in vehicles)

    def _booking(
        resource_id: str,
        anchor: date,
        start: time,
        end: time,
        rule: RecurrenceRule = RecurrenceRule.NONE,
        until: date | None = None,
        days: WeekdaySet | None = None,
    ) -> Reservation:
        return Reservation(
            reservation_id=str(uuid4()),
            resource_id=resource_id,
            anchor_date=anchor,
            start_time=start,
            end_time=end,
            recurrence_rule=rule,
            recurrence_end_date=until,
            days_of_week=days,
            requested_at=requested_at,
        )

    reservations = [
        _booking(corolla, date(2025, 2, 5), time(10, 0), time(12, 0)),
        _booking(civic, date(2025, 2, 10), time(14, 0), time(16, 0), RecurrenceRule.DAILY, date(2025, 2, 20)),
        _booking(
            focus,
            date(2025, 2, 15),
            time(9, 0),
            time(10, 30),
            RecurrenceRule.WEEKLY,
            date(2025, 3, 31),
            WeekdaySet.from_weekdays([Weekday.MONDAY]),
        ),
        _booking(corolla, date(2025, 3, 1), time(11, 0), time(13, 0)),
        _booking(
            civic,
            date(2025, 3, 7),
            time(8, 0),
            time(10, 0),
            RecurrenceRule.WEEKLY,
            date(2025, 3, 28),
            WeekdaySet.from_weekdays([Weekday.FRIDAY]),
        ),
        _booking(focus, date(2025, 3, 15), time(15, 0), time(17, 0), RecurrenceRule.DAILY, date(2025, 3, 20)),
    ]
    return vehicles, reservations
