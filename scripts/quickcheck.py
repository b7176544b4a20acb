from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
import traceback

from fleet_reservations import (
    RecurrenceRule,
    ReservationRejectedError,
    ReservationRequest,
    ReservationYamlRepository,
    Weekday,
    WeekdaySet,
)


def main() -> int:
    print("[INFO] Fleet Reservations Quick Check")
    print("[INFO] Seeding sample vehicles and bookings...")

    repo = ReservationYamlRepository("data")
    now = datetime(2025, 2, 1, 9, 0)

    seeded = repo.seed_sample_data(now=now, overwrite=True)
    print(f"[OK] Sample bookings seeded: {len(seeded)} records")

    focus = next(vehicle for vehicle in repo.get_vehicles() if vehicle.model == "Focus")
    clashing = ReservationRequest(
        resource_id=focus.vehicle_id,
        anchor_date=date(2025, 3, 3),
        start_time=time(10, 0),
        end_time=time(11, 0),
        recurrence_rule=RecurrenceRule.WEEKLY,
        recurrence_end_date=date(2025, 3, 24),
        days_of_week=WeekdaySet.from_weekdays([Weekday.MONDAY]).mask,
    )
    try:
        repo.add_reservation(clashing, now=now)
        print("[WARN] Overlapping weekly booking was accepted")
    except ReservationRejectedError as error:
        print(f"[OK] Overlapping weekly booking rejected: {error}")

    touching = ReservationRequest(
        resource_id=focus.vehicle_id,
        anchor_date=date(2025, 3, 3),
        start_time=time(10, 30),
        end_time=time(12, 0),
        recurrence_rule=RecurrenceRule.WEEKLY,
        recurrence_end_date=date(2025, 3, 24),
        days_of_week=WeekdaySet.from_weekdays([Weekday.MONDAY]).mask,
    )
    created = repo.add_reservation(touching, now=now)
    print(f"[OK] Back-to-back weekly booking accepted: {created.reservation_id}")

    march = repo.list_calendar(range_start=date(2025, 3, 1), range_end=date(2025, 3, 31))
    print(f"[OK] Calendar rows in March 2025: {len(march)}")
    print(f"[OK] Reservations YAML: {Path('data/reservations.yaml').resolve()}")
    print(f"[OK] Event Log YAML: {Path('data/reservation_events.yaml').resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
