from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Iterable
from uuid import uuid4

from .recurrence import MAX_WEEKDAY_MASK, RecurrenceRule, WeekdaySet, expand_active_dates, iter_active_dates


class RejectionKind(Enum):
    MISSING_FIELD = "missing_field"
    INVALID_RANGE = "invalid_range"
    PAST_DATE = "past_date"
    INVALID_MASK = "invalid_mask"
    MISSING_RECURRENCE_FIELD = "missing_recurrence_field"
    INVALID_RECURRENCE_RANGE = "invalid_recurrence_range"
    SCHEDULING_CONFLICT = "scheduling_conflict"


def format_time(value: time) -> str:
    if value.second or value.microsecond:
        return value.isoformat(timespec="seconds")
    return value.isoformat(timespec="minutes")


@dataclass(frozen=True)
class ReservationRequest:
    """Candidate reservation as received from a caller; any field may be absent."""

    resource_id: str | None = None
    anchor_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    recurrence_rule: RecurrenceRule = RecurrenceRule.NONE
    recurrence_end_date: date | None = None
    days_of_week: int | None = None


@dataclass(frozen=True)
class ReservationDraft:
    """A validated and normalized candidate that has not been assigned an id yet."""

    resource_id: str
    anchor_date: date
    start_time: time
    end_time: time
    recurrence_rule: RecurrenceRule = RecurrenceRule.NONE
    recurrence_end_date: date | None = None
    days_of_week: WeekdaySet | None = None

    def active_dates(self) -> list[date]:
        return expand_active_dates(self.anchor_date, self.recurrence_end_date, self.days_of_week)

    def to_reservation(self, reservation_id: str, requested_at: datetime) -> "Reservation":
        return Reservation(
            reservation_id=reservation_id,
            resource_id=self.resource_id,
            anchor_date=self.anchor_date,
            start_time=self.start_time,
            end_time=self.end_time,
            recurrence_rule=self.recurrence_rule,
            recurrence_end_date=self.recurrence_end_date,
            days_of_week=self.days_of_week,
            requested_at=requested_at,
        )


@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    resource_id: str
    anchor_date: date
    start_time: time
    end_time: time
    requested_at: datetime
    recurrence_rule: RecurrenceRule = RecurrenceRule.NONE
    recurrence_end_date: date | None = None
    days_of_week: WeekdaySet | None = None

    def __post_init__(self) -> None:
        if not self.resource_id or not self.resource_id.strip():
            raise ValueError("Reservation resource_id must not be empty.")
        if self.start_time >= self.end_time:
            raise ValueError("Reservation start time must be earlier than end time.")
        if self.recurrence_rule.repeats:
            if self.recurrence_end_date is None:
                raise ValueError("Repeating reservation requires a recurrence end date.")
            if self.recurrence_end_date < self.anchor_date:
                raise ValueError("Recurrence end date must not be earlier than the anchor date.")
        elif self.recurrence_end_date is not None or self.days_of_week is not None:
            raise ValueError("Non-repeating reservation must not carry recurrence fields.")

    def active_dates(self) -> list[date]:
        return expand_active_dates(self.anchor_date, self.recurrence_end_date, self.days_of_week)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "reservation_id": self.reservation_id,
            "resource_id": self.resource_id,
            "anchor_date": self.anchor_date.isoformat(),
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
            "recurrence_rule": self.recurrence_rule.value,
            "requested_at": self.requested_at.isoformat(timespec="seconds"),
        }
        if self.recurrence_end_date is not None:
            payload["recurrence_end_date"] = self.recurrence_end_date.isoformat()
        if self.days_of_week is not None:
            payload["days_of_week"] = self.days_of_week.mask
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Reservation":
        end_date = data.get("recurrence_end_date")
        mask = data.get("days_of_week")
        return Reservation(
            reservation_id=str(data["reservation_id"]),
            resource_id=str(data["resource_id"]),
            anchor_date=date.fromisoformat(str(data["anchor_date"])),
            start_time=time.fromisoformat(str(data["start_time"])),
            end_time=time.fromisoformat(str(data["end_time"])),
            recurrence_rule=RecurrenceRule(str(data.get("recurrence_rule", RecurrenceRule.NONE.value))),
            recurrence_end_date=(date.fromisoformat(str(end_date)) if end_date is not None else None),
            days_of_week=(WeekdaySet(int(mask)) if mask is not None else None),
            requested_at=datetime.fromisoformat(str(data["requested_at"])),
        )


@dataclass(frozen=True)
class ValidationFailure:
    kind: RejectionKind
    message: str


@dataclass(frozen=True)
class ConflictDetail:
    date: date
    resource_id: str
    kind: RejectionKind = RejectionKind.SCHEDULING_CONFLICT

    @property
    def message(self) -> str:
        return f"Booking conflict with date {self.date.isoformat()} & specified time range!"


@dataclass(frozen=True)
class Accepted:
    reservation: Reservation


Rejection = ValidationFailure | ConflictDetail


class ReservationRejectedError(ValueError):
    def __init__(self, rejection: Rejection) -> None:
        super().__init__(rejection.message)
        self.rejection = rejection

    @property
    def kind(self) -> RejectionKind:
        return self.rejection.kind


def has_time_overlap(new_start: time, new_end: time, exist_start: time, exist_end: time) -> bool:
    """Return True when two time-of-day windows overlap.

    Windows are half-open ranges [start, end), so touching boundaries
    (e.g. 10:00-12:00 and 12:00-14:00) do not overlap.
    """
    if new_start >= new_end:
        raise ValueError("new_start must be earlier than new_end.")
    if exist_start >= exist_end:
        raise ValueError("exist_start must be earlier than exist_end.")

    return new_start < exist_end and exist_start < new_end


def validate_request(candidate: ReservationRequest, now: datetime | None = None) -> ReservationDraft | ValidationFailure:
    effective_now = now or datetime.now()

    if candidate.anchor_date is None:
        return ValidationFailure(RejectionKind.MISSING_FIELD, "anchor_date field is required.")
    if candidate.start_time is None:
        return ValidationFailure(RejectionKind.MISSING_FIELD, "start_time field is required.")
    if candidate.end_time is None:
        return ValidationFailure(RejectionKind.MISSING_FIELD, "end_time field is required.")
    if candidate.resource_id is None or not candidate.resource_id.strip():
        return ValidationFailure(RejectionKind.MISSING_FIELD, "resource_id field is required.")

    if candidate.start_time >= candidate.end_time:
        return ValidationFailure(RejectionKind.INVALID_RANGE, "start_time should be earlier than end_time.")
    if candidate.anchor_date < effective_now.date():
        return ValidationFailure(RejectionKind.PAST_DATE, "anchor_date should be today or later.")
    if candidate.days_of_week is not None and not 0 <= candidate.days_of_week <= MAX_WEEKDAY_MASK:
        return ValidationFailure(
            RejectionKind.INVALID_MASK,
            f"days_of_week should be 0 to {MAX_WEEKDAY_MASK}.",
        )

    draft = ReservationDraft(
        resource_id=candidate.resource_id.strip(),
        anchor_date=candidate.anchor_date,
        start_time=candidate.start_time,
        end_time=candidate.end_time,
        recurrence_rule=candidate.recurrence_rule,
    )

    if not candidate.recurrence_rule.repeats:
        return draft

    if candidate.recurrence_rule is RecurrenceRule.WEEKLY and not candidate.days_of_week:
        return ValidationFailure(
            RejectionKind.MISSING_RECURRENCE_FIELD,
            "days_of_week field is required for a weekly recurrence.",
        )
    if candidate.recurrence_end_date is None:
        return ValidationFailure(
            RejectionKind.MISSING_RECURRENCE_FIELD,
            "recurrence_end_date field is required for a repeating reservation.",
        )
    if candidate.recurrence_end_date < candidate.anchor_date:
        return ValidationFailure(
            RejectionKind.INVALID_RECURRENCE_RANGE,
            "recurrence_end_date should not be earlier than anchor_date.",
        )

    # the day-of-week mask only restricts weekly reservations
    days_of_week = WeekdaySet(candidate.days_of_week) if candidate.recurrence_rule is RecurrenceRule.WEEKLY else None
    return replace(draft, recurrence_end_date=candidate.recurrence_end_date, days_of_week=days_of_week)


def find_conflict(draft: ReservationDraft, existing: Iterable[Reservation]) -> ConflictDetail | None:
    candidate_dates = set(draft.active_dates())

    for reservation in existing:
        if reservation.resource_id != draft.resource_id:
            continue
        if not has_time_overlap(draft.start_time, draft.end_time, reservation.start_time, reservation.end_time):
            continue

        for active_date in iter_active_dates(
            reservation.anchor_date,
            reservation.recurrence_end_date,
            reservation.days_of_week,
        ):
            if active_date in candidate_dates:
                return ConflictDetail(date=active_date, resource_id=draft.resource_id)
    return None


def check_conflict(
    candidate: ReservationRequest,
    existing: Iterable[Reservation],
    now: datetime | None = None,
) -> Accepted | ValidationFailure | ConflictDetail:
    """Validate a candidate and check it against existing reservations.

    Returns the first conflicting date found, a validation failure, or the
    accepted reservation with a fresh id and ``requested_at`` set to ``now``.
    ``existing`` is not read when validation fails.
    """
    effective_now = now or datetime.now()

    validated = validate_request(candidate, effective_now)
    if isinstance(validated, ValidationFailure):
        return validated

    conflict = find_conflict(validated, existing)
    if conflict is not None:
        return conflict

    return Accepted(validated.to_reservation(str(uuid4()), effective_now))


def can_reserve(candidate: ReservationRequest, existing: Iterable[Reservation], now: datetime | None = None) -> bool:
    """Return True if the candidate is valid and overlaps no existing reservation."""
    return isinstance(check_conflict(candidate, existing, now), Accepted)
