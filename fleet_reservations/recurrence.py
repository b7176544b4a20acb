from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum, IntEnum
from typing import Iterable, Iterator

MAX_WEEKDAY_MASK = 127


class RecurrenceRule(Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def repeats(self) -> bool:
        return self is not RecurrenceRule.NONE


class Weekday(IntEnum):
    """Day index used by the stored day-of-week mask: bit i is weekday i."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, value: date) -> "Weekday":
        # date.weekday() counts from Monday=0
        return cls((value.weekday() + 1) % 7)

    @classmethod
    def from_name(cls, name: str) -> "Weekday":
        key = name.strip().lower()
        for weekday in cls:
            full = weekday.name.lower()
            if key == full or key == full[:3]:
                return weekday
        raise ValueError(f"Unknown weekday name: {name!r}")


@dataclass(frozen=True)
class WeekdaySet:
    """Set of weekdays stored as a 7-bit mask.

    An empty set (mask 0) matches every day. Stored reservations rely on that
    to mean "no day-of-week restriction".
    """

    mask: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.mask <= MAX_WEEKDAY_MASK:
            raise ValueError(f"Weekday mask must be between 0 and {MAX_WEEKDAY_MASK}.")

    @classmethod
    def from_weekdays(cls, weekdays: Iterable[Weekday | int]) -> "WeekdaySet":
        mask = 0
        for weekday in weekdays:
            mask |= 1 << Weekday(weekday)
        return cls(mask)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "WeekdaySet":
        return cls.from_weekdays(Weekday.from_name(name) for name in names)

    @property
    def is_match_all(self) -> bool:
        return self.mask == 0

    def is_active_on(self, weekday: Weekday | int) -> bool:
        if self.is_match_all:
            return True
        return bool(self.mask & (1 << Weekday(weekday)))

    def matches(self, value: date) -> bool:
        return self.is_active_on(Weekday.of(value))

    def __contains__(self, weekday: object) -> bool:
        if not isinstance(weekday, int) or not 0 <= weekday <= 6:
            return False
        return self.is_active_on(weekday)

    def __iter__(self) -> Iterator[Weekday]:
        return (weekday for weekday in Weekday if self.mask & (1 << weekday))

    def __str__(self) -> str:
        if self.is_match_all:
            return "every day"
        return ",".join(weekday.name.title()[:3] for weekday in self)


def _coerce_weekdays(days_of_week: WeekdaySet | int | None) -> WeekdaySet:
    if days_of_week is None:
        return WeekdaySet()
    if isinstance(days_of_week, WeekdaySet):
        return days_of_week
    return WeekdaySet(int(days_of_week))


def iter_active_dates(
    anchor_date: date,
    recurrence_end_date: date | None = None,
    days_of_week: WeekdaySet | int | None = None,
) -> Iterator[date]:
    """Yield the dates a reservation is active on, ascending and inclusive.

    Without an end date only the anchor date is produced. An end date before
    the anchor produces nothing.
    """
    if recurrence_end_date is None:
        yield anchor_date
        return

    weekdays = _coerce_weekdays(days_of_week)
    cursor = anchor_date
    while cursor <= recurrence_end_date:
        if weekdays.matches(cursor):
            yield cursor
        cursor += timedelta(days=1)


def expand_active_dates(
    anchor_date: date,
    recurrence_end_date: date | None = None,
    days_of_week: WeekdaySet | int | None = None,
) -> list[date]:
    return list(iter_active_dates(anchor_date, recurrence_end_date, days_of_week))
