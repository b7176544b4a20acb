import re
from datetime import date, datetime, time
from typing import Any, Mapping

from .booking import ReservationRequest
from .recurrence import RecurrenceRule, WeekdaySet

_DATE_RE = re.compile(r"^(?P<date>\d{4}[/-]\d{1,2}[/-]\d{1,2})(?:[T ].*)?$")
_TIME_RE = re.compile(r"^(?P<hour>[01]?\d|2[0-3]):(?P<minute>[0-5]\d)(?::(?P<second>[0-5]\d)(?:\.\d+)?)?$")
_RULE_SEPARATOR_RE = re.compile(r"[\s_-]+")

_RULE_ALIASES = {
    "none": RecurrenceRule.NONE,
    "doesnotrepeat": RecurrenceRule.NONE,
    "daily": RecurrenceRule.DAILY,
    "weekly": RecurrenceRule.WEEKLY,
}
_RULE_CODES = {0: RecurrenceRule.NONE, 1: RecurrenceRule.DAILY, 2: RecurrenceRule.WEEKLY}

_FIELD_ALIASES = {
    "resource_id": ("resource_id", "car_id"),
    "anchor_date": ("anchor_date", "booking_date"),
    "start_time": ("start_time",),
    "end_time": ("end_time",),
    "recurrence_rule": ("recurrence_rule", "repeat_option"),
    "recurrence_end_date": ("recurrence_end_date", "end_repeat_date"),
    "days_of_week": ("days_of_week", "days_to_repeat_on"),
}


class PayloadError(ValueError):
    pass


def _lookup(payload: Mapping[str, Any], field: str) -> Any:
    for key in _FIELD_ALIASES[field]:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _parse_date(value: Any, field: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    match = _DATE_RE.match(str(value).strip())
    if not match:
        raise PayloadError(f"{field} must be a date in YYYY-MM-DD format.")
    normalized = match.group("date").replace("/", "-")
    try:
        return datetime.strptime(normalized, "%Y-%m-%d").date()
    except ValueError as error:
        raise PayloadError(f"{field} is not a valid calendar date.") from error


def _parse_time(value: Any, field: str) -> time | None:
    if value is None:
        return None
    if isinstance(value, time):
        return value

    match = _TIME_RE.match(str(value).strip())
    if not match:
        raise PayloadError(f"{field} must be a time in HH:MM format.")
    second = match.group("second")
    return time(int(match.group("hour")), int(match.group("minute")), int(second) if second else 0)


def _parse_rule(value: Any) -> RecurrenceRule:
    if value is None:
        return RecurrenceRule.NONE
    if isinstance(value, RecurrenceRule):
        return value
    if isinstance(value, bool):
        raise PayloadError("recurrence_rule must be one of: none, daily, weekly.")
    if isinstance(value, int):
        if value not in _RULE_CODES:
            raise PayloadError("recurrence_rule must be one of: none, daily, weekly.")
        return _RULE_CODES[value]

    key = _RULE_SEPARATOR_RE.sub("", str(value)).lower()
    if key.isdigit() and int(key) in _RULE_CODES:
        return _RULE_CODES[int(key)]
    if key not in _RULE_ALIASES:
        raise PayloadError("recurrence_rule must be one of: none, daily, weekly.")
    return _RULE_ALIASES[key]


def _parse_days_of_week(value: Any) -> int | None:
    # range checks belong to validation so an out-of-range mask is reported as such
    if value is None:
        return None
    if isinstance(value, WeekdaySet):
        return value.mask
    if isinstance(value, bool):
        raise PayloadError("days_of_week must be an integer mask or a list of weekday names.")
    if isinstance(value, int):
        return value
    if isinstance(value, (list, tuple)):
        try:
            return WeekdaySet.from_names(str(item) for item in value).mask
        except ValueError as error:
            raise PayloadError(str(error)) from error

    text = str(value).strip()
    if re.fullmatch(r"-?\d+", text):
        return int(text)
    try:
        return WeekdaySet.from_names(part for part in text.split(",") if part.strip()).mask
    except ValueError as error:
        raise PayloadError(str(error)) from error


def parse_reservation_payload(payload: Mapping[str, Any]) -> ReservationRequest:
    if not isinstance(payload, Mapping):
        raise PayloadError("payload must be a JSON object")

    resource = _lookup(payload, "resource_id")
    return ReservationRequest(
        resource_id=(str(resource).strip() if resource is not None else None),
        anchor_date=_parse_date(_lookup(payload, "anchor_date"), "anchor_date"),
        start_time=_parse_time(_lookup(payload, "start_time"), "start_time"),
        end_time=_parse_time(_lookup(payload, "end_time"), "end_time"),
        recurrence_rule=_parse_rule(_lookup(payload, "recurrence_rule")),
        recurrence_end_date=_parse_date(_lookup(payload, "recurrence_end_date"), "recurrence_end_date"),
        days_of_week=_parse_days_of_week(_lookup(payload, "days_of_week")),
    )


def parse_date_filter(text: str | None, field: str = "date") -> date | None:
    if text is None or not str(text).strip():
        return None
    return _parse_date(text, field)
