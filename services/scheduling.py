"""Booking time helpers.

Datetimes are stored naive UTC. Client-supplied instants are ISO 8601; a
value without an offset is read as UTC.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

MAX_SCHEDULED_BOOKINGS = 104


class ScheduleError(ValueError):
    """Raised for malformed schedule input; the message is client-safe."""


def parse_instant(value: object, field: str) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise ScheduleError(f"{field} must be an ISO 8601 datetime.")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ScheduleError(f"{field} must be an ISO 8601 datetime.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, TypeError, ValueError):
        raise ScheduleError(f"Unknown timezone: {name}")


def weekly_slots(
    start_date: str,
    day_of_week: int,
    local_time: str,
    count: int,
    duration_minutes: int,
    timezone: str,
) -> list[tuple[datetime, datetime]]:
    """Return ``count`` weekly (start, end) pairs in naive UTC.

    ``day_of_week`` counts from Sunday = 0. The first slot falls on the first
    matching weekday on or after ``start_date``; ``local_time`` is ``HH:MM`` in
    ``timezone``, so the UTC hour follows daylight-saving changes.
    """

    try:
        first_day = date.fromisoformat(start_date)
    except (TypeError, ValueError):
        raise ScheduleError("startDate must be a YYYY-MM-DD date.")
    if not 0 <= day_of_week <= 6:
        raise ScheduleError("bookingDayOfWeek must be between 0 and 6.")
    if not 1 <= count <= MAX_SCHEDULED_BOOKINGS:
        raise ScheduleError(
            f"numberOfBookings must be between 1 and {MAX_SCHEDULED_BOOKINGS}."
        )
    try:
        at = time.fromisoformat(local_time)
    except (TypeError, ValueError):
        raise ScheduleError("bookingTime must be HH:MM.")

    zone = _zone(timezone)
    target_weekday = (day_of_week - 1) % 7
    first_day += timedelta(days=(target_weekday - first_day.weekday()) % 7)
    length = timedelta(minutes=duration_minutes)

    slots = []
    for week in range(count):
        local = datetime.combine(first_day + timedelta(weeks=week), at, tzinfo=zone)
        start = local.astimezone(UTC).replace(tzinfo=None)
        slots.append((start, start + length))
    return slots
