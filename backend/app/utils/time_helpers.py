from datetime import date, datetime, time, timezone
from typing import List, Tuple, Union


def time_to_string(t: time) -> str:
    """Always return HH:MM format"""
    return t.strftime("%H:%M")


def string_to_time(time_str: str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' into a time."""
    normalized = time_str.strip()
    if len(normalized) == 5:
        normalized += ":00"
    return datetime.strptime(normalized, "%H:%M:%S").time()


def parse_iso_date(value: Union[str, date]) -> date:
    """Parse a calendar date ('YYYY-MM-DD'); datetimes are truncated to their UTC date."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if "T" in text:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()
    return date.fromisoformat(text)


def day_of_week(day: date) -> int:
    """
    Weekday number with Sunday = 0 ... Saturday = 6.

    Computed from the calendar date alone, so the host's local timezone
    never shifts the result.
    """
    return day.isoweekday() % 7


def hourly_slots(start: time, end: time) -> List[Tuple[str, str]]:
    """
    Whole-hour slots covering a window, as (start, end) 'HH:MM' strings.

    Slots run from the window's start hour up to, but excluding, its end hour.
    """
    return [(f"{hour:02d}:00", f"{hour + 1:02d}:00") for hour in range(start.hour, end.hour)]
