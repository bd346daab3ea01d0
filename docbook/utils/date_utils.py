# docbook/utils/date_utils.py

import re
from datetime import date, datetime
from typing import Optional, Union

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_time(value: str) -> bool:
    """True for 24h ``HH:MM`` strings."""
    return bool(value) and bool(_TIME_PATTERN.match(value))


def weekday_name(day: Union[str, date]) -> str:
    if isinstance(day, str):
        day = parse_date(day)
    return WEEKDAYS[day.weekday()]


def format_date(date_obj: date, format_string: str = '%Y-%m-%d') -> str:
    """Format date object to string"""
    return date_obj.strftime(format_string)


def parse_date(date_string: str, format_string: str = '%Y-%m-%d') -> date:
    """Parse date string to date object"""
    return datetime.strptime(date_string, format_string).date()


def humanize_date(value: Union[str, date]) -> str:
    """'2025-06-15' -> 'Sunday, June 15, 2025'"""
    if isinstance(value, str):
        value = parse_date(value)
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def slot_within(slot: str, start: str, end: str) -> Optional[bool]:
    """
    Whether an ``HH:MM`` slot falls in ``[start, end)``.

    Returns None when any of the values is not an ``HH:MM`` string, since
    free-form slot labels cannot be compared against a schedule.
    """
    if not (is_valid_time(slot) and is_valid_time(start) and is_valid_time(end)):
        return None
    # Zero-padded 24h strings compare in time order
    return start <= slot < end
