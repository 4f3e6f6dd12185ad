"""
Helpers for the HHMM integer times used by resource operating hours.
"""

from datetime import date, time

from reservations.models.enums import WEEKDAYS


def to_hhmm(value: time) -> int:
    """time(9, 30) -> 930"""
    return value.hour * 100 + value.minute


def from_hhmm(value: int) -> time:
    return time(value // 100, value % 100)


def hhmm_to_minutes(value: int) -> int:
    return (value // 100) * 60 + value % 100


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def format_hhmm(value: int) -> str:
    return f"{value // 100:02d}:{value % 100:02d}"


def weekday_name(day: date) -> str:
    # Locale independent, unlike strftime("%A")
    return WEEKDAYS[day.weekday()]


def normalize_weekday(name: str) -> str:
    """'monday ' -> 'Monday'; raises ValueError for anything else."""
    cleaned = name.strip().capitalize()
    if cleaned not in WEEKDAYS:
        raise ValueError(f"Unknown weekday: {name!r}")
    return cleaned
