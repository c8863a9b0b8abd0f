"""Wall-clock helpers for HH:mm session times"""

from datetime import date

from .constants import DayOfWeek

# date.weekday() order: Monday == 0
_WEEKDAYS = [
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
    DayOfWeek.SUNDAY,
]


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def calculate_end_time(start_time: str, duration_hours: float) -> str:
    """
    Add a duration to a start time.

    Minutes wrap at 24h, so a span past midnight yields an end time that is
    earlier than the start time. Callers decide whether that is acceptable.
    """
    end_minutes = time_to_minutes(start_time) + round(duration_hours * 60)
    end_hours = (end_minutes // 60) % 24
    end_mins = end_minutes % 60
    return f"{end_hours:02d}:{end_mins:02d}"


def crosses_midnight(start_time: str, duration_hours: float) -> bool:
    """True when the session reaches 24:00; the last valid end time is 23:59"""
    return time_to_minutes(start_time) + round(duration_hours * 60) >= 24 * 60


def day_of_week_for(value: date) -> DayOfWeek:
    return _WEEKDAYS[value.weekday()]


def ranges_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open interval overlap on zero-padded HH:mm strings"""
    return start_a < end_b and end_a > start_b
