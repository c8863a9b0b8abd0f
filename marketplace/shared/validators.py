"""Shared validation utilities"""

import re
from typing import Optional

from ..config import MAX_SESSION_DURATION_HOURS, MIN_SESSION_DURATION_HOURS

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def validate_time_hhmm(value: Optional[str]) -> Optional[str]:
    """
    Validate a wall-clock time and normalize it to zero-padded HH:mm.

    Zero padding matters: stored times are compared as strings.

    Raises:
        ValueError: If the value is not a valid 24h time
    """
    if value is None:
        return value

    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:mm format")

    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{int(minutes):02d}"


def validate_duration(hours: Optional[float]) -> Optional[float]:
    """
    Validate a session duration in hours.

    Raises:
        ValueError: If the duration is outside the bookable range or too precise
    """
    if hours is None:
        return hours

    if hours < MIN_SESSION_DURATION_HOURS:
        raise ValueError(f"Minimum session duration is {MIN_SESSION_DURATION_HOURS} hours")
    if hours > MAX_SESSION_DURATION_HOURS:
        raise ValueError(f"Maximum session duration is {MAX_SESSION_DURATION_HOURS} hours")
    if round(hours, 1) != hours:
        raise ValueError("Duration supports at most one decimal place")

    return hours


def validate_rating(rating: int) -> int:
    if rating < 1 or rating > 5:
        raise ValueError("Rating must be between 1 and 5")
    return rating


def validate_time_slots(slots: list[dict]) -> list[dict]:
    """Normalize availability slots and make sure each one is a forward range"""
    normalized = []
    for slot in slots:
        start = validate_time_hhmm(slot["startTime"])
        end = validate_time_hhmm(slot["endTime"])
        if start >= end:
            raise ValueError(f"Slot {start}-{end} must end after it starts")
        normalized.append(
            {
                "startTime": start,
                "endTime": end,
                "isAvailable": slot.get("isAvailable", True),
            }
        )
    return sorted(normalized, key=lambda s: s["startTime"])
