"""
Shared utility functions.

Date conversions and formatting helpers used across vendor modules.
"""

from datetime import date, datetime
from typing import Optional, Tuple, Union


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse 'YYYY-MM-DD' (optionally followed by 'T...') into a date.

    Args:
        value: Date string, date/datetime, or None

    Returns:
        date, or None if value is empty
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(date_part(str(value)))


def date_part(value: Optional[str]) -> str:
    """Strip the time-of-day from an ISO timestamp ('2026-03-01T00:00:00' -> '2026-03-01')."""
    if not value:
        return ""
    return value.split("T")[0]


def next_month(year: int, month: int) -> Tuple[int, int]:
    """Next (year, month) for a ZERO-based month (Garmin calendar convention)."""
    if month == 11:
        return year + 1, 0
    return year, month + 1


def speed_to_pace(speed: Optional[float]) -> Optional[float]:
    """Convert meters/second to seconds/km.

    Returns:
        Pace in seconds per km, or None if speed is missing or zero
    """
    if not speed:
        return None
    return 1000 / speed


def format_pace(sec_per_km: float) -> str:
    """Format seconds/km as 'M:SS'."""
    sec = int(sec_per_km)
    return f"{sec // 60}:{sec % 60:02d}"


def format_number(value: float) -> str:
    """Render 5.0 as '5' and 2.5 as '2.5'."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
