"""
Calendar resolution: find the vendor entry to mutate before mutating it.

The push APIs never return schedule-entry ids, so reschedule/delete scan the
calendar feed. Resolution order:

1. exact id + date match
2. id-only match
3. same category + same date (Intervals.icu only)

A step that matches more than one entry is ambiguous and resolves to nothing;
the caller reports NotFound instead of guessing.
"""

from datetime import date
from typing import Iterable, List, Optional

from workout_sync.sdk.types import INTERVALS_WORKOUT_CATEGORY
from workout_sync.utils import date_part


def _only(matches: List[dict]) -> Optional[dict]:
    return matches[0] if len(matches) == 1 else None


def garmin_workout_entries(feeds: Iterable[dict]) -> List[dict]:
    """Flatten calendar feeds into their workout items, preserving order."""
    items = []
    for feed in feeds:
        for item in (feed or {}).get("calendarItems") or []:
            if item.get("itemType") == "workout":
                items.append(item)
    return items


def find_garmin_schedule(
    feeds: Iterable[dict],
    workout_id: str,
    current_date: Optional[date] = None,
) -> Optional[dict]:
    """
    Find the schedule entry binding ``workout_id`` to a date.

    Args:
        feeds: Garmin calendar feeds ({calendarItems: [...]}) in scan order
        workout_id: Garmin workout id (the library workout, not the entry)
        current_date: Date the occurrence is on, if known

    Returns:
        Calendar item ({id, workoutId, date, ...}), or None when missing or ambiguous
    """
    candidates = [
        item for item in garmin_workout_entries(feeds)
        if str(item.get("workoutId")) == str(workout_id) and item.get("id")
    ]
    if current_date is not None:
        on_day = [item for item in candidates if item.get("date") == current_date.isoformat()]
        if on_day:
            return _only(on_day)
    return _only(candidates)


def find_intervals_event(
    events: Iterable[dict],
    event_id: str,
    current_date: Optional[date] = None,
) -> Optional[dict]:
    """
    Find the Intervals.icu workout event to move.

    Falls back to "any workout on current_date" when the id is unknown to the
    caller (e.g. a stale or producer-side id).

    Returns:
        Event dict or None
    """
    workouts = [ev for ev in events if ev.get("category") == INTERVALS_WORKOUT_CATEGORY]
    day = current_date.isoformat() if current_date is not None else None

    by_id = [ev for ev in workouts if str(ev.get("id")) == str(event_id)]
    if day is not None:
        on_day = [ev for ev in by_id if date_part(ev.get("start_date_local")) == day]
        if on_day:
            return _only(on_day)
    if by_id:
        return _only(by_id)

    if day is None:
        return None
    return _only([ev for ev in workouts if date_part(ev.get("start_date_local")) == day])
