"""
Workout translation between the vendor-neutral model and vendor formats.

    garmin_steps           structured step tree -> Garmin workout DTO
    intervals_description  structured step tree -> Intervals.icu text
"""

from workout_sync.converters.garmin_steps import to_garmin_workout, pace_to_speed_range
from workout_sync.converters.intervals_description import to_description

__all__ = ["to_garmin_workout", "pace_to_speed_range", "to_description"]
