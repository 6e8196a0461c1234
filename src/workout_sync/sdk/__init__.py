"""
Vendor Low-Level SDKs.

Thin typed wrappers over the Garmin Connect and Intervals.icu HTTP APIs.
Each function maps 1:1 to a vendor endpoint.
"""

from workout_sync.sdk.intervals import IntervalsClient
from workout_sync.sdk.types import (
    GarminSport,
    GarminStepType,
    GarminEndCondition,
    GarminTarget,
    INTERVALS_SPORTS,
    INTERVALS_TYPE_TO_LOCAL,
)

__all__ = [
    "IntervalsClient",
    "GarminSport",
    "GarminStepType",
    "GarminEndCondition",
    "GarminTarget",
    "INTERVALS_SPORTS",
    "INTERVALS_TYPE_TO_LOCAL",
]
