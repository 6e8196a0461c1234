"""
Vendor API types, enums, and constants.

All Garmin Connect and Intervals.icu codes, mappings, and magic values live here.
"""

from enum import IntEnum


class GarminSport(IntEnum):
    """Garmin workout sport type ids."""
    RUNNING = 1
    CYCLING = 2
    SWIMMING = 4


class GarminStepType(IntEnum):
    """Garmin workout step type ids."""
    WARMUP = 1
    COOLDOWN = 2
    INTERVAL = 3
    RECOVERY = 4
    REST = 5
    REPEAT = 6


class GarminEndCondition(IntEnum):
    """Garmin step end condition ids."""
    LAP_BUTTON = 1
    TIME = 2
    DISTANCE = 3


class GarminTarget(IntEnum):
    """Garmin workout target type ids."""
    NO_TARGET = 1
    POWER_ZONE = 2
    CADENCE = 3
    HEART_RATE_ZONE = 4
    PACE_ZONE = 6
    SWIM_INSTRUCTION = 18


# Local sport name -> (id, key)
GARMIN_SPORTS = {
    "running": (GarminSport.RUNNING, "running"),
    "cycling": (GarminSport.CYCLING, "cycling"),
    "swimming": (GarminSport.SWIMMING, "swimming"),
}

# Local step type -> (id, key)
GARMIN_STEP_TYPES = {
    "warmup": (GarminStepType.WARMUP, "warmup"),
    "interval": (GarminStepType.INTERVAL, "interval"),
    "recovery": (GarminStepType.RECOVERY, "recovery"),
    "rest": (GarminStepType.REST, "rest"),
    "cooldown": (GarminStepType.COOLDOWN, "cooldown"),
    "repeat": (GarminStepType.REPEAT, "repeat"),
}

# Local duration type -> (id, key)
GARMIN_END_CONDITIONS = {
    "lap.button": (GarminEndCondition.LAP_BUTTON, "lap.button"),
    "time": (GarminEndCondition.TIME, "time"),
    "distance": (GarminEndCondition.DISTANCE, "distance"),
}

# Local target type -> (id, key)
GARMIN_TARGETS = {
    "no.target": (GarminTarget.NO_TARGET, "no.target"),
    "pace.zone": (GarminTarget.PACE_ZONE, "pace.zone"),
    "heart.rate.zone": (GarminTarget.HEART_RATE_ZONE, "heart.rate.zone"),
    "power.zone": (GarminTarget.POWER_ZONE, "power.zone"),
    "cadence": (GarminTarget.CADENCE, "cadence"),
}

SWIM_INSTRUCTION_TARGET = (GarminTarget.SWIM_INSTRUCTION, "swim.instruction")

# Stroke key -> strokeTypeId (displayOrder mirrors the id)
GARMIN_STROKES = {
    "free": 6,
    "backstroke": 2,
    "breaststroke": 3,
    "fly": 5,
}

DEFAULT_STROKE = "free"

METER_UNIT = {"unitId": 1, "unitKey": "meter", "factor": 100}

LAP_SWIMMING = "LAP_SWIMMING"

DEFAULT_WORKOUT_DESCRIPTION = "Created by workout-sync"

# Intervals.icu sport types
INTERVALS_SPORTS = {
    "running": "Run",
    "cycling": "Ride",
    "swimming": "Swim",
}

INTERVALS_TYPE_TO_LOCAL = {
    "Run": "running",
    "Ride": "cycling",
    "Swim": "swimming",
    "Walk": "walking",
    "Hike": "hiking",
    "WeightTraining": "strength_training",
    "VirtualRide": "virtual_ride",
    "VirtualRun": "virtual_run",
}

INTERVALS_WORKOUT_CATEGORY = "WORKOUT"
