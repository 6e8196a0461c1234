"""
Step translation from the domain model to the Garmin workout format.

The hard part: recursive step trees become nested ExecutableStepDTO /
RepeatGroupDTO structures, pace (sec/km) becomes speed (m/s) with the bounds
swapped, and swimming needs its own target, stroke and pool metadata.

Pure and total: unknown sport/step/target values degrade to running /
interval / no.target instead of raising.
"""

import logging
from typing import List, Optional, Tuple

from workout_sync.model import Workout, WorkoutStep
from workout_sync.sdk.types import (
    DEFAULT_STROKE,
    DEFAULT_WORKOUT_DESCRIPTION,
    GARMIN_END_CONDITIONS,
    GARMIN_SPORTS,
    GARMIN_STEP_TYPES,
    GARMIN_STROKES,
    GARMIN_TARGETS,
    LAP_SWIMMING,
    METER_UNIT,
    SWIM_INSTRUCTION_TARGET,
    GarminStepType,
)

logger = logging.getLogger(__name__)


# ── Public API ──────────────────────────────────────────────────────────


def to_garmin_workout(
    workout: Workout,
    pool_length: int = 25,
    default_repeat_count: int = 2,
) -> dict:
    """Convert a domain workout to a Garmin workout payload.

    Args:
        workout: Vendor-neutral workout
        pool_length: Pool length in meters, used for swimming only
        default_repeat_count: Iterations for repeat steps without a count

    Returns:
        Dict ready for POST workout-service/workout
    """
    sport_key = workout.sport_type if workout.sport_type in GARMIN_SPORTS else "running"
    sport_id, sport_key = GARMIN_SPORTS[sport_key]
    sport = {"sportTypeId": int(sport_id), "sportTypeKey": sport_key}
    is_swimming = sport_key == "swimming"

    builder = _StepBuilder(is_swimming, default_repeat_count)

    return {
        "workoutName": workout.name,
        "description": workout.description or DEFAULT_WORKOUT_DESCRIPTION,
        "sportType": sport,
        "subSportType": LAP_SWIMMING if is_swimming else None,
        "poolLength": pool_length if is_swimming else None,
        "poolLengthUnit": dict(METER_UNIT) if is_swimming else None,
        "workoutSegments": [{
            "segmentOrder": 1,
            "sportType": dict(sport),
            "workoutSteps": builder.build(workout.steps),
        }],
    }


def pace_to_speed_range(
    low: Optional[float], high: Optional[float]
) -> Tuple[Optional[float], Optional[float]]:
    """Convert a sec/km pace range to an ascending m/s speed range.

    The faster pace (smaller sec/km) is the higher speed, so the bounds swap:
    speed_low = 1000 / pace_high, speed_high = 1000 / pace_low. A missing or
    zero bound takes the other bound's value.
    """
    speeds = [1000 / v for v in (low, high) if v]
    if not speeds:
        return None, None
    return min(speeds), max(speeds)


# ── Internal helpers ────────────────────────────────────────────────────


class _StepBuilder:
    """Builds Garmin step DTOs with a workout-wide running stepOrder."""

    def __init__(self, is_swimming: bool, default_repeat_count: int):
        self.is_swimming = is_swimming
        self.default_repeat_count = default_repeat_count
        self.order = 0

    def build(self, steps: List[WorkoutStep]) -> List[dict]:
        return [self._build_step(step) for step in steps]

    def _next_order(self) -> int:
        self.order += 1
        return self.order

    def _build_step(self, step: WorkoutStep) -> dict:
        if step.is_repeat and step.child_steps:
            return self._build_repeat(step)
        return self._build_executable(step)

    def _build_repeat(self, step: WorkoutStep) -> dict:
        iterations = step.repeat_count or self.default_repeat_count
        if not step.repeat_count:
            logger.info("[Garmin] Repeat step without repeatCount, using %d", iterations)
        group = {
            "type": "RepeatGroupDTO",
            "stepId": None,
            "stepOrder": self._next_order(),
            "stepType": _step_type(GarminStepType.REPEAT, "repeat"),
            "numberOfIterations": iterations,
            "smartRepeat": False,
            "childStepId": None,
            "endCondition": None,
            "endConditionValue": None,
        }
        group["workoutSteps"] = self.build(step.child_steps)
        return group

    def _build_executable(self, step: WorkoutStep) -> dict:
        # A childless repeat has nothing to repeat; send it as a plain interval.
        step_key = step.step_type if step.step_type in GARMIN_STEP_TYPES and not step.is_repeat else "interval"
        step_id, step_key = GARMIN_STEP_TYPES[step_key]

        duration_key = step.duration_type if step.duration_type in GARMIN_END_CONDITIONS else "lap.button"
        condition_id, condition_key = GARMIN_END_CONDITIONS[duration_key]

        target_key = step.target_type if step.target_type in GARMIN_TARGETS else "no.target"
        has_target = target_key != "no.target"

        if self.is_swimming and not has_target:
            target_id, target_key_out = SWIM_INSTRUCTION_TARGET
        else:
            target_id, target_key_out = GARMIN_TARGETS[target_key]

        value_one, value_two = None, None
        if has_target:
            if target_key == "pace.zone":
                value_one, value_two = pace_to_speed_range(step.target_value_low, step.target_value_high)
            else:
                value_one, value_two = step.target_value_low, step.target_value_high

        dto = _executable_defaults()
        dto.update({
            "stepOrder": self._next_order(),
            "stepType": _step_type(step_id, step_key),
            "endCondition": {
                "conditionTypeId": int(condition_id),
                "conditionTypeKey": condition_key,
                "displayOrder": int(condition_id),
                "displayable": True,
            },
            "endConditionValue": step.duration_value if duration_key != "lap.button" else None,
            "targetType": {
                "workoutTargetTypeId": int(target_id),
                "workoutTargetTypeKey": target_key_out,
                "displayOrder": int(target_id),
            },
            "targetValueOne": value_one,
            "targetValueTwo": value_two,
        })

        if self.is_swimming:
            stroke_key = step.stroke_type if step.stroke_type in GARMIN_STROKES else DEFAULT_STROKE
            stroke_id = GARMIN_STROKES[stroke_key]
            dto["strokeType"] = {
                "strokeTypeId": stroke_id,
                "strokeTypeKey": stroke_key,
                "displayOrder": stroke_id,
            }
            if duration_key == "distance":
                dto["preferredEndConditionUnit"] = dict(METER_UNIT)

        return dto


def _step_type(step_id: int, step_key: str) -> dict:
    return {"stepTypeId": int(step_id), "stepTypeKey": step_key, "displayOrder": int(step_id)}


def _executable_defaults() -> dict:
    """Base ExecutableStepDTO; Garmin rejects missing keys more often than nulls."""
    return {
        "type": "ExecutableStepDTO",
        "stepId": None,
        "stepOrder": 0,
        "stepType": None,
        "childStepId": None,
        "description": None,
        "endCondition": None,
        "endConditionValue": None,
        "preferredEndConditionUnit": None,
        "endConditionCompare": None,
        "endConditionZone": None,
        "targetType": None,
        "targetValueOne": None,
        "targetValueTwo": None,
        "targetValueUnit": None,
        "zoneNumber": None,
        "secondaryTargetType": None,
        "secondaryTargetValueOne": None,
        "secondaryTargetValueTwo": None,
        "secondaryTargetValueUnit": None,
        "secondaryZoneNumber": None,
        "strokeType": {"strokeTypeId": 0, "strokeTypeKey": None, "displayOrder": 0},
        "equipmentType": {"equipmentTypeId": 0, "equipmentTypeKey": None, "displayOrder": 0},
        "category": None,
        "exerciseName": None,
        "workoutProvider": None,
        "providerExerciseSourceId": None,
        "weightValue": None,
        "weightUnit": None,
    }
