"""
Domain types for the synchronization engine.

Vendor-neutral workout model (what the workout producer hands us) and the
normalized read/result models every vendor operation returns.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import List, Optional

from workout_sync.utils import parse_date


def normalize_key(value: Optional[str]) -> Optional[str]:
    """Accept 'lap-button', 'lap_button' and 'lap.button' alike."""
    if value is None:
        return None
    return str(value).strip().lower().replace("-", ".").replace("_", ".")


@dataclass
class WorkoutStep:
    """A single step of a structured workout.

    Repeat steps carry ``repeat_count`` and ``child_steps``; every other step
    type is a leaf. Units: seconds for time, meters for distance,
    seconds-per-km for pace, bpm, watts, rpm.
    """
    step_type: str
    duration_type: str = "lap.button"
    duration_value: Optional[float] = None
    target_type: str = "no.target"
    target_value_low: Optional[float] = None
    target_value_high: Optional[float] = None
    repeat_count: Optional[int] = None
    child_steps: List["WorkoutStep"] = field(default_factory=list)
    stroke_type: Optional[str] = None
    intensity: Optional[str] = None

    @property
    def is_repeat(self) -> bool:
        return self.step_type == "repeat"

    @classmethod
    def from_dict(cls, d: dict) -> "WorkoutStep":
        """Create a step from the producer's camelCase dict."""
        children = d.get("childSteps") or d.get("child_steps") or []
        return cls(
            step_type=str(d.get("stepType", d.get("step_type", "interval"))).lower(),
            duration_type=normalize_key(d.get("durationType", d.get("duration_type"))) or "lap.button",
            duration_value=d.get("durationValue", d.get("duration_value")),
            target_type=normalize_key(d.get("targetType", d.get("target_type"))) or "no.target",
            target_value_low=d.get("targetValueLow", d.get("target_value_low")),
            target_value_high=d.get("targetValueHigh", d.get("target_value_high")),
            repeat_count=d.get("repeatCount", d.get("repeat_count")),
            child_steps=[cls.from_dict(c) for c in children],
            stroke_type=d.get("strokeType", d.get("stroke_type")),
            intensity=d.get("intensity"),
        )

    def validate(self):
        """Validate the structural shape of the step (and its children).

        Raises:
            ValueError: If the step is malformed.
        """
        if self.is_repeat:
            if not self.child_steps:
                raise ValueError("Repeat step requires at least one child step")
            if self.repeat_count is not None and self.repeat_count < 1:
                raise ValueError("repeatCount must be >= 1")
            for child in self.child_steps:
                child.validate()
            return

        if self.child_steps:
            raise ValueError(f"Step type '{self.step_type}' cannot have child steps")
        if self.duration_value is not None and self.duration_value < 0:
            raise ValueError("durationValue must be >= 0")


@dataclass
class Workout:
    """A vendor-neutral workout plus its per-vendor sync flags."""
    name: str
    sport_type: str
    steps: List[WorkoutStep]
    id: Optional[str] = None
    user_id: Optional[str] = None
    description: str = ""
    scheduled_date: Optional[date] = None
    sent_to_garmin: bool = False
    garmin_workout_id: Optional[str] = None
    sent_to_intervals: bool = False
    intervals_event_id: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Workout":
        """Create a workout from the producer's camelCase dict."""
        garmin_id = d.get("garminWorkoutId")
        intervals_id = d.get("intervalsEventId")
        return cls(
            id=d.get("id"),
            user_id=d.get("userId"),
            name=d.get("name", ""),
            description=d.get("description") or "",
            sport_type=str(d.get("sportType", "running")).lower(),
            steps=[WorkoutStep.from_dict(s) for s in d.get("steps", [])],
            scheduled_date=parse_date(d.get("scheduledDate")),
            sent_to_garmin=bool(d.get("sentToGarmin", False)),
            garmin_workout_id=str(garmin_id) if garmin_id is not None else None,
            sent_to_intervals=bool(d.get("sentToIntervals", False)),
            intervals_event_id=str(intervals_id) if intervals_id is not None else None,
        )

    def validate(self):
        """Validate shape only; training-load rules belong to the producer.

        Raises:
            ValueError: If the workout is malformed.
        """
        if not self.name:
            raise ValueError("Workout name is required")
        if not self.steps:
            raise ValueError("Workout requires at least one step")
        for step in self.steps:
            step.validate()
        if not self.sync_flags_consistent():
            raise ValueError("Workout marked as sent without a vendor workout id")

    def sync_flags_consistent(self) -> bool:
        if self.sent_to_garmin and self.garmin_workout_id is None:
            return False
        if self.sent_to_intervals and self.intervals_event_id is None:
            return False
        return True


@dataclass
class Activity:
    """Completed activity, normalized across vendors."""
    activity_id: int
    name: str
    activity_type: str
    distance: float
    duration: float
    start_time_local: str
    average_hr: Optional[float] = None
    max_hr: Optional[float] = None
    average_pace: Optional[float] = None
    start_latitude: Optional[float] = None
    start_longitude: Optional[float] = None
    location_name: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DailyStats:
    """Daily health metrics; each field is independently optional."""
    stress_level: Optional[int] = None
    body_battery: Optional[int] = None
    steps: Optional[int] = None
    steps_yesterday: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PushResult:
    """Outcome of push (+ optional schedule). The two outcomes are independent."""
    vendor_workout_id: Optional[str]
    scheduled: bool = False
    scheduled_date: Optional[str] = None
    schedule_error: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "vendor_workout_id": self.vendor_workout_id,
            "scheduled": self.scheduled,
        }
        if self.scheduled_date:
            result["scheduled_date"] = self.scheduled_date
        if self.schedule_error:
            result["schedule_error"] = self.schedule_error
        return result


@dataclass
class RescheduleResult:
    scheduled_date: str

    def to_dict(self) -> dict:
        return {"scheduled_date": self.scheduled_date}
