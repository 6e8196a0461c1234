"""
Render a structured workout as Intervals.icu workout-builder text.

Intervals.icu parses plain text into steps: section headers ("Warmup",
"Main set 4x", "Cooldown") followed by "- <duration> <target>" lines,
sections separated by a blank line.
"""

from typing import List, Optional

from workout_sync.model import Workout, WorkoutStep
from workout_sync.utils import format_number, format_pace

REST_STEP_TYPES = ("recovery", "rest")


def to_description(
    workout: Workout,
    max_heart_rate: Optional[float] = None,
    default_repeat_count: int = 2,
) -> str:
    """Build the Intervals.icu description for a workout.

    Heart-rate targets are rendered as percent of ``max_heart_rate`` when it
    is known, otherwise as absolute bpm placed before the duration.
    """
    parts = []
    if workout.description:
        parts.append(workout.description)

    for step in workout.steps:
        if step.step_type == "warmup":
            parts.append("\n".join(["Warmup", step_line(step, max_heart_rate)]))
        elif step.step_type == "cooldown":
            parts.append("\n".join(["Cooldown", step_line(step, max_heart_rate)]))
        elif step.is_repeat and step.child_steps:
            count = step.repeat_count or default_repeat_count
            section = [f"Main set {count}x"]
            section.extend(_child_lines(step.child_steps, max_heart_rate))
            parts.append("\n".join(section))
        else:
            parts.append(step_line(step, max_heart_rate))

    return "\n\n".join(parts)


def format_duration(duration_type: str, duration_value: Optional[float]) -> str:
    """'1s' for lap button, '5m' / '30s' / '5m30s' for time, '2km' / '400mtr' for distance."""
    if duration_type == "lap.button":
        return "1s"
    if not duration_value:
        return ""
    if duration_type == "time":
        minutes = int(duration_value // 60)
        seconds = duration_value % 60
        if minutes and seconds:
            return f"{minutes}m{format_number(seconds)}s"
        if minutes:
            return f"{minutes}m"
        return f"{format_number(seconds)}s"
    if duration_type == "distance":
        if duration_value >= 1000:
            km = duration_value / 1000
            if float(km).is_integer():
                return f"{int(km)}km"
            return f"{km:.2f}".rstrip("0").rstrip(".") + "km"
        return f"{format_number(duration_value)}mtr"
    return ""


def format_target(step: WorkoutStep, max_heart_rate: Optional[float] = None) -> str:
    """Target suffix for a step line; empty when the step has no complete target."""
    low, high = step.target_value_low, step.target_value_high
    if step.target_type == "no.target" or low is None or high is None:
        return ""

    if step.target_type == "heart.rate.zone":
        if max_heart_rate and max_heart_rate > 0:
            pct_low = round(low / max_heart_rate * 100)
            pct_high = round(high / max_heart_rate * 100)
            if pct_low == pct_high:
                return f" {pct_high}% HR"
            return f" {pct_low}-{pct_high}% HR"
        if low == high:
            return f"HR {format_number(high)}"
        return f"HR {format_number(low)}-{format_number(high)}"
    if step.target_type == "pace.zone":
        return f" {format_pace(low)}-{format_pace(high)}/km"
    if step.target_type == "power.zone":
        return f" {format_number(low)}-{format_number(high)}w"
    if step.target_type == "cadence":
        return f" {format_number(low)}-{format_number(high)}rpm"
    return ""


def step_line(step: WorkoutStep, max_heart_rate: Optional[float] = None) -> str:
    duration = format_duration(step.duration_type, step.duration_value)
    target = format_target(step, max_heart_rate)

    if step.step_type in REST_STEP_TYPES and not target:
        return f"- {duration} rest"
    # Absolute HR reads "HR 140-150 10m" in the builder syntax.
    if step.target_type == "heart.rate.zone" and not max_heart_rate and target:
        return f"- {target} {duration}".strip()
    return f"- {duration}{target}".strip()


def _child_lines(steps: List[WorkoutStep], max_heart_rate: Optional[float]) -> List[str]:
    # Intervals.icu has no nested repeats; inner repeat children are inlined.
    lines = []
    for step in steps:
        if step.is_repeat:
            lines.extend(_child_lines(step.child_steps, max_heart_rate))
        else:
            lines.append(step_line(step, max_heart_rate))
    return lines
