import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Iterable, List

from booking_availability.models import Activity, DaySchedule, Period, PeriodDraft

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"\d{2}:\d{2}")
WEEKDAYS = range(1, 8)


@dataclass
class ValidationResult:
    has_name: bool = True
    has_valid_dates: bool = True
    has_activity: bool = False
    has_active_days: bool = False
    has_valid_schedule: bool = True
    errors: List[str] = field(default_factory=list)
    period: Period | None = None

    @property
    def is_valid(self) -> bool:
        return (
            self.has_name
            and self.has_valid_dates
            and self.has_activity
            and self.has_active_days
            and self.has_valid_schedule
        )


def default_week_schedule() -> List[DaySchedule]:
    """Seven closed days, 09:00-18:00, the template new periods start from."""
    return [DaySchedule(day_of_week=day, start_time="09:00", end_time="18:00", is_active=False) for day in WEEKDAYS]


def _parse_clock(value: str | None) -> time | None:
    """Parses a strict HH:MM string, returns None when it is not one."""
    if not value or not TIME_PATTERN.fullmatch(value):
        return None
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        return None


def _check_dates(draft: PeriodDraft, result: ValidationResult):
    if draft.start_date is None or draft.end_date is None:
        result.has_valid_dates = False
        result.errors.append("Start date and end date are required")
    elif draft.start_date > draft.end_date:
        result.has_valid_dates = False
        result.errors.append("Start date must not be after end date")


def _check_activities(draft: PeriodDraft, known_ids: set, result: ValidationResult):
    if not draft.activities:
        result.errors.append("At least one activity must be selected")
        return

    unknown = [activity_id for activity_id in draft.activities if activity_id not in known_ids]
    if unknown:
        result.errors.append(f"Unknown activities: {', '.join(unknown)}")
        return

    result.has_activity = True


def _check_day(day: DaySchedule, result: ValidationResult):
    opening = _parse_clock(day.start_time)
    closing = _parse_clock(day.end_time)

    if opening is None or closing is None:
        result.has_valid_schedule = False
        result.errors.append(f"Invalid opening hours for day {day.day_of_week}")
        return
    if opening >= closing:
        result.has_valid_schedule = False
        result.errors.append(f"Opening time must be before closing time for day {day.day_of_week}")
        return

    if not day.has_break:
        return

    break_start = _parse_clock(day.break_start_time)
    break_end = _parse_clock(day.break_end_time)
    if break_start is None or break_end is None:
        result.has_valid_schedule = False
        result.errors.append(f"Invalid break hours for day {day.day_of_week}")
    elif break_start >= break_end:
        result.has_valid_schedule = False
        result.errors.append(f"Break start must be before break end for day {day.day_of_week}")
    elif break_start < opening or break_end > closing:
        result.has_valid_schedule = False
        result.errors.append(f"Break must lie within opening hours for day {day.day_of_week}")


def _check_schedule(draft: PeriodDraft, result: ValidationResult):
    days = sorted(entry.day_of_week for entry in draft.schedule)
    if days != list(WEEKDAYS):
        result.has_valid_schedule = False
        result.errors.append("Schedule must define each of the seven days of the week exactly once")
        return

    result.has_active_days = any(entry.is_active for entry in draft.schedule)
    if not result.has_active_days:
        result.errors.append("At least one day must be active")

    for entry in draft.schedule:
        if entry.is_active:
            _check_day(entry, result)


def validate_period(draft: PeriodDraft, activities: Iterable[Activity]) -> ValidationResult:
    """Validates a period draft against the known activities.

    Never raises. On success the result carries the validated Period (with a
    fresh id when the draft had none); otherwise `period` is None and `errors`
    lists every rule the draft breaks.
    """
    result = ValidationResult()

    if not draft.name or not draft.name.strip():
        result.has_name = False
        result.errors.append("Period name is required")

    _check_dates(draft, result)
    _check_activities(draft, {activity.id for activity in activities}, result)
    _check_schedule(draft, result)

    if not result.is_valid:
        logger.debug(f"Period draft '{draft.name}' rejected: {result.errors}")
        return result

    data = draft.model_dump()
    data["id"] = draft.id or str(uuid.uuid4())
    result.period = Period(**data)
    return result
