"""Schedule-based availability of activities.

Everything here is a pure function of its arguments: periods are read as an
immutable snapshot and never modified, and no state is kept between calls.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Tuple

from booking_availability import config
from booking_availability.models import DaySchedule, Period, TimeSlot

logger = logging.getLogger(__name__)

TIME_FORMAT = "%H:%M"

ScheduleMatch = Tuple[Period, DaySchedule]


def parse_time(value: str) -> time:
    """Parses an HH:MM string. Raises ValueError on malformed input."""
    return datetime.strptime(value, TIME_FORMAT).time()


def _as_date(day: date) -> date:
    # datetime is a subclass of date; drop the time-of-day
    if isinstance(day, datetime):
        return day.date()
    return day


def _opening_hours(day_schedule: DaySchedule) -> Tuple[time, time] | None:
    try:
        return parse_time(day_schedule.start_time), parse_time(day_schedule.end_time)
    except (TypeError, ValueError):
        logger.debug(f"Unreadable opening hours for day {day_schedule.day_of_week}, treating as closed")
        return None


def _break_window(day_schedule: DaySchedule) -> Tuple[time, time] | None:
    if not day_schedule.has_break:
        return None
    try:
        return parse_time(day_schedule.break_start_time), parse_time(day_schedule.break_end_time)
    except (TypeError, ValueError):
        logger.debug(f"Unreadable break window for day {day_schedule.day_of_week}, ignoring it")
        return None


def schedule_for_date(day: date, activity_id: str, periods: Iterable[Period]) -> List[ScheduleMatch]:
    """Returns (period, day schedule) pairs of the periods that open the activity on a date.

    A period matches when it is active, lists the activity, contains the date
    in its inclusive [start_date, end_date] range, and has an active schedule
    entry for the date's ISO weekday (Monday = 1 ... Sunday = 7). Input order
    is preserved. Periods with a missing weekday entry, unreadable opening
    hours or an inverted date range simply never match.
    """
    target = _as_date(day)
    weekday = target.isoweekday()

    matches = []
    for period in periods:
        if not period.is_active or activity_id not in period.activities:
            continue
        if not (period.start_date <= target <= period.end_date):
            continue

        day_schedule = period.day_schedule(weekday)
        if day_schedule is None or not day_schedule.is_active:
            continue
        if _opening_hours(day_schedule) is None:
            continue

        matches.append((period, day_schedule))

    logger.debug(f"{len(matches)} period(s) cover {target.isoformat()} for '{activity_id}'")
    return matches


def periods_covering_date(day: date, activity_id: str, periods: Iterable[Period]) -> List[Period]:
    """Returns the periods that open the activity on the given date, in input order."""
    return [period for period, _ in schedule_for_date(day, activity_id, periods)]


def is_open_during(day_schedule: DaySchedule, at: time) -> bool:
    """Checks `at` against [start_time, end_time) minus [break_start_time, break_end_time)."""
    hours = _opening_hours(day_schedule)
    if hours is None:
        return False

    opening, closing = hours
    if not (opening <= at < closing):
        return False

    break_window = _break_window(day_schedule)
    if break_window is not None:
        break_start, break_end = break_window
        if break_start <= at < break_end:
            return False

    return True


def is_open_at(day: date, at: str | time, activity_id: str, periods: Iterable[Period]) -> bool:
    """Tells whether the activity is open on a date at a time of day.

    Overlapping periods are independent: the activity is open as soon as any
    covering period is open at that time.
    """
    at_time = at if isinstance(at, time) else parse_time(at)
    matches = schedule_for_date(day, activity_id, periods)
    return any(is_open_during(day_schedule, at_time) for _, day_schedule in matches)


def availability_calendar(
    activity_id: str, periods: Iterable[Period], start_date: date, end_date: date
) -> Dict[date, List[ScheduleMatch]]:
    """Maps every date of the inclusive range that has covering periods to its matches."""
    periods = list(periods)
    current = _as_date(start_date)
    last = _as_date(end_date)

    calendar: Dict[date, List[ScheduleMatch]] = {}
    while current <= last:
        matches = schedule_for_date(current, activity_id, periods)
        if matches:
            calendar[current] = matches
        current += timedelta(days=1)

    return calendar


def _slots_for_schedule(target: date, day_schedule: DaySchedule, duration: timedelta, step: timedelta) -> List[TimeSlot]:
    hours = _opening_hours(day_schedule)
    if hours is None:
        return []

    opening = datetime.combine(target, hours[0])
    closing = datetime.combine(target, hours[1])
    break_window = _break_window(day_schedule)
    if break_window is not None:
        break_start = datetime.combine(target, break_window[0])
        break_end = datetime.combine(target, break_window[1])

    slots = []
    current = opening
    while current < closing:
        slot_end = current + duration
        if slot_end > closing:
            break

        if break_window is not None and current < break_end and slot_end > break_start:
            # Resume right after the break
            current = break_end
            continue

        slots.append(TimeSlot(start_time=current.strftime(TIME_FORMAT), end_time=slot_end.strftime(TIME_FORMAT)))
        current += step

    return slots


def time_slots_for_date(
    day: date,
    activity_id: str,
    periods: Iterable[Period],
    duration_minutes: int,
    interval_minutes: int = config.SLOT_INTERVAL_MINUTES,
) -> List[TimeSlot]:
    """Generates the bookable slots of a given duration on a date.

    Slots start at opening time and every `interval_minutes` after, must end
    by closing time and never overlap a break. Slots from overlapping periods
    are merged, de-duplicated and sorted by start time.
    """
    if duration_minutes <= 0 or interval_minutes <= 0:
        return []

    target = _as_date(day)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=interval_minutes)

    unique: Dict[Tuple[str, str], TimeSlot] = {}
    for _, day_schedule in schedule_for_date(target, activity_id, periods):
        for slot in _slots_for_schedule(target, day_schedule, duration, step):
            unique.setdefault((slot.start_time, slot.end_time), slot)

    slots = [unique[key] for key in sorted(unique)]
    logger.debug(f"Generated {len(slots)} slots of {duration_minutes} min for {target.isoformat()}")
    return slots
