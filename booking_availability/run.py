import logging
import sys
from datetime import date, datetime, timedelta
from typing import List

from booking_availability import persist, resolver
from booking_availability.models import DayReport, OpeningWindow, Period

logger = logging.getLogger(__name__)


def get_target_dates(start_date_arg: str | None, days_arg: int) -> List[date]:
    """Determines the list of dates to report on."""
    if start_date_arg:
        try:
            start_date = datetime.strptime(start_date_arg, "%Y-%m-%d").date()
        except ValueError:
            logger.error("Error: Start date must be in YYYY-MM-DD format.")
            sys.exit(1)
    else:
        start_date = date.today()

    return [start_date + timedelta(days=i) for i in range(days_arg)]


def build_day_report(
    day: date, activity_id: str, periods: List[Period], at: str | None = None, duration: int | None = None
) -> DayReport:
    """Resolves one date into a serializable report."""
    windows = [
        OpeningWindow(
            period_id=period.id,
            period_name=period.name,
            start_time=day_schedule.start_time,
            end_time=day_schedule.end_time,
            break_start_time=day_schedule.break_start_time if day_schedule.has_break else None,
            break_end_time=day_schedule.break_end_time if day_schedule.has_break else None,
            is_off_peak=period.is_off_peak,
        )
        for period, day_schedule in resolver.schedule_for_date(day, activity_id, periods)
    ]

    slots = []
    if duration:
        slots = resolver.time_slots_for_date(day, activity_id, periods, duration)

    open_at = None
    if at:
        open_at = resolver.is_open_at(day, at, activity_id, periods)

    return DayReport(
        date=day.isoformat(),
        weekday=day.isoweekday(),
        is_open=bool(windows),
        windows=windows,
        slots=slots,
        open_at=open_at,
    )


def print_day_report(report: DayReport, activity_id: str, at: str | None = None):
    """Prints the formatted availability report to stdout."""
    weekday_name = date.fromisoformat(report.date).strftime("%A")
    print(f"\n--- Availability of {activity_id} on {report.date} ({weekday_name}) ---")

    if not report.windows:
        print(f"[CLOSED]    No period opens {activity_id} on this date.")
        return

    for window in report.windows:
        prefix = "[OFF-PEAK]  " if window.is_off_peak else "[OPEN]      "
        line = f"{prefix}{window.start_time}-{window.end_time} {window.period_name}"
        if window.break_start_time:
            line += f" (break {window.break_start_time}-{window.break_end_time})"
        print(line)

    if report.open_at is not None:
        print(f"Open at {at}: {'yes' if report.open_at else 'no'}")

    if report.slots:
        print(f"Slots: {', '.join(f'{s.start_time}-{s.end_time}' for s in report.slots)}")


def run(activity_id: str, start_date: str | None = None, days: int = 7, at: str | None = None, duration: int | None = None):
    """Loads the current periods, resolves availability of one activity over a
    range of dates, prints the report and saves it."""
    if at:
        try:
            resolver.parse_time(at)
        except ValueError:
            logger.error("Error: Time must be in HH:MM format.")
            sys.exit(1)

    target_dates = get_target_dates(start_date, days)
    logger.info(f"Checking {activity_id} for {len(target_dates)} days: {', '.join(d.isoformat() for d in target_dates)}")

    periods = persist.period_repository().get_all()
    activities = persist.activity_repository().get_all()
    if activity_id not in {activity.id for activity in activities}:
        logger.warning(f"Activity '{activity_id}' is not a known activity")

    reports = [build_day_report(day, activity_id, periods, at=at, duration=duration) for day in target_dates]
    for report in reports:
        print_day_report(report, activity_id, at=at)

    persist.save_report(activity_id, reports)

    open_days = sum(1 for report in reports if report.is_open)
    print(f"\nSummary: {activity_id} is open on {open_days} of {len(reports)} days.")
