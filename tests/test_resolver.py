from datetime import date, datetime, time

import pytest

from booking_availability import resolver
from booking_availability.models import DaySchedule, Period, TimeSlot


def _week(**days):
    """Builds a seven-day schedule; keyword `d1`..`d7` overrides a weekday entry."""
    schedule = []
    for day in range(1, 8):
        entry = dict(day_of_week=day, start_time="09:00", end_time="18:00", is_active=False)
        entry.update(days.get(f"d{day}", {}))
        schedule.append(DaySchedule(**entry))
    return schedule


def _period(**overrides):
    base = dict(
        id="p1",
        name="Spring",
        start_date=date(2025, 2, 1),
        end_date=date(2025, 5, 31),
        activities=["kayak"],
        schedule=_week(d1={"is_active": True}),
        is_off_peak=False,
    )
    base.update(overrides)
    return Period(**base)


ALL_DAYS_OPEN = {f"d{day}": {"is_active": True} for day in range(1, 8)}


@pytest.fixture
def spring():
    """Kayak period open on Mondays 09:00-18:00, closed on Sundays."""
    return _period()


@pytest.fixture
def overlapping():
    p1 = _period(
        id="p1",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 6, 30),
        schedule=_week(d1={"is_active": True, "start_time": "09:00", "end_time": "12:00"}),
    )
    p2 = _period(
        id="p2",
        name="Peak",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 4, 30),
        schedule=_week(d1={"is_active": True, "start_time": "13:00", "end_time": "18:00"}),
    )
    return p1, p2


def test_open_on_monday_in_range(spring):
    assert resolver.is_open_at(date(2025, 3, 3), "10:00", "kayak", [spring]) is True


def test_closed_on_inactive_sunday(spring):
    assert resolver.is_open_at(date(2025, 3, 2), "10:00", "kayak", [spring]) is False


def test_closed_out_of_range(spring):
    assert resolver.is_open_at(date(2025, 6, 1), "10:00", "kayak", [spring]) is False
    # Out-of-range Monday, even though Mondays are active
    assert resolver.is_open_at(date(2025, 6, 2), "10:00", "kayak", [spring]) is False


def test_no_periods_means_closed():
    assert resolver.is_open_at(date(2025, 3, 3), "10:00", "kayak", []) is False
    assert resolver.periods_covering_date(date(2025, 3, 3), "kayak", []) == []


def test_other_activity_is_not_covered(spring):
    assert resolver.periods_covering_date(date(2025, 3, 3), "paddle", [spring]) == []
    assert resolver.is_open_at(date(2025, 3, 3), "10:00", "paddle", [spring]) is False


def test_weekday_mapping_sunday_is_seven():
    sunday_only = _period(schedule=_week(d7={"is_active": True}))
    assert resolver.periods_covering_date(date(2025, 3, 2), "kayak", [sunday_only]) == [sunday_only]
    assert resolver.periods_covering_date(date(2025, 3, 3), "kayak", [sunday_only]) == []


def test_weekday_mapping_saturday_is_six():
    saturday_only = _period(schedule=_week(d6={"is_active": True}))
    assert resolver.periods_covering_date(date(2025, 3, 1), "kayak", [saturday_only]) == [saturday_only]
    assert resolver.periods_covering_date(date(2025, 3, 2), "kayak", [saturday_only]) == []


def test_every_weekday_maps_to_its_own_entry():
    # 2025-03-03 is a Monday
    for offset in range(7):
        day = date(2025, 3, 3 + offset)
        period = _period(schedule=_week(**{f"d{offset + 1}": {"is_active": True}}))
        assert resolver.periods_covering_date(day, "kayak", [period]) == [period]


def test_boundaries_are_inclusive():
    period = _period(schedule=_week(**ALL_DAYS_OPEN))
    assert resolver.periods_covering_date(date(2025, 2, 1), "kayak", [period]) == [period]
    assert resolver.periods_covering_date(date(2025, 5, 31), "kayak", [period]) == [period]
    assert resolver.periods_covering_date(date(2025, 1, 31), "kayak", [period]) == []
    assert resolver.periods_covering_date(date(2025, 6, 1), "kayak", [period]) == []


def test_single_day_period():
    period = _period(start_date=date(2025, 3, 3), end_date=date(2025, 3, 3))
    assert resolver.periods_covering_date(date(2025, 3, 3), "kayak", [period]) == [period]


def test_datetime_input_ignores_time_of_day(spring):
    late_evening = datetime(2025, 5, 26, 23, 59)  # last Monday of the period
    assert resolver.periods_covering_date(late_evening, "kayak", [spring]) == [spring]


def test_inactive_period_is_ignored():
    period = _period(is_active=False)
    assert resolver.periods_covering_date(date(2025, 3, 3), "kayak", [period]) == []


def test_break_window_is_closed():
    period = _period(
        schedule=_week(
            d1={
                "is_active": True,
                "start_time": "09:00",
                "end_time": "18:00",
                "break_start_time": "12:00",
                "break_end_time": "13:00",
            }
        )
    )
    monday = date(2025, 3, 3)
    assert resolver.is_open_at(monday, "12:30", "kayak", [period]) is False
    assert resolver.is_open_at(monday, "11:59", "kayak", [period]) is True
    assert resolver.is_open_at(monday, "13:00", "kayak", [period]) is True
    assert resolver.is_open_at(monday, "12:00", "kayak", [period]) is False


def test_opening_window_is_half_open(spring):
    monday = date(2025, 3, 3)
    assert resolver.is_open_at(monday, "09:00", "kayak", [spring]) is True
    assert resolver.is_open_at(monday, "08:59", "kayak", [spring]) is False
    assert resolver.is_open_at(monday, "17:59", "kayak", [spring]) is True
    assert resolver.is_open_at(monday, "18:00", "kayak", [spring]) is False


def test_accepts_time_objects(spring):
    assert resolver.is_open_at(date(2025, 3, 3), time(10, 0), "kayak", [spring]) is True


def test_malformed_query_time_raises(spring):
    with pytest.raises(ValueError):
        resolver.is_open_at(date(2025, 3, 3), "ten", "kayak", [spring])


def test_overlapping_periods_are_independent(overlapping):
    p1, p2 = overlapping
    march_monday = date(2025, 3, 10)

    assert resolver.is_open_at(march_monday, "14:00", "kayak", [p1, p2]) is True
    assert resolver.is_open_at(march_monday, "14:00", "kayak", [p1]) is False
    assert resolver.is_open_at(march_monday, "10:00", "kayak", [p1, p2]) is True
    assert resolver.is_open_at(march_monday, "12:30", "kayak", [p1, p2]) is False


def test_covering_periods_keep_input_order(overlapping):
    p1, p2 = overlapping
    march_monday = date(2025, 3, 10)
    assert resolver.periods_covering_date(march_monday, "kayak", [p2, p1]) == [p2, p1]
    assert resolver.periods_covering_date(march_monday, "kayak", [p1, p2]) == [p1, p2]
    # In May only p1 applies
    assert resolver.periods_covering_date(date(2025, 5, 5), "kayak", [p1, p2]) == [p1]


def test_schedule_for_date_returns_day_entries(overlapping):
    p1, p2 = overlapping
    matches = resolver.schedule_for_date(date(2025, 3, 10), "kayak", [p1, p2])

    assert [period.id for period, _ in matches] == ["p1", "p2"]
    assert [(entry.start_time, entry.end_time) for _, entry in matches] == [("09:00", "12:00"), ("13:00", "18:00")]
    assert all(entry.day_of_week == 1 for _, entry in matches)


def test_operations_are_idempotent(overlapping):
    periods = list(overlapping)
    day = date(2025, 3, 10)

    assert resolver.periods_covering_date(day, "kayak", periods) == resolver.periods_covering_date(day, "kayak", periods)
    assert resolver.schedule_for_date(day, "kayak", periods) == resolver.schedule_for_date(day, "kayak", periods)
    assert resolver.is_open_at(day, "14:00", "kayak", periods) == resolver.is_open_at(day, "14:00", "kayak", periods)


def test_resolver_does_not_mutate_periods(spring):
    before = spring.model_dump()
    resolver.is_open_at(date(2025, 3, 3), "10:00", "kayak", [spring])
    resolver.availability_calendar("kayak", [spring], date(2025, 3, 1), date(2025, 3, 31))
    assert spring.model_dump() == before


# --- Malformed data ---


def test_missing_weekday_entry_is_closed():
    period = _period(schedule=[DaySchedule(day_of_week=2, is_active=True)])
    assert resolver.periods_covering_date(date(2025, 3, 3), "kayak", [period]) == []
    assert resolver.periods_covering_date(date(2025, 3, 4), "kayak", [period]) == [period]


def test_empty_schedule_is_closed():
    period = _period(schedule=[])
    assert resolver.is_open_at(date(2025, 3, 3), "10:00", "kayak", [period]) is False


def test_inverted_range_never_matches():
    period = _period(start_date=date(2025, 5, 31), end_date=date(2025, 2, 1), schedule=_week(**ALL_DAYS_OPEN))
    for day in (date(2025, 2, 1), date(2025, 3, 3), date(2025, 5, 31)):
        assert resolver.periods_covering_date(day, "kayak", [period]) == []


def test_half_specified_break_is_ignored():
    period = _period(schedule=_week(d1={"is_active": True, "break_start_time": "12:00"}))
    assert resolver.is_open_at(date(2025, 3, 3), "12:30", "kayak", [period]) is True


def test_unreadable_hours_are_closed():
    period = _period(schedule=_week(d1={"is_active": True, "start_time": "nine"}))
    assert resolver.schedule_for_date(date(2025, 3, 3), "kayak", [period]) == []
    assert resolver.periods_covering_date(date(2025, 3, 3), "kayak", [period]) == []
    assert resolver.is_open_at(date(2025, 3, 3), "10:00", "kayak", [period]) is False
    assert resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [period], 60) == []


def test_unreadable_break_is_ignored():
    period = _period(schedule=_week(d1={"is_active": True, "break_start_time": "noon", "break_end_time": "13:00"}))
    assert resolver.is_open_at(date(2025, 3, 3), "12:30", "kayak", [period]) is True


# --- Calendar ---


def test_availability_calendar_lists_open_dates(spring):
    calendar = resolver.availability_calendar("kayak", [spring], date(2025, 3, 1), date(2025, 3, 16))

    assert list(calendar) == [date(2025, 3, 3), date(2025, 3, 10)]
    period, entry = calendar[date(2025, 3, 3)][0]
    assert period is spring
    assert entry.day_of_week == 1


def test_availability_calendar_matches_covering_periods(overlapping):
    periods = list(overlapping)
    start, end = date(2025, 2, 20), date(2025, 5, 10)
    calendar = resolver.availability_calendar("kayak", periods, start, end)

    day = start
    while day <= end:
        covering = resolver.periods_covering_date(day, "kayak", periods)
        if covering:
            assert [period for period, _ in calendar[day]] == covering
        else:
            assert day not in calendar
        day = date.fromordinal(day.toordinal() + 1)


def test_availability_calendar_inverted_range(spring):
    assert resolver.availability_calendar("kayak", [spring], date(2025, 3, 31), date(2025, 3, 1)) == {}


# --- Slots ---


def _slots(*pairs):
    return [TimeSlot(start_time=start, end_time=end) for start, end in pairs]


def test_time_slots_step_through_opening_hours():
    period = _period(schedule=_week(d1={"is_active": True, "start_time": "09:00", "end_time": "12:00"}))

    slots = resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [period], 60, interval_minutes=30)

    assert slots == _slots(
        ("09:00", "10:00"),
        ("09:30", "10:30"),
        ("10:00", "11:00"),
        ("10:30", "11:30"),
        ("11:00", "12:00"),
    )


def test_time_slots_skip_break():
    period = _period(
        schedule=_week(
            d1={
                "is_active": True,
                "start_time": "09:00",
                "end_time": "12:00",
                "break_start_time": "10:00",
                "break_end_time": "10:30",
            }
        )
    )

    slots = resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [period], 60, interval_minutes=30)

    assert slots == _slots(("09:00", "10:00"), ("10:30", "11:30"), ("11:00", "12:00"))
    for slot in slots:
        assert not (slot.start_time < "10:30" and slot.end_time > "10:00")
        assert slot.end_time <= "12:00"


def test_time_slots_merge_overlapping_periods():
    morning = _period(id="p1", schedule=_week(d1={"is_active": True, "start_time": "09:00", "end_time": "11:00"}))
    late_morning = _period(id="p2", schedule=_week(d1={"is_active": True, "start_time": "10:00", "end_time": "12:00"}))

    slots = resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [late_morning, morning], 60, interval_minutes=60)

    assert slots == _slots(("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00"))


def test_time_slots_longer_than_opening(spring):
    assert resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [spring], 600) == []


def test_time_slots_closed_day_and_bad_arguments(spring):
    assert resolver.time_slots_for_date(date(2025, 3, 2), "kayak", [spring], 60) == []
    assert resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [spring], 0) == []
    assert resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [spring], 60, interval_minutes=0) == []


def test_full_day_slot_fits_exactly(spring):
    slots = resolver.time_slots_for_date(date(2025, 3, 3), "kayak", [spring], 540)
    assert slots == _slots(("09:00", "18:00"))
