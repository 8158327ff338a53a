from datetime import date
from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base for persisted records: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class DaySchedule(Record):
    day_of_week: int  # 1 = Monday ... 7 = Sunday
    start_time: str = "09:00"  # HH:MM, local time
    end_time: str = "18:00"  # HH:MM, local time
    is_active: bool = False
    break_start_time: str | None = None
    break_end_time: str | None = None

    @property
    def has_break(self) -> bool:
        return bool(self.break_start_time and self.break_end_time)


class Period(Record):
    id: str
    name: str
    description: str = ""
    start_date: date
    end_date: date
    activities: List[str]
    schedule: List[DaySchedule]
    is_off_peak: bool = False
    is_active: bool = True

    def day_schedule(self, day_of_week: int) -> DaySchedule | None:
        """Returns the schedule entry for an ISO weekday, or None if missing."""
        for entry in self.schedule:
            if entry.day_of_week == day_of_week:
                return entry
        return None


class PeriodDraft(Record):
    """Edit state of a period before validation. Every field may still be missing."""

    id: str | None = None
    name: str | None = None
    description: str = ""
    start_date: date | None = None
    end_date: date | None = None
    activities: List[str] = []
    schedule: List[DaySchedule] = []
    is_off_peak: bool = False
    is_active: bool = True


class Activity(Record):
    id: str
    name: str
    description: str = ""
    is_active: bool = True
    is_online: bool = True
    max_participants: int = 1
    color: str | None = None


class TimeSlot(BaseModel):
    start_time: str
    end_time: str


class OpeningWindow(BaseModel):
    period_id: str
    period_name: str
    start_time: str
    end_time: str
    break_start_time: str | None = None
    break_end_time: str | None = None
    is_off_peak: bool = False


class DayReport(BaseModel):
    date: str  # ISO format YYYY-MM-DD
    weekday: int
    is_open: bool
    windows: List[OpeningWindow]
    slots: List[TimeSlot] = []
    open_at: bool | None = None
