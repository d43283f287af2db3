"""
Pydantic models for tool arguments, tool results and persisted timer records.

Field names are snake_case in Python and camelCase on the wire and on disk,
matching the JSON shapes clients and existing state files already use.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


TimeUnit = Literal["years", "months", "days", "hours", "minutes", "seconds"]
TIME_UNITS: tuple[str, ...] = ("years", "months", "days", "hours", "minutes", "seconds")

TimerStatus = Literal["running", "stopped"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class DateTimeFormat(_CamelModel):
    """Display options for the locale-aware formatter."""

    style: Optional[Literal["full", "long", "medium", "short"]] = Field(
        None, description="Bundled date+time preset"
    )
    weekday: Optional[Literal["long", "short", "narrow"]] = None
    year: Optional[Literal["numeric", "2-digit"]] = None
    month: Optional[Literal["numeric", "2-digit", "long", "short", "narrow"]] = None
    day: Optional[Literal["numeric", "2-digit"]] = None
    hour: Optional[Literal["numeric", "2-digit"]] = None
    minute: Optional[Literal["numeric", "2-digit"]] = None
    second: Optional[Literal["numeric", "2-digit"]] = None


class DayInfo(_CamelModel):
    day_of_week: str
    is_weekend: bool
    day_of_month: int
    day_of_year: int
    week_number: int


class DateTimeResult(_CamelModel):
    iso: str
    formatted: str
    timestamp: int
    info: Optional[DayInfo] = None
    calendars: Optional[dict[str, dict[str, str]]] = None
    warnings: Optional[list[str]] = None


class TimerFormat(_CamelModel):
    """Display options for elapsed timer durations."""

    include_milliseconds: bool = False
    style: Literal["compact", "verbose"] = "compact"


class TimerRecord(_CamelModel):
    """One persisted stopwatch. ``start_time`` is epoch milliseconds."""

    id: str
    description: Optional[str] = None
    start_time: int
    status: TimerStatus


class ElapsedTime(_CamelModel):
    milliseconds: int
    formatted: str


class TimerResult(_CamelModel):
    id: str
    description: Optional[str] = None
    elapsed_time: ElapsedTime
    start_time: str
    end_time: Optional[str] = None
    status: TimerStatus
