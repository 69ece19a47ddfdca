"""Data models for recurring calendar events - simplecal.

Series and exceptions are the persisted records; instances are produced by
expansion and never stored.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class Frequency(str, Enum):
    """Supported recurrence frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(str, Enum):
    """Two-letter weekday codes as used in BYDAY."""

    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"

    @property
    def index(self) -> int:
        """Monday-based weekday number (Monday == 0), matching ``date.weekday()``."""
        return _WEEKDAY_ORDER.index(self)

    @property
    def label(self) -> str:
        """Full English weekday name."""
        return _WEEKDAY_LABELS[self]


_WEEKDAY_ORDER = [Weekday.MO, Weekday.TU, Weekday.WE, Weekday.TH, Weekday.FR, Weekday.SA, Weekday.SU]
_WEEKDAY_LABELS = {
    Weekday.MO: "Monday",
    Weekday.TU: "Tuesday",
    Weekday.WE: "Wednesday",
    Weekday.TH: "Thursday",
    Weekday.FR: "Friday",
    Weekday.SA: "Saturday",
    Weekday.SU: "Sunday",
}


def sorted_weekdays(days: "frozenset[Weekday] | set[Weekday]") -> list[Weekday]:
    """Return weekdays in Monday-to-Sunday order."""
    return sorted(days, key=lambda d: d.index)


class Termination(str, Enum):
    """How a recurrence rule ends."""

    UNBOUNDED = "unbounded"
    COUNT = "count"
    UNTIL = "until"


class EditScope(str, Enum):
    """Breadth of a save/delete mutation on a recurring series."""

    THIS_ONLY = "this_only"
    THIS_AND_FUTURE = "this_and_future"
    ALL = "all"


class RecurrenceRule(BaseModel):
    """Structured recurrence rule."""

    model_config = ConfigDict(frozen=True)

    frequency: Frequency
    interval: int = Field(default=1, ge=1, description="Step between periods")
    by_weekday: frozenset[Weekday] = Field(
        default_factory=frozenset, description="Selected weekdays (weekly rules only)"
    )
    count: Optional[int] = Field(default=None, ge=1, description="Total occurrences in the series")
    until: Optional[date] = Field(default=None, description="Last day of the series (inclusive)")

    @field_validator("by_weekday")
    @classmethod
    def _weekdays_only_for_weekly(
        cls, value: frozenset[Weekday], info: ValidationInfo
    ) -> frozenset[Weekday]:
        # BYDAY carries no meaning outside weekly rules; drop it so the value round-trips
        if info.data.get("frequency") != Frequency.WEEKLY:
            return frozenset()
        return value

    @model_validator(mode="after")
    def _single_termination(self) -> "RecurrenceRule":
        if self.count is not None and self.until is not None:
            raise ValueError("COUNT and UNTIL are mutually exclusive")
        return self

    @property
    def termination(self) -> Termination:
        """Which termination applies to this rule."""
        if self.count is not None:
            return Termination.COUNT
        if self.until is not None:
            return Termination.UNTIL
        return Termination.UNBOUNDED

    def ending_on(self, last_day: date) -> "RecurrenceRule":
        """Return a copy terminated by ``last_day``, dropping any count."""
        return RecurrenceRule(
            frequency=self.frequency,
            interval=self.interval,
            by_weekday=self.by_weekday,
            until=last_day,
        )


class EventFields(BaseModel):
    """Displayable fields shared by series, exceptions and instances."""

    title: str = Field(..., description="Event title")
    description: str = Field(default="", description="Event description")
    location: str = Field(default="", description="Event location")
    color: str = Field(default="", description="Display color")
    start: datetime = Field(..., description="Start instant")
    end: datetime = Field(..., description="End instant")
    all_day: bool = Field(default=False, description="All-day event flag")

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "EventFields":
        try:
            ordered = self.end >= self.start
        except TypeError as e:
            raise ValueError("start and end must both be naive or both be timezone-aware") from e
        if not ordered:
            raise ValueError("end must not be before start")
        return self

    @property
    def duration(self) -> timedelta:
        """Length of the event."""
        return self.end - self.start

    def event_fields(self) -> "EventFields":
        """Return only the displayable payload as a plain ``EventFields``."""
        return EventFields(**{name: getattr(self, name) for name in EventFields.model_fields})


class Series(EventFields):
    """A stored event that may recur."""

    id: str = Field(..., description="Series id")
    calendar_id: str = Field(..., description="Owning calendar id")
    rrule: Optional[str] = Field(default=None, description="Recurrence rule text")
    exdates: Optional[str] = Field(default=None, description="Comma-separated excluded dates")

    @property
    def is_recurring(self) -> bool:
        """True if the series carries non-blank rule text."""
        return bool(self.rrule and self.rrule.strip())


class EventException(EventFields):
    """A persisted override of one occurrence of a series."""

    id: str = Field(..., description="Exception id")
    series_id: str = Field(..., description="Owning series id")
    original_start: datetime = Field(..., description="Occurrence start this exception replaces")

    @property
    def original_date(self) -> date:
        """Calendar day of the replaced occurrence."""
        return self.original_start.date()


class InstanceRef(BaseModel):
    """Structured identity of an expanded instance."""

    model_config = ConfigDict(frozen=True)

    series_id: str
    occurrence_start: Optional[datetime] = None

    @property
    def occurrence_date(self) -> Optional[date]:
        """Calendar day of the original occurrence, if any."""
        return self.occurrence_start.date() if self.occurrence_start else None


class _InstanceBase(BaseModel):
    event: EventFields
    series_id: str
    calendar_id: str


class PlainInstance(_InstanceBase):
    """Occurrence synthesized from the series' own fields."""

    kind: Literal["plain"] = "plain"
    occurrence_start: datetime

    @property
    def ref(self) -> InstanceRef:
        return InstanceRef(series_id=self.series_id, occurrence_start=self.occurrence_start)


class ExceptionInstance(_InstanceBase):
    """Occurrence replaced by a persisted exception."""

    kind: Literal["exception"] = "exception"
    occurrence_start: datetime
    exception_id: str

    @property
    def ref(self) -> InstanceRef:
        return InstanceRef(series_id=self.series_id, occurrence_start=self.occurrence_start)


class NonRecurringInstance(_InstanceBase):
    """A series shown as-is, without expansion."""

    kind: Literal["non_recurring"] = "non_recurring"

    @property
    def ref(self) -> InstanceRef:
        return InstanceRef(series_id=self.series_id)


Instance = Annotated[
    Union[PlainInstance, ExceptionInstance, NonRecurringInstance],
    Field(discriminator="kind"),
]


class SeriesUpdate(BaseModel):
    """New values for a save; only explicitly set fields are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    color: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    all_day: Optional[bool] = None
    calendar_id: Optional[str] = None
    rrule: Optional[str] = None

    def changes(self) -> dict:
        """Explicitly set, non-null fields as a dict."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class SavePlan(BaseModel):
    """Writes produced by a save mutation."""

    series_write: Optional[Series] = None
    exception_write: Optional[EventException] = None


class DeletePlan(BaseModel):
    """Writes produced by a delete mutation."""

    series_write: Optional[Series] = None
    exception_deletes: list[str] = Field(default_factory=list)
    series_delete: Optional[str] = None
