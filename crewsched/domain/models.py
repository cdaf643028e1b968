"""Domain models for schedule events, project crew, and crew assignments."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, model_validator

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


class EventType(StrEnum):
    SHOOT = "Shoot"
    MEETING = "Meeting"
    SCOUT = "Scout"


class AssignmentStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


class DayStatus(StrEnum):
    ALL_AVAILABLE = "all_available"
    PARTIALLY_BOOKED = "partially_booked"
    ALL_BOOKED = "all_booked"
    NO_CREW = "no_crew"
    UNKNOWN = "unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _assume_utc(value: datetime) -> datetime:
    """Timestamps sent without an offset are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Event times are always timezone-aware; naive input is read as UTC.
UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Event(BaseModel):
    id: int
    project_id: int
    title: str
    type: EventType
    start_time: UtcDatetime
    end_time: UtcDatetime
    description: str | None = None
    latitude: str | None = None
    longitude: str | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> Event:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class Crew(BaseModel):
    id: int
    project_id: int
    name: str
    title: str
    department: str
    pricing: str | None = None
    contact: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class CrewAssignment(BaseModel):
    id: int
    project_id: int
    event_id: int | None = None
    crew_id: int
    actual_person: str | None = None
    status: AssignmentStatus = AssignmentStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    type: EventType
    start_time: UtcDatetime
    end_time: UtcDatetime
    description: str | None = None
    latitude: str | None = None
    longitude: str | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> EventCreate:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    type: EventType | None = None
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None
    description: str | None = None
    latitude: str | None = None
    longitude: str | None = None


class CrewCreate(BaseModel):
    name: str = Field(min_length=1)
    title: str = Field(min_length=1)
    department: str = Field(min_length=1)
    pricing: str | None = None
    contact: str | None = None
    notes: str | None = None


class CrewUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    title: str | None = Field(default=None, min_length=1)
    department: str | None = Field(default=None, min_length=1)
    pricing: str | None = None
    contact: str | None = None
    notes: str | None = None


class CrewAssignmentCreate(BaseModel):
    event_id: int
    crew_id: int
    actual_person: str | None = None
    status: AssignmentStatus = AssignmentStatus.PENDING


class CrewAssignmentUpdate(BaseModel):
    actual_person: str | None = None
    status: AssignmentStatus | None = None


class CheckConflictsRequest(BaseModel):
    crew_id: int
    event_id: int


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------


class ConflictingEvent(BaseModel):
    event_id: int
    event_title: str
    start_time: UtcDatetime
    end_time: UtcDatetime


class ConflictCheckResult(BaseModel):
    has_conflict: bool = False
    conflicts: list[ConflictingEvent] = Field(default_factory=list)


class DaySummary(BaseModel):
    day: date
    booked_count: int | None
    available_count: int | None
    total_crew: int
    status: DayStatus


class CrewBookingSummary(BaseModel):
    crew_id: int
    name: str
    booked_days: list[date] = Field(default_factory=list)
    total_booked_days: int = 0


class AvailabilityCalendar(BaseModel):
    start: date
    end: date
    total_crew: int
    days: list[DaySummary] = Field(default_factory=list)
    crew: list[CrewBookingSummary] = Field(default_factory=list)
    degraded: bool = False
