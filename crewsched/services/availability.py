"""Service for aggregating crew bookings into a per-day availability calendar.

This answers "how many crew members are busy on a given day", not "who
conflicts with what". Days are whole calendar days (see ``overlap``), so
back-to-back events that do not conflict can still book the same day.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Iterable, Mapping

from crewsched.domain.models import (
    AvailabilityCalendar,
    Crew,
    CrewAssignment,
    CrewBookingSummary,
    DayStatus,
    DaySummary,
    Event,
)
from crewsched.repos.ports import AssignmentReader, CrewReader, EventReader
from crewsched.services.overlap import booked_day_keys, day_key

logger = logging.getLogger(__name__)

Availability = dict[int, set[str]]


def compute_availability(
    crew: Iterable[Crew],
    events: Iterable[Event],
    assignments: Iterable[CrewAssignment],
    tz: str | None = None,
) -> Availability:
    """Map every roster member's id to the set of ``YYYY-MM-DD`` days they are booked.

    Members without assignments map to an empty set. Assignments pointing at
    an event or crew member missing from the given collections are ignored.
    """
    availability: Availability = {c.id: set() for c in crew}
    events_by_id = {e.id: e for e in events}

    for assignment in assignments:
        event = events_by_id.get(assignment.event_id)
        booked = availability.get(assignment.crew_id)
        if event is None or booked is None:
            continue
        booked.update(booked_day_keys(event.start_time, event.end_time, tz))

    return availability


def _as_key(day: date | str) -> str:
    return day if isinstance(day, str) else day_key(day)


def daily_booked_count(day: date | str, availability: Mapping[int, set[str]]) -> int:
    """Number of crew members booked on *day*."""
    key = _as_key(day)
    return sum(1 for booked in availability.values() if key in booked)


def classify_day(day: date | str, total_crew: int, booked_count: int) -> DayStatus:
    """Colour bucket for a calendar cell.

    An empty roster is its own state (NO_CREW), never ALL_AVAILABLE.
    """
    if total_crew < 0 or booked_count < 0 or booked_count > total_crew:
        raise ValueError(
            f"{_as_key(day)}: booked_count={booked_count} is not within 0..{total_crew}"
        )
    if total_crew == 0:
        return DayStatus.NO_CREW
    if booked_count == total_crew:
        return DayStatus.ALL_BOOKED
    if booked_count == 0:
        return DayStatus.ALL_AVAILABLE
    return DayStatus.PARTIALLY_BOOKED


def _days_between(start: date, end: date) -> list[date]:
    return [start + timedelta(days=n) for n in range((end - start).days + 1)]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def summarize_range(
    start: date,
    end: date,
    crew: list[Crew],
    availability: Mapping[int, set[str]],
) -> AvailabilityCalendar:
    """Build the calendar view for the inclusive range [start, end]."""
    if end < start:
        raise ValueError("end must not be before start")

    days = _days_between(start, end)
    keys = {day_key(d) for d in days}
    total = len(crew)

    day_summaries = []
    for d in days:
        booked = daily_booked_count(d, availability)
        day_summaries.append(
            DaySummary(
                day=d,
                booked_count=booked,
                available_count=total - booked,
                total_crew=total,
                status=classify_day(d, total, booked),
            )
        )

    crew_summaries = []
    for member in crew:
        booked = availability.get(member.id, set())
        in_range = sorted(k for k in booked if k in keys)
        crew_summaries.append(
            CrewBookingSummary(
                crew_id=member.id,
                name=member.name,
                booked_days=[date.fromisoformat(k) for k in in_range],
                total_booked_days=len(booked),
            )
        )

    return AvailabilityCalendar(
        start=start, end=end, total_crew=total, days=day_summaries, crew=crew_summaries
    )


def summarize_month(
    year: int,
    month: int,
    crew: list[Crew],
    availability: Mapping[int, set[str]],
) -> AvailabilityCalendar:
    start, end = month_bounds(year, month)
    return summarize_range(start, end, crew, availability)


def degraded_calendar(start: date, end: date) -> AvailabilityCalendar:
    """Calendar shown when bookings could not be read: every day is UNKNOWN."""
    return AvailabilityCalendar(
        start=start,
        end=end,
        total_crew=0,
        days=[
            DaySummary(
                day=d,
                booked_count=None,
                available_count=None,
                total_crew=0,
                status=DayStatus.UNKNOWN,
            )
            for d in _days_between(start, end)
        ],
        degraded=True,
    )


class AvailabilityAggregator:
    """Re-reads a project's crew, events, and assignments on every call.

    Nothing is cached between calls.
    """

    def __init__(
        self,
        crew_repo: CrewReader,
        event_repo: EventReader,
        assignment_repo: AssignmentReader,
        tz: str | None = None,
    ) -> None:
        self.crew_repo = crew_repo
        self.event_repo = event_repo
        self.assignment_repo = assignment_repo
        self.tz = tz

    def _snapshot(self, project_id: int) -> tuple[list[Crew], Availability]:
        crew = self.crew_repo.list_for_project(project_id)
        events = self.event_repo.list_for_project(project_id)
        assignments = self.assignment_repo.list_for_project(project_id)
        logger.debug(
            "Project %s: %d crew, %d events, %d assignments",
            project_id,
            len(crew),
            len(events),
            len(assignments),
        )
        return crew, compute_availability(crew, events, assignments, self.tz)

    def for_project(self, project_id: int) -> Availability:
        return self._snapshot(project_id)[1]

    def range_calendar(self, project_id: int, start: date, end: date) -> AvailabilityCalendar:
        crew, availability = self._snapshot(project_id)
        return summarize_range(start, end, crew, availability)

    def month_calendar(self, project_id: int, year: int, month: int) -> AvailabilityCalendar:
        start, end = month_bounds(year, month)
        return self.range_calendar(project_id, start, end)
