"""Helpers for building a project schedule in tests."""

from __future__ import annotations

from datetime import datetime, timezone

from crewsched.domain.models import (
    CrewAssignmentCreate,
    CrewCreate,
    EventCreate,
    EventType,
)
from crewsched.repos.memory import CrewAssignmentRepository, CrewRepository, EventRepository

PROJECT = 1


def at(day: str, hhmm: str = "00:00") -> datetime:
    """UTC datetime from '2024-01-10' and '09:00'."""
    return datetime.fromisoformat(f"{day}T{hhmm}").replace(tzinfo=timezone.utc)


class Env:
    """Fresh repositories plus shortcuts for creating events, crew, and assignments."""

    def __init__(self) -> None:
        self.event_repo = EventRepository()
        self.crew_repo = CrewRepository()
        self.assignment_repo = CrewAssignmentRepository()

    def event(self, start: datetime, end: datetime, title: str = "Shoot", project_id: int = PROJECT):
        return self.event_repo.create(
            project_id,
            EventCreate(title=title, type=EventType.SHOOT, start_time=start, end_time=end),
        )

    def crew(self, name: str, project_id: int = PROJECT):
        return self.crew_repo.create(
            project_id, CrewCreate(name=name, title="Gaffer", department="Lighting")
        )

    def assign(self, crew_id: int, event_id: int, project_id: int = PROJECT):
        return self.assignment_repo.create(
            project_id, CrewAssignmentCreate(crew_id=crew_id, event_id=event_id)
        )
