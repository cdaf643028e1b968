"""In-memory repositories for events, crew, and crew assignments."""

from __future__ import annotations

from itertools import count
from typing import Iterable, TypeVar

from pydantic import BaseModel

from crewsched.domain.models import (
    Crew,
    CrewAssignment,
    CrewAssignmentCreate,
    CrewAssignmentUpdate,
    CrewCreate,
    CrewUpdate,
    Event,
    EventCreate,
    EventUpdate,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


def _merged(current: ModelT, changes: BaseModel) -> ModelT:
    """Apply the fields set on *changes* and re-validate the whole model.

    Raises pydantic.ValidationError, leaving the stored model untouched.
    """
    merged = current.model_dump()
    merged.update(changes.model_dump(exclude_unset=True))
    return type(current).model_validate(merged)


class EventRepository:
    """Dict-backed store for Event instances, keyed by a server-assigned id."""

    def __init__(self) -> None:
        self._store: dict[int, Event] = {}
        self._ids = count(1)

    def create(self, project_id: int, payload: EventCreate) -> Event:
        event = Event(id=next(self._ids), project_id=project_id, **payload.model_dump())
        self._store[event.id] = event
        return event

    def get(self, event_id: int) -> Event | None:
        return self._store.get(event_id)

    def list_by_ids(self, event_ids: Iterable[int]) -> list[Event]:
        wanted = set(event_ids)
        return [e for eid, e in self._store.items() if eid in wanted]

    def list_for_project(self, project_id: int) -> list[Event]:
        return sorted(
            [e for e in self._store.values() if e.project_id == project_id],
            key=lambda e: e.start_time,
        )

    def update(self, event_id: int, changes: EventUpdate) -> Event | None:
        """Apply a partial update; the merged event is re-validated."""
        current = self._store.get(event_id)
        if current is None:
            return None
        updated = _merged(current, changes)
        self._store[event_id] = updated
        return updated

    def delete(self, event_id: int) -> None:
        self._store.pop(event_id, None)


class CrewRepository:
    """Dict-backed store for the project-scoped crew roster."""

    def __init__(self) -> None:
        self._store: dict[int, Crew] = {}
        self._ids = count(1)

    def create(self, project_id: int, payload: CrewCreate) -> Crew:
        member = Crew(id=next(self._ids), project_id=project_id, **payload.model_dump())
        self._store[member.id] = member
        return member

    def get(self, crew_id: int) -> Crew | None:
        return self._store.get(crew_id)

    def list_for_project(self, project_id: int) -> list[Crew]:
        return [c for c in self._store.values() if c.project_id == project_id]

    def update(self, crew_id: int, changes: CrewUpdate) -> Crew | None:
        current = self._store.get(crew_id)
        if current is None:
            return None
        updated = _merged(current, changes)
        self._store[crew_id] = updated
        return updated

    def delete(self, crew_id: int) -> None:
        self._store.pop(crew_id, None)


class CrewAssignmentRepository:
    """Dict-backed store for crew-to-event assignments.

    Duplicate (crew_id, event_id) pairs are accepted.
    """

    def __init__(self) -> None:
        self._store: dict[int, CrewAssignment] = {}
        self._ids = count(1)

    def create(self, project_id: int, payload: CrewAssignmentCreate) -> CrewAssignment:
        assignment = CrewAssignment(
            id=next(self._ids), project_id=project_id, **payload.model_dump()
        )
        self._store[assignment.id] = assignment
        return assignment

    def get(self, assignment_id: int) -> CrewAssignment | None:
        return self._store.get(assignment_id)

    def list_by_crew(self, crew_id: int) -> list[CrewAssignment]:
        return [a for a in self._store.values() if a.crew_id == crew_id]

    def list_by_event(self, event_id: int) -> list[CrewAssignment]:
        return [a for a in self._store.values() if a.event_id == event_id]

    def list_for_project(self, project_id: int) -> list[CrewAssignment]:
        return [a for a in self._store.values() if a.project_id == project_id]

    def update(
        self, assignment_id: int, changes: CrewAssignmentUpdate
    ) -> CrewAssignment | None:
        current = self._store.get(assignment_id)
        if current is None:
            return None
        updated = _merged(current, changes)
        self._store[assignment_id] = updated
        return updated

    def delete(self, assignment_id: int) -> None:
        self._store.pop(assignment_id, None)
