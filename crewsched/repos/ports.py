"""Read interfaces the scheduling services depend on.

The in-memory repositories satisfy these; a relational store only has to
provide the same methods. Implementations raise ``InfrastructureError`` when
the store is unavailable.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from crewsched.domain.models import Crew, CrewAssignment, Event


class EventReader(Protocol):
    def get(self, event_id: int) -> Event | None: ...

    def list_by_ids(self, event_ids: Iterable[int]) -> list[Event]: ...

    def list_for_project(self, project_id: int) -> list[Event]: ...


class CrewReader(Protocol):
    def list_for_project(self, project_id: int) -> list[Crew]: ...


class AssignmentReader(Protocol):
    def list_by_crew(self, crew_id: int) -> list[CrewAssignment]: ...

    def list_for_project(self, project_id: int) -> list[CrewAssignment]: ...
