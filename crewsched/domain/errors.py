"""Exceptions raised by repositories and services."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from crewsched.domain.models import ConflictCheckResult


class CrewSchedError(Exception):
    """Base class for every error the service raises on purpose."""


class NotFoundError(CrewSchedError):
    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class EventNotFoundError(NotFoundError):
    def __init__(self, event_id: int) -> None:
        super().__init__("Event", event_id)


class InfrastructureError(CrewSchedError):
    """The backing data store could not be reached or failed mid-read.

    Services never swallow this; the HTTP layer maps it to 503.
    """


class CrewConflictError(CrewSchedError):
    """Assigning the crew member would double-book them."""

    def __init__(self, crew_id: int, event_id: int, result: ConflictCheckResult) -> None:
        titles = ", ".join(c.event_title for c in result.conflicts)
        super().__init__(f"Crew {crew_id} conflicts with: {titles}")
        self.crew_id = crew_id
        self.event_id = event_id
        self.result = result
