"""Service for detecting crew double-bookings between schedule events."""

from __future__ import annotations

import logging
from typing import Iterable

from crewsched.common.settings import ConflictScope, MissingEventPolicy
from crewsched.domain.errors import EventNotFoundError
from crewsched.domain.models import ConflictCheckResult, ConflictingEvent, Event
from crewsched.repos.ports import AssignmentReader, EventReader
from crewsched.services.overlap import instant_overlap

logger = logging.getLogger(__name__)


def find_conflicts(target: Event, existing_events: Iterable[Event]) -> list[Event]:
    """Return existing events that overlap with *target*, ordered by start time.

    Overlap rule: conflict if target.start < existing.end AND target.end > existing.start.
    Exact boundary touches (end == start) are NOT considered conflicts, and
    *target* never conflicts with itself.
    """
    conflicts = [
        event
        for event in existing_events
        if event.id != target.id
        and instant_overlap(
            target.start_time, target.end_time, event.start_time, event.end_time
        )
    ]
    return sorted(conflicts, key=lambda e: e.start_time)


class ConflictDetector:
    """Decides whether assigning a crew member to an event double-books them.

    ``scope`` controls which of the crew member's assignments count:
    ``"global"`` uses every assignment row regardless of project, ``"project"``
    only those in the target event's project.

    ``on_missing_event`` controls an unknown target event: ``"no_conflict"``
    reports no conflict (fails open), ``"error"`` raises EventNotFoundError.
    Callers must not rely on the default policy to validate that the event
    exists.

    Repository errors (InfrastructureError) propagate untouched.
    """

    def __init__(
        self,
        event_repo: EventReader,
        assignment_repo: AssignmentReader,
        scope: ConflictScope = "global",
        on_missing_event: MissingEventPolicy = "no_conflict",
    ) -> None:
        self.event_repo = event_repo
        self.assignment_repo = assignment_repo
        self.scope = scope
        self.on_missing_event = on_missing_event

    def detect_conflicts(self, crew_id: int, event_id: int) -> ConflictCheckResult:
        logger.debug("Checking conflicts for crew_id=%s event_id=%s", crew_id, event_id)

        target = self.event_repo.get(event_id)
        if target is None:
            if self.on_missing_event == "error":
                raise EventNotFoundError(event_id)
            logger.info("Event %s not found; reporting no conflict", event_id)
            return ConflictCheckResult()

        assignments = self.assignment_repo.list_by_crew(crew_id)
        if self.scope == "project":
            assignments = [a for a in assignments if a.project_id == target.project_id]

        # dict keeps first-seen order while dropping duplicate assignments
        event_ids = list(
            dict.fromkeys(a.event_id for a in assignments if a.event_id is not None)
        )
        if not event_ids:
            logger.debug("Crew %s has no existing assignments", crew_id)
            return ConflictCheckResult()

        assigned_events = self.event_repo.list_by_ids(event_ids)
        conflicts = find_conflicts(target, assigned_events)

        logger.info(
            "Crew %s vs event %s (%s): %d of %d assigned events conflict",
            crew_id,
            event_id,
            target.title,
            len(conflicts),
            len(assigned_events),
        )
        return ConflictCheckResult(
            has_conflict=bool(conflicts),
            conflicts=[
                ConflictingEvent(
                    event_id=c.id,
                    event_title=c.title,
                    start_time=c.start_time,
                    end_time=c.end_time,
                )
                for c in conflicts
            ],
        )
