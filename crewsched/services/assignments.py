"""Service for assigning crew members to schedule events."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from contextlib import nullcontext

from crewsched.domain.errors import CrewConflictError
from crewsched.domain.models import CrewAssignment, CrewAssignmentCreate
from crewsched.repos.memory import CrewAssignmentRepository
from crewsched.services.conflicts import ConflictDetector

logger = logging.getLogger(__name__)


class CrewLocks:
    """One lock per crew member, created on first use.

    Only serializes callers inside this process; it does not replace a
    database-level constraint when several workers share a store.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = defaultdict(threading.Lock)

    def for_crew(self, crew_id: int) -> threading.Lock:
        with self._guard:
            return self._locks[crew_id]

    def discard(self, crew_id: int) -> None:
        """Forget the lock of a crew member who left the roster."""
        with self._guard:
            self._locks.pop(crew_id, None)

    def __len__(self) -> int:
        return len(self._locks)


def assign_crew(
    detector: ConflictDetector,
    assignment_repo: CrewAssignmentRepository,
    project_id: int,
    payload: CrewAssignmentCreate,
    *,
    check_conflicts: bool = True,
    locks: CrewLocks | None = None,
) -> CrewAssignment:
    """Check the crew member for double-booking, then create the assignment.

    Without *locks*, the check and the create are two independent steps: two
    concurrent calls for the same crew member and overlapping events can both
    pass the check and both be stored.

    Raises CrewConflictError when the check finds overlapping bookings.
    """
    guard = locks.for_crew(payload.crew_id) if locks is not None else nullcontext()
    with guard:
        if check_conflicts:
            result = detector.detect_conflicts(payload.crew_id, payload.event_id)
            if result.has_conflict:
                logger.info(
                    "Blocked assignment of crew %s to event %s: %d conflicts",
                    payload.crew_id,
                    payload.event_id,
                    len(result.conflicts),
                )
                raise CrewConflictError(payload.crew_id, payload.event_id, result)

        assignment = assignment_repo.create(project_id, payload)

    logger.info(
        "Assigned crew %s to event %s (assignment %s)",
        assignment.crew_id,
        assignment.event_id,
        assignment.id,
    )
    return assignment
