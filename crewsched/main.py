"""FastAPI application: entry point for the crew scheduling service."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, time
from typing import Iterator

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from crewsched.common.logging import configure_logging
from crewsched.common.settings import get_settings
from crewsched.domain.errors import CrewConflictError, InfrastructureError, NotFoundError
from crewsched.domain.models import (
    AvailabilityCalendar,
    CheckConflictsRequest,
    ConflictCheckResult,
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
from crewsched.repos.memory import CrewAssignmentRepository, CrewRepository, EventRepository
from crewsched.services.assignments import CrewLocks, assign_crew
from crewsched.services.availability import (
    AvailabilityAggregator,
    degraded_calendar,
    month_bounds,
)
from crewsched.services.conflicts import ConflictDetector
from crewsched.services.overlap import day_overlap

cfg = get_settings()
logger = configure_logging(cfg)

app = FastAPI(title="Crew Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_repo = EventRepository()
crew_repo = CrewRepository()
assignment_repo = CrewAssignmentRepository()
crew_locks = CrewLocks()


def get_detector() -> ConflictDetector:
    settings = get_settings()
    return ConflictDetector(
        event_repo,
        assignment_repo,
        scope=settings.conflict_scope,
        on_missing_event=settings.on_missing_event,
    )


def get_aggregator() -> AvailabilityAggregator:
    return AvailabilityAggregator(
        crew_repo, event_repo, assignment_repo, tz=get_settings().calendar_tz
    )


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(NotFoundError)
def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(CrewConflictError)
def _crew_conflict(request: Request, exc: CrewConflictError) -> JSONResponse:
    content = {"detail": str(exc), **exc.result.model_dump()}
    return JSONResponse(status_code=409, content=jsonable_encoder(content))


@app.exception_handler(InfrastructureError)
def _infrastructure(request: Request, exc: InfrastructureError) -> JSONResponse:
    logger.error("Data store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Data store unavailable"})


@contextmanager
def _unprocessable_on_invalid() -> Iterator[None]:
    """Turn a failed re-validation of a merged update into a 422."""
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()[0]["msg"]) from exc


def _event_in_project(project_id: int, event_id: int) -> Event:
    event = event_repo.get(event_id)
    if event is None or event.project_id != project_id:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _crew_in_project(project_id: int, crew_id: int) -> Crew:
    member = crew_repo.get(crew_id)
    if member is None or member.project_id != project_id:
        raise HTTPException(status_code=404, detail="Crew member not found")
    return member


def _assignment_in_project(project_id: int, assignment_id: int) -> CrewAssignment:
    assignment = assignment_repo.get(assignment_id)
    if assignment is None or assignment.project_id != project_id:
        raise HTTPException(status_code=404, detail="Crew assignment not found")
    return assignment


# ── Events ────────────────────────────────────────────────────────────


@app.get("/projects/{project_id}/events", response_model=list[Event])
def list_events(
    project_id: int, start: date | None = None, end: date | None = None
) -> list[Event]:
    """Return a project's events, optionally only those touching [start, end]."""
    events = event_repo.list_for_project(project_id)
    if start is None and end is None:
        return events
    lo = datetime.combine(start or date.min, time.min)
    hi = datetime.combine(end or date.max, time.min)
    return [e for e in events if day_overlap(e.start_time, e.end_time, lo, hi)]


@app.post("/projects/{project_id}/events", response_model=Event, status_code=201)
def create_event(project_id: int, payload: EventCreate) -> Event:
    """Add an event to the project schedule."""
    return event_repo.create(project_id, payload)


@app.get("/projects/{project_id}/events/{event_id}", response_model=Event)
def get_event(project_id: int, event_id: int) -> Event:
    """Return a single event by id."""
    return _event_in_project(project_id, event_id)


@app.patch("/projects/{project_id}/events/{event_id}", response_model=Event)
def update_event(project_id: int, event_id: int, changes: EventUpdate) -> Event:
    """Apply a partial update; the merged event must still end after it starts."""
    _event_in_project(project_id, event_id)
    with _unprocessable_on_invalid():
        return event_repo.update(event_id, changes)


@app.delete("/projects/{project_id}/events/{event_id}", status_code=204)
def delete_event(project_id: int, event_id: int) -> Response:
    """Delete an event. Its crew assignments are left in place."""
    _event_in_project(project_id, event_id)
    event_repo.delete(event_id)
    return Response(status_code=204)


# ── Crew ──────────────────────────────────────────────────────────────


@app.get("/projects/{project_id}/crew", response_model=list[Crew])
def list_crew(project_id: int) -> list[Crew]:
    """Return the project crew roster."""
    return crew_repo.list_for_project(project_id)


@app.post("/projects/{project_id}/crew", response_model=Crew, status_code=201)
def create_crew(project_id: int, payload: CrewCreate) -> Crew:
    """Add a crew member to the project roster."""
    return crew_repo.create(project_id, payload)


@app.patch("/projects/{project_id}/crew/{crew_id}", response_model=Crew)
def update_crew(project_id: int, crew_id: int, changes: CrewUpdate) -> Crew:
    """Apply a partial update to a crew member."""
    _crew_in_project(project_id, crew_id)
    with _unprocessable_on_invalid():
        return crew_repo.update(crew_id, changes)


@app.delete("/projects/{project_id}/crew/{crew_id}", status_code=204)
def delete_crew(project_id: int, crew_id: int) -> Response:
    """Remove a crew member from the roster."""
    _crew_in_project(project_id, crew_id)
    crew_repo.delete(crew_id)
    crew_locks.discard(crew_id)
    return Response(status_code=204)


# ── Crew assignments ──────────────────────────────────────────────────


@app.get("/projects/{project_id}/crew-assignments", response_model=list[CrewAssignment])
def list_crew_assignments(project_id: int) -> list[CrewAssignment]:
    """Return every crew assignment in the project."""
    return assignment_repo.list_for_project(project_id)


@app.get(
    "/projects/{project_id}/events/{event_id}/crew-assignments",
    response_model=list[CrewAssignment],
)
def list_event_crew_assignments(project_id: int, event_id: int) -> list[CrewAssignment]:
    """Return the crew assignments of one event."""
    _event_in_project(project_id, event_id)
    return assignment_repo.list_by_event(event_id)


@app.post(
    "/projects/{project_id}/crew-assignments/check-conflicts",
    response_model=ConflictCheckResult,
)
def check_crew_conflicts(project_id: int, body: CheckConflictsRequest) -> ConflictCheckResult:
    """Report the crew member's bookings that overlap the given event."""
    return get_detector().detect_conflicts(body.crew_id, body.event_id)


@app.post(
    "/projects/{project_id}/crew-assignments",
    response_model=CrewAssignment,
    status_code=201,
)
def create_crew_assignment(
    project_id: int, payload: CrewAssignmentCreate, check_conflicts: bool = True
) -> CrewAssignment:
    """Assign a crew member to an event; 409 if that would double-book them."""
    _event_in_project(project_id, payload.event_id)
    _crew_in_project(project_id, payload.crew_id)
    locks = crew_locks if get_settings().serialize_crew_assignments else None
    return assign_crew(
        get_detector(),
        assignment_repo,
        project_id,
        payload,
        check_conflicts=check_conflicts,
        locks=locks,
    )


@app.patch(
    "/projects/{project_id}/crew-assignments/{assignment_id}",
    response_model=CrewAssignment,
)
def update_crew_assignment(
    project_id: int, assignment_id: int, changes: CrewAssignmentUpdate
) -> CrewAssignment:
    """Update who fills an assignment or its status."""
    _assignment_in_project(project_id, assignment_id)
    with _unprocessable_on_invalid():
        return assignment_repo.update(assignment_id, changes)


@app.delete("/projects/{project_id}/crew-assignments/{assignment_id}", status_code=204)
def delete_crew_assignment(project_id: int, assignment_id: int) -> Response:
    """Remove a single crew assignment."""
    _assignment_in_project(project_id, assignment_id)
    assignment_repo.delete(assignment_id)
    return Response(status_code=204)


# ── Availability calendar ─────────────────────────────────────────────


@app.get("/projects/{project_id}/crew-availability", response_model=AvailabilityCalendar)
def crew_availability(
    project_id: int,
    year: int | None = Query(default=None, ge=1, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    start: date | None = None,
    end: date | None = None,
) -> AvailabilityCalendar:
    """Per-day booking counts for a month (year+month) or a date range (start+end).

    If the data store fails, an "unknown" calendar is returned instead of an error.
    """
    if year is not None and month is not None:
        start, end = month_bounds(year, month)
    elif start is None or end is None:
        raise HTTPException(
            status_code=422, detail="Pass either year and month, or start and end"
        )
    if end < start:
        raise HTTPException(status_code=422, detail="end must not be before start")
    max_days = get_settings().max_range_days
    if (end - start).days + 1 > max_days:
        raise HTTPException(
            status_code=422, detail=f"Range may span at most {max_days} days"
        )

    try:
        return get_aggregator().range_calendar(project_id, start, end)
    except InfrastructureError as exc:
        logger.warning("Availability for project %s degraded: %s", project_id, exc)
        return degraded_calendar(start, end)
