"""Event Routes — surveys and polls: CRUD, lifecycle, entries and standings.

Invariants:
    - Every handler is one service call plus response mapping
    - Domain errors propagate to the global ReelVoteError handler
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.config import get_settings
from reelvote.infrastructure.database import get_db
from reelvote.schemas.event import (
    ArchiveToggle, EntryCreate, EntryRemoval, EntryResponse, EventCreate,
    EventResponse, EventUpdate, StandingResponse, StandingsResponse, StateChange,
)
from reelvote.services.event_lifecycle import EventLifecycle
from reelvote.services.event_maintenance import EventMaintenance
from reelvote.services.standings import load_standings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])


def _lifecycle(db: AsyncSession) -> EventLifecycle:
    return EventLifecycle(db, default_max_rank_n=get_settings().default_max_rank_n)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(body: EventCreate, db: AsyncSession = Depends(get_db)):
    return await _lifecycle(db).create_event(
        body.kind, body.title,
        max_rank_n=body.max_rank_n,
        description=body.description,
        created_by=body.created_by,
        closes_at=body.closes_at,
    )


@router.get("", response_model=list[EventResponse])
async def list_events(
    kind: str | None = Query(None, pattern="^(survey|poll)$"),
    state: str | None = Query(None, pattern="^(draft|live|frozen|closed)$"),
    include_archived: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    return await _lifecycle(db).list_events(
        kind=kind, state=state, include_archived=include_archived,
    )


@router.get("/live")
async def live_events(db: AsyncSession = Depends(get_db)):
    """The live survey (or null) and every live poll."""
    lifecycle = _lifecycle(db)
    survey = await lifecycle.live_survey()
    polls = await lifecycle.live_polls()
    return {
        "survey": EventResponse.model_validate(survey).model_dump(mode="json") if survey else None,
        "polls": [EventResponse.model_validate(p).model_dump(mode="json") for p in polls],
    }


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: UUID, db: AsyncSession = Depends(get_db)):
    return await _lifecycle(db).get_event(event_id)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID, body: EventUpdate, db: AsyncSession = Depends(get_db),
):
    return await _lifecycle(db).update_event(
        event_id,
        title=body.title,
        description=body.description,
        max_rank_n=body.max_rank_n,
        closes_at=body.closes_at,
        clear_closes_at="closes_at" in body.model_fields_set and body.closes_at is None,
    )


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: UUID, db: AsyncSession = Depends(get_db)):
    await _lifecycle(db).delete_event(event_id)


@router.post("/{event_id}/state", response_model=EventResponse)
async def change_state(
    event_id: UUID, body: StateChange, db: AsyncSession = Depends(get_db),
):
    return await _lifecycle(db).change_state(event_id, body.state)


@router.post("/{event_id}/archive", response_model=EventResponse)
async def set_archived(
    event_id: UUID, body: ArchiveToggle, db: AsyncSession = Depends(get_db),
):
    return await _lifecycle(db).set_archived(event_id, body.archived)


# --- Entries -----------------------------------------------------------------

@router.get("/{event_id}/entries", response_model=list[EntryResponse])
async def list_entries(
    event_id: UUID,
    include_removed: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    return await _lifecycle(db).list_entries(event_id, include_removed=include_removed)


@router.post(
    "/{event_id}/entries", response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_entry(
    event_id: UUID, body: EntryCreate, db: AsyncSession = Depends(get_db),
):
    return await _lifecycle(db).add_entry(event_id, body.movie_id, added_by=body.added_by)


@router.delete("/{event_id}/entries/{movie_id}", response_model=EntryRemoval)
async def remove_entry(
    event_id: UUID, movie_id: UUID, db: AsyncSession = Depends(get_db),
):
    affected = await EventMaintenance(db).remove_entry(event_id, movie_id)
    return EntryRemoval(movie_id=movie_id, affected_count=affected)


@router.get("/{event_id}/standings", response_model=StandingsResponse)
async def get_standings(event_id: UUID, db: AsyncSession = Depends(get_db)):
    report = await load_standings(db, event_id)
    return StandingsResponse(
        event=EventResponse.model_validate(report.event),
        standings=[StandingResponse.model_validate(s) for s in report.standings],
        ballot_count=report.ballot_count,
        points=report.points,
    )
