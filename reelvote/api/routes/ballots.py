"""Ballot Routes — submit, read and administer ranked ballots."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.infrastructure.database import get_db
from reelvote.schemas.ballot import (
    BallotResponse, BallotSubmit, ChangeLogResponse, DisabledToggle,
)
from reelvote.services.ballot_store import BallotStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["ballots"])


@router.put("/{event_id}/ballots/{participant_id}", response_model=BallotResponse)
async def submit_ballot(
    event_id: UUID,
    participant_id: str,
    body: BallotSubmit,
    db: AsyncSession = Depends(get_db),
):
    """Create or replace this participant's ballot."""
    return await BallotStore(db).submit(
        event_id, participant_id,
        [p.to_pick() for p in body.ranks],
        display_name=body.display_name,
    )


@router.get("/{event_id}/ballots/{participant_id}", response_model=BallotResponse)
async def get_ballot(
    event_id: UUID, participant_id: str, db: AsyncSession = Depends(get_db),
):
    return await BallotStore(db).get_ballot(event_id, participant_id)


@router.get("/{event_id}/ballots", response_model=list[BallotResponse])
async def list_ballots(
    event_id: UUID,
    include_disabled: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    return await BallotStore(db).list_ballots(event_id, include_disabled=include_disabled)


@router.post(
    "/{event_id}/ballots/{participant_id}/disabled", response_model=BallotResponse,
)
async def set_disabled(
    event_id: UUID,
    participant_id: str,
    body: DisabledToggle,
    db: AsyncSession = Depends(get_db),
):
    return await BallotStore(db).set_disabled(event_id, participant_id, body.disabled)


@router.get("/{event_id}/change-log", response_model=list[ChangeLogResponse])
async def change_log(
    event_id: UUID,
    participant_id: str | None = Query(None, max_length=64),
    db: AsyncSession = Depends(get_db),
):
    """Ballot audit trail, newest first."""
    return await BallotStore(db).change_logs(event_id, participant_id=participant_id)
