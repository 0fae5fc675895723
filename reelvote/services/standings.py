"""Standings query — loads one event's entries and enabled ballots and scores them."""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.core.scoring import Standing, calculate_standings, points_breakdown
from reelvote.models.ballot import Ballot
from reelvote.models.voting_event import VotingEvent
from reelvote.services.event_lifecycle import active_entries, load_event


@dataclass
class StandingsReport:
    event: VotingEvent
    standings: list[Standing] = field(default_factory=list)
    ballot_count: int = 0
    points: list[dict] = field(default_factory=list)


async def load_standings(db: AsyncSession, event_id: UUID) -> StandingsReport:
    """Current standings for any event; disabled ballots are ignored."""
    event = await load_event(db, event_id)
    entries = await active_entries(db, event.id)
    result = await db.execute(
        select(Ballot)
        .where(Ballot.event_id == event.id)
        .where(Ballot.disabled.is_(False))
    )
    ballots = list(result.scalars().all())

    standings = calculate_standings(
        (b.picks() for b in ballots),
        [e.movie.to_ref() for e in entries],
        event.max_rank_n,
    )
    return StandingsReport(
        event=event,
        standings=standings,
        ballot_count=len(ballots),
        points=points_breakdown(event.max_rank_n),
    )
