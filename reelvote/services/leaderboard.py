"""Leaderboard Aggregator — gathers completed events and folds them into oracle stats.

Invariants:
    - Recomputed from raw ballots on every call (nothing cached or stored)
    - Only frozen surveys and closed polls that are not archived are considered
    - Disabled ballots never count; anonymous ballots count toward winners only

Design Decisions:
    - Four batched queries (events, entries, ballots, participants) instead of per-event
      round-trips; the scoring itself is the pure fold in core/leaderboard.py
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.core.domain_types import EventId, EventKind, EventState
from reelvote.core.leaderboard import (
    CompletedEvent, LeaderboardEntry, ScoredBallot, fold_leaderboard,
)
from reelvote.models.ballot import Ballot
from reelvote.models.event_entry import EventEntry
from reelvote.models.participant import Participant
from reelvote.models.voting_event import VotingEvent

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardReport:
    entries: list[LeaderboardEntry] = field(default_factory=list)
    total_completed_events: int = 0


class LeaderboardAggregator:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def build(self) -> LeaderboardReport:
        events = await self._completed_events()
        if not events:
            return LeaderboardReport()

        by_id = {
            event.id: CompletedEvent(
                event_id=EventId(event.id), max_rank_n=event.max_rank_n,
            )
            for event in events
        }

        entries = await self.db.execute(
            select(EventEntry)
            .where(EventEntry.event_id.in_(by_id.keys()))
            .where(EventEntry.removed_at.is_(None))
            .order_by(EventEntry.created_at, EventEntry.id)
        )
        for entry in entries.scalars().all():
            by_id[entry.event_id].movies.append(entry.movie.to_ref())

        ballots = await self.db.execute(
            select(Ballot)
            .where(Ballot.event_id.in_(by_id.keys()))
            .where(Ballot.disabled.is_(False))
            .order_by(Ballot.created_at, Ballot.participant_id)
        )
        participant_ids: set[str] = set()
        for ballot in ballots.scalars().all():
            by_id[ballot.event_id].ballots.append(ScoredBallot(
                participant_id=ballot.participant_id,
                picks=ballot.picks(),
                display_name=ballot.display_name,
            ))
            participant_ids.add(ballot.participant_id)

        recognized: dict[str, str] = {}
        if participant_ids:
            result = await self.db.execute(
                select(Participant).where(Participant.id.in_(participant_ids))
            )
            recognized = {p.id: p.display_name for p in result.scalars().all()}

        ranked = fold_leaderboard(list(by_id.values()), recognized)
        logger.info(
            f"Leaderboard built over {len(events)} completed event(s)",
            extra={"affected_count": len(ranked)},
        )
        return LeaderboardReport(entries=ranked, total_completed_events=len(events))

    async def _completed_events(self) -> list[VotingEvent]:
        result = await self.db.execute(
            select(VotingEvent)
            .where(VotingEvent.archived.is_(False))
            .where(or_(
                and_(
                    VotingEvent.kind == EventKind.SURVEY.value,
                    VotingEvent.state == EventState.FROZEN.value,
                ),
                and_(
                    VotingEvent.kind == EventKind.POLL.value,
                    VotingEvent.state == EventState.CLOSED.value,
                ),
            ))
            .order_by(VotingEvent.created_at, VotingEvent.id)
        )
        return list(result.scalars().all())
