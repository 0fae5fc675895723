"""Event Maintenance — removing a movie from an event and cascading it into ballots.

Invariants:
    - Remaining picks keep their rank numbers (a gap is left, never renumbered)
    - Each affected ballot gets exactly one movie_removed change-log row
    - Disabled ballots are cleaned too
    - All ballot edits and the entry removal commit together
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.core.domain_types import ChangeReason, EventState, MovieId
from reelvote.core.enforce_lifecycle import check_entries_mutable
from reelvote.core.errors import ErrorContext, NotFoundError
from reelvote.core.validate_ballot import strip_movie
from reelvote.models.ballot import Ballot, BallotRank
from reelvote.models.event_entry import EventEntry
from reelvote.services.ballot_store import append_change_log
from reelvote.services.event_lifecycle import load_event

logger = logging.getLogger(__name__)


class EventMaintenance:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def remove_entry(self, event_id: UUID, movie_id: UUID) -> int:
        """Remove a movie from an event.

        Drafts drop the entry outright. Live events strip the movie from
        every ballot that ranked it and soft-remove the entry.

        Returns:
            Number of ballots that were modified.
        """
        event = await load_event(self.db, event_id, for_update=True)
        context = ErrorContext(event_id=str(event.id))
        check_entries_mutable(event.event_kind, event.event_state, context)

        result = await self.db.execute(
            select(EventEntry)
            .where(EventEntry.event_id == event.id)
            .where(EventEntry.movie_id == movie_id)
            .where(EventEntry.removed_at.is_(None))
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Entry", str(movie_id), context)

        if event.event_state == EventState.DRAFT:
            await self.db.delete(entry)
            await self.db.commit()
            logger.info(
                "Removed movie from draft",
                extra={"event_id": event.id, "movie_id": movie_id, "affected_count": 0},
            )
            return 0

        ballots = await self.db.execute(
            select(Ballot)
            .where(Ballot.event_id == event.id)
            .where(Ballot.id.in_(
                select(BallotRank.ballot_id).where(BallotRank.movie_id == movie_id)
            ))
            .order_by(Ballot.created_at)
            .with_for_update()
        )
        now = datetime.now(timezone.utc)
        affected = 0
        for ballot in ballots.scalars().all():
            previous = ballot.picks()
            for rank_row in [r for r in ballot.ranks if r.movie_id == movie_id]:
                ballot.ranks.remove(rank_row)
            ballot.updated_at = now
            append_change_log(
                self.db, event.id, ballot.participant_id,
                previous, strip_movie(previous, MovieId(movie_id)),
                ChangeReason.MOVIE_REMOVED,
            )
            affected += 1

        entry.removed_at = now
        event.updated_at = now
        await self.db.commit()

        logger.info(
            f"Removed movie from live {event.kind}, {affected} ballot(s) updated",
            extra={"event_id": event.id, "movie_id": movie_id, "affected_count": affected},
        )
        return affected
