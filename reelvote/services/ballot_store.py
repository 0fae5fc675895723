"""Ballot Store — validated upsert of ranked ballots with an append-only change log.

Invariants:
    - Every check (event state, participant, ranks, movies) runs before any write
    - One ballot row per (event, participant); resubmission replaces its ranks
    - Every mutation appends exactly one BallotChangeLog row in the same transaction
    - Concurrent first submissions: the loser of the unique-constraint race retries as an update

Design Decisions:
    - Old rank rows are flushed away before new ones are added, so the
      (ballot_id, rank) unique constraint never sees both generations at once
    - Survey ballots require a registered participant; poll ballots accept anonymous ids
    - The event row is read FOR SHARE: a concurrent freeze or movie removal waits,
      other participants submitting to the same event do not
"""

import logging
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.core.domain_types import (
    ChangeReason, EventKind, MovieId, RankPick, picks_to_payload,
)
from reelvote.core.enforce_lifecycle import check_accepting_ballots
from reelvote.core.errors import ErrorContext, NotFoundError, ValidationError
from reelvote.core.validate_ballot import (
    normalize_display_name, validate_participant_id, validate_ranks,
)
from reelvote.models.ballot import Ballot, BallotRank
from reelvote.models.ballot_change_log import BallotChangeLog
from reelvote.models.event_entry import EventEntry
from reelvote.models.participant import Participant
from reelvote.services.event_lifecycle import load_event

logger = logging.getLogger(__name__)


def append_change_log(
    db: AsyncSession,
    event_id: UUID,
    participant_id: str,
    previous: Sequence[RankPick] | None,
    new: Sequence[RankPick],
    reason: ChangeReason,
) -> BallotChangeLog:
    """Stage one audit row; the caller commits."""
    log = BallotChangeLog(
        event_id=event_id,
        participant_id=participant_id,
        previous_ranks=picks_to_payload(previous),
        new_ranks=picks_to_payload(new),
        reason=reason.value,
    )
    db.add(log)
    return log


class BallotStore:
    """Ballot submission and administration for one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(
        self,
        event_id: UUID,
        participant_id: str,
        ranks: Sequence[RankPick],
        display_name: str | None = None,
    ) -> Ballot:
        """Create or replace a participant's ballot."""
        try:
            return await self._submit_once(event_id, participant_id, ranks, display_name)
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                "Concurrent first submission, retrying as update",
                extra={"event_id": event_id, "participant_id": participant_id},
            )
            return await self._submit_once(event_id, participant_id, ranks, display_name)

    async def _submit_once(
        self,
        event_id: UUID,
        participant_id: str,
        ranks: Sequence[RankPick],
        display_name: str | None,
    ) -> Ballot:
        participant_id = validate_participant_id(participant_id)
        display_name = normalize_display_name(display_name)
        context = ErrorContext(event_id=str(event_id), participant_id=participant_id)

        event = await load_event(self.db, event_id, for_share=True)
        kind = event.event_kind
        check_accepting_ballots(kind, event.event_state, context)

        if kind == EventKind.SURVEY:
            registered = await self.db.get(Participant, participant_id)
            if registered is None:
                raise ValidationError(
                    "Surveys only accept ballots from registered participants",
                    field="participant_id", code="UNREGISTERED_PARTICIPANT",
                    context=context,
                )

        active_ids = await self._active_movie_ids(event.id)
        ordered = validate_ranks(kind, ranks, event.max_rank_n, active_ids, context)

        result = await self.db.execute(
            select(Ballot)
            .where(Ballot.event_id == event.id)
            .where(Ballot.participant_id == participant_id)
            .with_for_update()
        )
        ballot = result.scalar_one_or_none()
        now = datetime.now(timezone.utc)

        if ballot is None:
            previous = None
            ballot = Ballot(
                event_id=event.id,
                participant_id=participant_id,
                display_name=display_name,
                disabled=False,
                ranks=[BallotRank(rank=p.rank, movie_id=p.movie_id) for p in ordered],
            )
            self.db.add(ballot)
        else:
            previous = ballot.picks()
            ballot.ranks.clear()
            await self.db.flush()
            ballot.ranks.extend(
                BallotRank(rank=p.rank, movie_id=p.movie_id) for p in ordered
            )
            if display_name is not None:
                ballot.display_name = display_name
            ballot.updated_at = now

        append_change_log(
            self.db, event.id, participant_id, previous, ordered,
            ChangeReason.PARTICIPANT_UPDATE,
        )
        await self.db.commit()

        logger.info(
            f"Ballot {'created' if previous is None else 'updated'} "
            f"with {len(ordered)} pick(s)",
            extra={"event_id": event.id, "participant_id": participant_id},
        )
        return ballot

    async def _active_movie_ids(self, event_id: UUID) -> set[MovieId]:
        result = await self.db.execute(
            select(EventEntry.movie_id)
            .where(EventEntry.event_id == event_id)
            .where(EventEntry.removed_at.is_(None))
        )
        return {MovieId(movie_id) for movie_id in result.scalars().all()}

    async def _find(self, event_id: UUID, participant_id: str) -> Ballot:
        result = await self.db.execute(
            select(Ballot)
            .where(Ballot.event_id == event_id)
            .where(Ballot.participant_id == participant_id)
        )
        ballot = result.scalar_one_or_none()
        if ballot is None:
            raise NotFoundError(
                "Ballot", participant_id,
                ErrorContext(event_id=str(event_id), participant_id=participant_id),
            )
        return ballot

    async def get_ballot(self, event_id: UUID, participant_id: str) -> Ballot:
        event = await load_event(self.db, event_id)
        return await self._find(event.id, participant_id)

    async def list_ballots(
        self, event_id: UUID, include_disabled: bool = True,
    ) -> list[Ballot]:
        event = await load_event(self.db, event_id)
        query = (
            select(Ballot)
            .where(Ballot.event_id == event.id)
            .order_by(Ballot.created_at, Ballot.participant_id)
        )
        if not include_disabled:
            query = query.where(Ballot.disabled.is_(False))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def set_disabled(
        self, event_id: UUID, participant_id: str, disabled: bool,
    ) -> Ballot:
        """Exclude (or re-include) a ballot from scoring; allowed in any state."""
        event = await load_event(self.db, event_id)
        ballot = await self._find(event.id, participant_id)
        ballot.disabled = disabled
        ballot.updated_at = datetime.now(timezone.utc)
        await self.db.commit()
        logger.info(
            f"Ballot {'disabled' if disabled else 'enabled'}",
            extra={"event_id": event.id, "participant_id": participant_id},
        )
        return ballot

    async def change_logs(
        self, event_id: UUID, participant_id: str | None = None,
    ) -> list[BallotChangeLog]:
        """Audit trail, newest first."""
        event = await load_event(self.db, event_id)
        query = (
            select(BallotChangeLog)
            .where(BallotChangeLog.event_id == event.id)
            .order_by(BallotChangeLog.created_at.desc(), BallotChangeLog.id)
        )
        if participant_id is not None:
            query = query.where(BallotChangeLog.participant_id == participant_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())
