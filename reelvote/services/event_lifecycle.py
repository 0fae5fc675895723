"""Event Lifecycle — creation, editing, state transitions and entry management.

Invariants:
    - Every mutation re-reads the event inside the caller's transaction before checking guards
    - Going live as a survey re-checks "is any survey live" and writes the new state in
      one transaction; the partial unique index turns a lost race into ConflictError
    - Terminal timestamps (frozen_at / closed_at) stamped exactly once
    - One commit per public operation

Design Decisions:
    - Guards are pure (core/enforce_lifecycle.py); this module only gathers their inputs
    - SELECT ... FOR UPDATE on the event and on the live survey row (no-op on SQLite)
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.core.domain_types import (
    DEFAULT_RANK_N, EventKind, EventState,
)
from reelvote.core.enforce_lifecycle import (
    check_archivable, check_deletable, check_editable, check_entries_mutable,
    check_transition, parse_kind, parse_target_state, validate_closes_at,
    validate_max_rank_n, validate_title,
)
from reelvote.core.errors import (
    ConflictError, ErrorContext, NotFoundError, ValidationError,
)
from reelvote.models.event_entry import EventEntry
from reelvote.models.movie import Movie
from reelvote.models.voting_event import VotingEvent

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def select_event(
    event_id: UUID, for_update: bool = False, for_share: bool = False,
) -> Select:
    """for_update takes an exclusive row lock (state changes, entry edits); for_share
    takes a shared one, which blocks those writers but not other share holders.
    """
    query = select(VotingEvent).where(VotingEvent.id == event_id)
    if for_update:
        return query.with_for_update()
    if for_share:
        return query.with_for_update(read=True)
    return query


async def load_event(
    db: AsyncSession,
    event_id: UUID,
    for_update: bool = False,
    for_share: bool = False,
) -> VotingEvent:
    """Get event or raise NotFoundError. Shared by every voting service."""
    result = await db.execute(select_event(event_id, for_update, for_share))
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("Event", str(event_id))
    return event


async def active_entries(db: AsyncSession, event_id: UUID) -> list[EventEntry]:
    """Non-removed entries in insertion order, movies eagerly joined."""
    result = await db.execute(
        select(EventEntry)
        .where(EventEntry.event_id == event_id)
        .where(EventEntry.removed_at.is_(None))
        .order_by(EventEntry.created_at, EventEntry.id)
    )
    return list(result.scalars().all())


class EventLifecycle:
    """Voting event state machine and entry management."""

    def __init__(self, db: AsyncSession, default_max_rank_n: int = DEFAULT_RANK_N):
        self.db = db
        self.default_max_rank_n = default_max_rank_n

    # --- Creation & editing ------------------------------------------------

    async def create_event(
        self,
        kind: str | EventKind,
        title: str,
        max_rank_n: int | None = None,
        description: str | None = None,
        created_by: str | None = None,
        closes_at: datetime | None = None,
    ) -> VotingEvent:
        """Create a new event in draft."""
        event_kind = parse_kind(kind)
        event = VotingEvent(
            kind=event_kind.value,
            title=validate_title(title),
            description=(description or "").strip() or None,
            state=EventState.DRAFT.value,
            max_rank_n=validate_max_rank_n(
                self.default_max_rank_n if max_rank_n is None else max_rank_n,
            ),
            archived=False,
            created_by=created_by,
            closes_at=validate_closes_at(closes_at),
        )
        self.db.add(event)
        await self.db.commit()
        logger.info(
            f"Created {event_kind.value} '{event.title}'",
            extra={"event_id": event.id},
        )
        return event

    async def get_event(self, event_id: UUID) -> VotingEvent:
        return await load_event(self.db, event_id)

    async def list_events(
        self,
        kind: str | EventKind | None = None,
        state: str | EventState | None = None,
        include_archived: bool = True,
    ) -> list[VotingEvent]:
        """Events newest first, optionally filtered."""
        query = select(VotingEvent).order_by(
            VotingEvent.created_at.desc(), VotingEvent.id,
        )
        if kind is not None:
            query = query.where(VotingEvent.kind == parse_kind(kind).value)
        if state is not None:
            try:
                state = EventState(state)
            except ValueError:
                raise ValidationError(
                    f"Unknown state '{state}'", field="state", code="INVALID_STATE",
                )
            query = query.where(VotingEvent.state == state.value)
        if not include_archived:
            query = query.where(VotingEvent.archived.is_(False))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def live_survey(self) -> VotingEvent | None:
        """The one live survey, if any."""
        result = await self.db.execute(
            select(VotingEvent)
            .where(VotingEvent.kind == EventKind.SURVEY.value)
            .where(VotingEvent.state == EventState.LIVE.value)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def live_polls(self) -> list[VotingEvent]:
        return await self.list_events(kind=EventKind.POLL, state=EventState.LIVE)

    async def update_event(
        self,
        event_id: UUID,
        title: str | None = None,
        description: str | None = None,
        max_rank_n: int | None = None,
        closes_at: datetime | None = None,
        clear_closes_at: bool = False,
    ) -> VotingEvent:
        """Edit title/description/closing time (until terminal) and max rank (draft only)."""
        event = await load_event(self.db, event_id, for_update=True)
        changes_max_rank = max_rank_n is not None and max_rank_n != event.max_rank_n
        check_editable(
            event.event_kind, event.event_state, changes_max_rank,
            context=ErrorContext(event_id=str(event.id)),
        )
        if title is not None:
            event.title = validate_title(title)
        if description is not None:
            event.description = description.strip() or None
        if changes_max_rank:
            event.max_rank_n = validate_max_rank_n(max_rank_n)
        if clear_closes_at:
            event.closes_at = None
        elif closes_at is not None:
            event.closes_at = validate_closes_at(closes_at)
        event.updated_at = _now()
        await self.db.commit()
        return event

    async def delete_event(self, event_id: UUID) -> None:
        """Delete a draft event and its entries."""
        event = await load_event(self.db, event_id, for_update=True)
        check_deletable(
            event.event_kind, event.event_state,
            context=ErrorContext(event_id=str(event.id)),
        )
        await self.db.execute(
            delete(EventEntry).where(EventEntry.event_id == event.id),
        )
        await self.db.delete(event)
        await self.db.commit()
        logger.info(f"Deleted draft {event.kind}", extra={"event_id": event_id})

    async def set_archived(self, event_id: UUID, archived: bool) -> VotingEvent:
        """Archive or unarchive a completed event."""
        event = await load_event(self.db, event_id, for_update=True)
        check_archivable(
            event.event_kind, event.event_state,
            context=ErrorContext(event_id=str(event.id)),
        )
        event.archived = archived
        event.updated_at = _now()
        await self.db.commit()
        return event

    # --- State machine -----------------------------------------------------

    async def change_state(
        self, event_id: UUID, new_state: str | EventState,
    ) -> VotingEvent:
        """Atomically check and apply one lifecycle transition."""
        event = await load_event(self.db, event_id, for_update=True)
        kind = event.event_kind
        target = parse_target_state(kind, new_state)
        context = ErrorContext(event_id=str(event.id))

        entry_count = 0
        if target == EventState.LIVE:
            entry_count = await self._count_active_entries(event.id)
        check_transition(kind, event.event_state, target, entry_count, context)

        if target == EventState.LIVE and kind == EventKind.SURVEY:
            await self._ensure_no_other_live_survey(event.id, context)

        now = _now()
        event.state = target.value
        event.updated_at = now
        if target == EventState.LIVE:
            event.live_at = now
        elif target == EventState.FROZEN:
            event.frozen_at = now
        elif target == EventState.CLOSED:
            event.closed_at = now

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "Lost live-survey race at commit",
                extra={"event_id": event_id, "error_code": "SURVEY_ALREADY_LIVE"},
            )
            raise ConflictError(
                "Another survey is already live",
                code="SURVEY_ALREADY_LIVE", context=context,
            ) from e

        logger.info(
            f"{kind.value.capitalize()} is now {target.value}",
            extra={"event_id": event.id, "state": target.value},
        )
        return event

    async def _count_active_entries(self, event_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(EventEntry.id))
            .where(EventEntry.event_id == event_id)
            .where(EventEntry.removed_at.is_(None))
        )
        return result.scalar_one()

    async def _ensure_no_other_live_survey(
        self, event_id: UUID, context: ErrorContext,
    ) -> None:
        result = await self.db.execute(
            select(VotingEvent.id)
            .where(VotingEvent.kind == EventKind.SURVEY.value)
            .where(VotingEvent.state == EventState.LIVE.value)
            .where(VotingEvent.id != event_id)
            .with_for_update()
        )
        other = result.scalars().first()
        if other is not None:
            logger.warning(
                "Rejected second live survey",
                extra={"event_id": event_id, "error_code": "SURVEY_ALREADY_LIVE"},
            )
            raise ConflictError(
                "Another survey is already live",
                code="SURVEY_ALREADY_LIVE", context=context,
            )

    # --- Entries -----------------------------------------------------------

    async def add_entry(
        self, event_id: UUID, movie_id: UUID, added_by: str | None = None,
    ) -> EventEntry:
        """Attach a movie; restores a previously removed entry for the same movie."""
        event = await load_event(self.db, event_id, for_update=True)
        context = ErrorContext(event_id=str(event.id))
        check_entries_mutable(event.event_kind, event.event_state, context)

        movie = await self.db.get(Movie, movie_id)
        if movie is None:
            raise NotFoundError("Movie", str(movie_id), context)

        result = await self.db.execute(
            select(EventEntry)
            .where(EventEntry.event_id == event.id)
            .where(EventEntry.movie_id == movie.id)
        )
        entry = result.scalar_one_or_none()
        if entry is not None and entry.removed_at is None:
            raise ConflictError(
                f"'{movie.title}' is already in this {event.kind}",
                code="DUPLICATE_ENTRY", context=context,
            )
        if entry is not None:
            entry.removed_at = None
            entry.added_by = added_by
        else:
            entry = EventEntry(event_id=event.id, movie=movie, added_by=added_by)
            self.db.add(entry)

        event.updated_at = _now()
        await self.db.commit()
        logger.info(
            f"Added '{movie.title}' to {event.kind}",
            extra={"event_id": event.id, "movie_id": movie.id},
        )
        return entry

    async def list_entries(
        self, event_id: UUID, include_removed: bool = False,
    ) -> list[EventEntry]:
        event = await load_event(self.db, event_id)
        if not include_removed:
            return await active_entries(self.db, event.id)
        result = await self.db.execute(
            select(EventEntry)
            .where(EventEntry.event_id == event.id)
            .order_by(EventEntry.created_at, EventEntry.id)
        )
        return list(result.scalars().all())
