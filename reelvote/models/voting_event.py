"""VotingEvent ORM — aggregate root for surveys and quick polls.

Invariants:
    - kind in {survey, poll}; state in {draft, live, frozen, closed}
    - 1 <= max_rank_n <= 10
    - At most one survey row has state 'live' (partial unique index)
    - frozen_at set when a survey freezes; closed_at when a poll closes
    - closes_at is an advertised deadline only; nothing closes automatically

Design Decisions:
    - One table for both kinds: the lifecycle and ballot rules differ only by kind
    - The live-survey invariant is a partial unique index, so a lost race between two
      concurrent "go live" calls fails at commit instead of leaving two live surveys
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Integer, Boolean, DateTime, CheckConstraint, Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from reelvote.core.domain_types import EventKind, EventState
from reelvote.db.base import Base

LIVE_SURVEY_INDEX = "uq_voting_events_one_live_survey"
_LIVE_SURVEY_WHERE = "kind = 'survey' AND state = 'live'"


class VotingEvent(Base):
    """Voting event aggregate root; entries, ballots and change logs reference its id."""
    __tablename__ = "voting_events"
    __table_args__ = (
        CheckConstraint(
            "max_rank_n >= 1 AND max_rank_n <= 10", name="ck_voting_events_max_rank_n",
        ),
        Index(
            LIVE_SURVEY_INDEX, "kind", unique=True,
            postgresql_where=text(_LIVE_SURVEY_WHERE),
            sqlite_where=text(_LIVE_SURVEY_WHERE),
        ),
        Index("ix_voting_events_state", "state"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str] = mapped_column(
        String(10), nullable=False, default=EventState.DRAFT.value,
    )
    max_rank_n: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    closes_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    live_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    frozen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    @property
    def event_kind(self) -> EventKind:
        return EventKind(self.kind)

    @property
    def event_state(self) -> EventState:
        return EventState(self.state)
