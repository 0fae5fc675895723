"""Ballot ORM — one participant's ranked selections for one event.

Invariants:
    - (event_id, participant_id) unique: submission is an upsert
    - Within a ballot, ranks and movies are each unique (ballot_ranks constraints)
    - participant_id is either a registered participant id or an anonymous voter id
    - disabled ballots are kept but excluded from scoring

Design Decisions:
    - Ranks stored as rows, not a JSON blob: the DB enforces the per-ballot uniqueness
    - ranks loaded with selectin and ordered by rank: always available in async code
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from reelvote.core.domain_types import MovieId, RankPick
from reelvote.db.base import Base


class Ballot(Base):
    __tablename__ = "ballots"
    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", name="uq_ballots_event_participant"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("voting_events.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
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

    ranks: Mapped[list["BallotRank"]] = relationship(
        "BallotRank", back_populates="ballot",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="BallotRank.rank",
    )

    def picks(self) -> tuple[RankPick, ...]:
        return tuple(
            RankPick(rank=r.rank, movie_id=MovieId(r.movie_id)) for r in self.ranks
        )


class BallotRank(Base):
    """A single (rank, movie) row of a ballot."""
    __tablename__ = "ballot_ranks"
    __table_args__ = (
        UniqueConstraint("ballot_id", "rank", name="uq_ballot_ranks_rank"),
        UniqueConstraint("ballot_id", "movie_id", name="uq_ballot_ranks_movie"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    ballot_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ballots.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    movie_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("movies.id"), nullable=False,
    )

    ballot: Mapped["Ballot"] = relationship("Ballot", back_populates="ranks")
