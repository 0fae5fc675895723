"""EventEntry ORM — a movie attached to a voting event.

Invariants:
    - (event_id, movie_id) unique: re-adding a removed movie restores its entry
    - removed_at set means soft-removed; historical ballots can still resolve the movie
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from reelvote.db.base import Base


class EventEntry(Base):
    __tablename__ = "event_entries"
    __table_args__ = (
        UniqueConstraint("event_id", "movie_id", name="uq_event_entries_event_movie"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("voting_events.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    movie_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("movies.id"), nullable=False,
    )
    added_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    removed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    movie: Mapped["Movie"] = relationship("Movie", lazy="joined")
