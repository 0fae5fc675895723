"""BallotChangeLog ORM — append-only audit trail of every ballot mutation.

Invariants:
    - Rows are only ever inserted (no update or delete path exists in services/)
    - previous_ranks is null for a participant's first submission
    - Rank payloads are [{"rank": int, "movie_id": str}] ordered by rank
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from reelvote.db.base import Base


class BallotChangeLog(Base):
    __tablename__ = "ballot_change_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("voting_events.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    previous_ranks: Mapped[list | None] = mapped_column(JSON, nullable=True)
    new_ranks: Mapped[list | None] = mapped_column(JSON, nullable=True)
    reason: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
