"""Movie ORM — catalog reference the engine treats as opaque.

Invariants:
    - tmdb_id is unique; title is non-nullable
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from reelvote.core.domain_types import MovieRef
from reelvote.db.base import Base


class Movie(Base):
    __tablename__ = "movies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    tmdb_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    poster_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_ref(self) -> MovieRef:
        return MovieRef(
            id=self.id, title=self.title,
            tmdb_id=self.tmdb_id, poster_path=self.poster_path,
        )
