"""Catalog — registers the movie and participant records the voting engine references.

Invariants:
    - Movies keyed by tmdb_id: registering an existing tmdb_id refreshes title/poster
    - Participants keyed by their auth id: re-registering updates the display name
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.core.errors import ValidationError
from reelvote.core.validate_ballot import normalize_display_name, validate_participant_id
from reelvote.models.movie import Movie
from reelvote.models.participant import Participant

logger = logging.getLogger(__name__)


class Catalog:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_movie(
        self, tmdb_id: int, title: str, poster_path: str | None = None,
    ) -> Movie:
        if isinstance(tmdb_id, bool) or not isinstance(tmdb_id, int) or tmdb_id <= 0:
            raise ValidationError(
                "tmdb_id must be a positive integer", field="tmdb_id", code="INVALID_TMDB_ID",
            )
        title = (title or "").strip()
        if not title:
            raise ValidationError("Movie title is required", field="title", code="INVALID_TITLE")

        result = await self.db.execute(select(Movie).where(Movie.tmdb_id == tmdb_id))
        movie = result.scalar_one_or_none()
        if movie is None:
            movie = Movie(tmdb_id=tmdb_id, title=title, poster_path=poster_path)
            self.db.add(movie)
        else:
            movie.title = title
            movie.poster_path = poster_path
        await self.db.commit()
        logger.info(f"Registered movie '{title}'", extra={"movie_id": movie.id})
        return movie

    async def register_participant(
        self, participant_id: str, display_name: str,
    ) -> Participant:
        participant_id = validate_participant_id(participant_id)
        name = normalize_display_name(display_name)
        if name is None:
            raise ValidationError(
                "Display name is required", field="display_name", code="INVALID_DISPLAY_NAME",
            )

        participant = await self.db.get(Participant, participant_id)
        if participant is None:
            participant = Participant(id=participant_id, display_name=name)
            self.db.add(participant)
        else:
            participant.display_name = name
        await self.db.commit()
        logger.info("Registered participant", extra={"participant_id": participant_id})
        return participant
