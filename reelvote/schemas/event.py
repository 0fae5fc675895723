"""Event Schemas — request bodies and responses for surveys, polls, entries and standings.

Invariants:
    - EventCreate.kind is survey|poll; max_rank_n within 1..10 when given
    - closes_at must carry a timezone offset
    - Titles are stripped and re-validated by core/enforce_lifecycle.py
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from reelvote.core.domain_types import MAX_RANK_N, MIN_RANK_N, TITLE_MAX_LENGTH


class EventCreate(BaseModel):
    kind: Literal["survey", "poll"]
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(None, max_length=2000)
    max_rank_n: int | None = Field(None, ge=MIN_RANK_N, le=MAX_RANK_N)
    created_by: str | None = Field(None, max_length=64)
    closes_at: AwareDatetime | None = None


class EventUpdate(BaseModel):
    """Partial edit — omitted fields are left unchanged. An explicit null closes_at clears it."""
    title: str | None = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(None, max_length=2000)
    max_rank_n: int | None = Field(None, ge=MIN_RANK_N, le=MAX_RANK_N)
    closes_at: AwareDatetime | None = None


class StateChange(BaseModel):
    state: str = Field(min_length=1, max_length=20)


class ArchiveToggle(BaseModel):
    archived: bool = True


class EntryCreate(BaseModel):
    movie_id: UUID
    added_by: str | None = Field(None, max_length=64)


class MovieResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tmdb_id: int
    title: str
    poster_path: str | None = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: str
    title: str
    description: str | None = None
    state: str
    max_rank_n: int
    archived: bool
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
    closes_at: datetime | None = None
    live_at: datetime | None = None
    frozen_at: datetime | None = None
    closed_at: datetime | None = None


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    movie: MovieResponse
    added_by: str | None = None
    created_at: datetime
    removed_at: datetime | None = None


class EntryRemoval(BaseModel):
    movie_id: UUID
    affected_count: int


class StandingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    movie_id: UUID
    title: str
    tmdb_id: int
    poster_path: str | None = None
    total_points: int
    rank_counts: list[int]
    position: int
    tied: bool


class PointsRow(BaseModel):
    rank: int
    points: int
    label: str


class StandingsResponse(BaseModel):
    event: EventResponse
    standings: list[StandingResponse]
    ballot_count: int
    points: list[PointsRow]
