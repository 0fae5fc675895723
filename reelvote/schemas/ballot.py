"""Ballot Schemas — ranked ballot submission and audit responses.

Invariants:
    - A submitted pick is (rank, movie_id); range/uniqueness checked by core/validate_ballot.py
    - An empty ranks list is a valid body (surveys treat it as "clear my ballot")
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from reelvote.core.domain_types import MovieId, RankPick


class RankPickIn(BaseModel):
    rank: int
    movie_id: UUID

    def to_pick(self) -> RankPick:
        return RankPick(rank=self.rank, movie_id=MovieId(self.movie_id))


class BallotSubmit(BaseModel):
    ranks: list[RankPickIn] = Field(default_factory=list)
    display_name: str | None = None


class DisabledToggle(BaseModel):
    disabled: bool


class RankResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    movie_id: UUID


class BallotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    participant_id: str
    display_name: str | None = None
    disabled: bool
    ranks: list[RankResponse]
    created_at: datetime
    updated_at: datetime


class ChangeLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    participant_id: str
    previous_ranks: list[dict] | None = None
    new_ranks: list[dict] | None = None
    reason: str
    created_at: datetime
