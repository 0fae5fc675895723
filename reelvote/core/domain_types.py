"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - EventId and MovieId wrap UUIDs; ParticipantId wraps the opaque identity string
    - All lifecycle states and change reasons encoded as str Enums
    - RankPick is immutable; a ballot is an ordered tuple of RankPicks

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: stored as plain strings in the DB and serialized without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

EventId = NewType("EventId", UUID)
MovieId = NewType("MovieId", UUID)
ParticipantId = NewType("ParticipantId", str)


# ─── Limits ──────────────────────────────────────────────────────

MIN_RANK_N = 1
MAX_RANK_N = 10
DEFAULT_RANK_N = 3
TITLE_MAX_LENGTH = 100
DISPLAY_NAME_MAX_LENGTH = 50
PARTICIPANT_ID_MAX_LENGTH = 64


# ─── Enums ───────────────────────────────────────────────────────

class EventKind(str, Enum):
    """Voting event kinds. Surveys hold the single global live slot."""
    SURVEY = "survey"
    POLL = "poll"


class EventState(str, Enum):
    """Lifecycle states — maps to DB `state` column."""
    DRAFT = "draft"
    LIVE = "live"
    FROZEN = "frozen"
    CLOSED = "closed"


class ChangeReason(str, Enum):
    """Why a ballot changed — maps to change log `reason` column."""
    PARTICIPANT_UPDATE = "participant_update"
    MOVIE_REMOVED = "movie_removed"
    SYSTEM = "system"


TERMINAL_STATES: dict[EventKind, EventState] = {
    EventKind.SURVEY: EventState.FROZEN,
    EventKind.POLL: EventState.CLOSED,
}


def terminal_state_for(kind: EventKind) -> EventState:
    """Surveys end `frozen`, polls end `closed`."""
    return TERMINAL_STATES[kind]


def states_for(kind: EventKind) -> tuple[EventState, ...]:
    return (EventState.DRAFT, EventState.LIVE, TERMINAL_STATES[kind])


def is_terminal(state: EventState) -> bool:
    return state in (EventState.FROZEN, EventState.CLOSED)


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class RankPick:
    """One (rank, movie) pair on a ballot."""
    rank: int
    movie_id: MovieId

    def to_dict(self) -> dict:
        return {"rank": self.rank, "movie_id": str(self.movie_id)}

    @classmethod
    def from_dict(cls, data: dict) -> "RankPick":
        return cls(rank=data["rank"], movie_id=MovieId(UUID(str(data["movie_id"]))))


@dataclass(frozen=True)
class MovieRef:
    """Opaque movie reference supplied by the catalog."""
    id: MovieId
    title: str
    tmdb_id: int
    poster_path: str | None = None


def picks_to_payload(picks: list[RankPick] | tuple[RankPick, ...] | None) -> list[dict] | None:
    """Serialize picks for the change log, ordered by rank."""
    if picks is None:
        return None
    return [p.to_dict() for p in sorted(picks, key=lambda p: p.rank)]
