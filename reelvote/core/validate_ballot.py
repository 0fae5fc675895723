"""Ballot Validation — pure checks applied before any ballot write.

Invariants:
    - Ranks are integers in [1, max_rank_n] and pairwise distinct
    - A movie appears at most once per ballot
    - Every movie references an active (non-removed) entry of the event
    - Poll votes must rank at least one movie; an empty survey ballot clears it
    - Returned picks are ordered by rank
"""

from collections.abc import Collection, Sequence

from reelvote.core.domain_types import (
    DISPLAY_NAME_MAX_LENGTH, PARTICIPANT_ID_MAX_LENGTH,
    EventKind, MovieId, RankPick,
)
from reelvote.core.errors import ErrorContext, ValidationError


def validate_participant_id(participant_id: str | None) -> str:
    participant_id = (participant_id or "").strip()
    if not participant_id:
        raise ValidationError(
            "Missing voter identity", field="participant_id", code="MISSING_PARTICIPANT",
        )
    if len(participant_id) > PARTICIPANT_ID_MAX_LENGTH:
        raise ValidationError(
            "Voter identity is too long", field="participant_id", code="INVALID_PARTICIPANT",
        )
    return participant_id


def normalize_display_name(display_name: str | None) -> str | None:
    """Blank names become None; long names are rejected."""
    if display_name is None:
        return None
    display_name = display_name.strip()
    if not display_name:
        return None
    if len(display_name) > DISPLAY_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Display name must be at most {DISPLAY_NAME_MAX_LENGTH} characters",
            field="display_name", code="INVALID_DISPLAY_NAME",
        )
    return display_name


def validate_ranks(
    kind: EventKind,
    picks: Sequence[RankPick],
    max_rank_n: int,
    active_movie_ids: Collection[MovieId],
    context: ErrorContext | None = None,
) -> list[RankPick]:
    """Validate a submitted ballot and return its picks ordered by rank."""
    if not picks and kind == EventKind.POLL:
        raise ValidationError(
            "Please rank at least one movie",
            field="ranks", code="EMPTY_BALLOT", context=context,
        )

    seen_ranks: set[int] = set()
    seen_movies: set[MovieId] = set()
    for pick in picks:
        if isinstance(pick.rank, bool) or not isinstance(pick.rank, int):
            raise ValidationError(
                "Rank positions must be whole numbers",
                field="ranks", code="INVALID_RANK", context=context,
            )
        if not 1 <= pick.rank <= max_rank_n:
            raise ValidationError(
                f"Rank {pick.rank} is outside 1..{max_rank_n}",
                field="ranks", code="INVALID_RANK", context=context,
            )
        if pick.rank in seen_ranks:
            raise ValidationError(
                "Duplicate rank positions not allowed",
                field="ranks", code="DUPLICATE_RANK", context=context,
            )
        if pick.movie_id in seen_movies:
            raise ValidationError(
                "Cannot rank the same movie twice",
                field="ranks", code="DUPLICATE_MOVIE", context=context,
            )
        if pick.movie_id not in active_movie_ids:
            raise ValidationError(
                "Invalid movie in ballot",
                field="ranks", code="UNKNOWN_MOVIE", context=context,
            )
        seen_ranks.add(pick.rank)
        seen_movies.add(pick.movie_id)

    return sorted(picks, key=lambda p: p.rank)


def strip_movie(picks: Sequence[RankPick], movie_id: MovieId) -> list[RankPick]:
    """Drop one movie's pick, leaving the other ranks (and any gap) untouched."""
    return [p for p in picks if p.movie_id != movie_id]
