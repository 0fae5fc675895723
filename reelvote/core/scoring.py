"""Scoring Engine — turns a set of ranked ballots into an ordered standings table.

Invariants:
    - Rank r on an N-rank ballot earns N - r + 1 points; unranked movies earn 0
    - Picks with a rank outside [1, N] or an unknown movie are ignored, never raised
    - Ordering is total: points, rank-count vector, title, tmdb id
    - Same (points, rank counts) share a position; next distinct score takes index + 1
    - Output depends only on inputs (no dict-order or randomness leakage)

Design Decisions:
    - Standing is a frozen dataclass: the leaderboard re-derives it freely
    - Sort key built once per movie; ties compared on the key prefix only
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from reelvote.core.domain_types import MovieId, MovieRef, RankPick


@dataclass(frozen=True)
class Standing:
    """Computed per-movie result for one event."""
    movie_id: MovieId
    title: str
    tmdb_id: int
    poster_path: str | None
    total_points: int
    rank_counts: tuple[int, ...]
    position: int
    tied: bool


def calculate_points(rank: int, max_rank_n: int) -> int:
    """Points for a single pick. Callers guarantee 1 <= rank <= max_rank_n."""
    return max_rank_n - rank + 1


def points_breakdown(max_rank_n: int) -> list[dict]:
    """Rank → points table shown alongside standings."""
    return [
        {
            "rank": rank,
            "points": calculate_points(rank, max_rank_n),
            "label": f"Rank {rank}",
        }
        for rank in range(1, max_rank_n + 1)
    ]


def calculate_standings(
    ballots: Iterable[Iterable[RankPick]],
    movies: Sequence[MovieRef],
    max_rank_n: int,
) -> list[Standing]:
    """Score every movie in `movies` against `ballots` and order the result."""
    totals: dict[MovieId, int] = {}
    counts: dict[MovieId, list[int]] = {}
    by_id: dict[MovieId, MovieRef] = {}
    for movie in movies:
        if movie.id in by_id:
            continue
        by_id[movie.id] = movie
        totals[movie.id] = 0
        counts[movie.id] = [0] * max_rank_n

    for picks in ballots:
        for pick in picks:
            if pick.movie_id not in by_id:
                continue
            if not 1 <= pick.rank <= max_rank_n:
                continue
            totals[pick.movie_id] += calculate_points(pick.rank, max_rank_n)
            counts[pick.movie_id][pick.rank - 1] += 1

    ordered = sorted(
        by_id.values(),
        key=lambda m: (
            -totals[m.id],
            tuple(-c for c in counts[m.id]),
            m.title.casefold(),
            m.title,
            m.tmdb_id,
        ),
    )

    scores = [(totals[m.id], tuple(counts[m.id])) for m in ordered]
    standings: list[Standing] = []
    position = 1
    for i, movie in enumerate(ordered):
        tied_prev = i > 0 and scores[i] == scores[i - 1]
        tied_next = i + 1 < len(ordered) and scores[i] == scores[i + 1]
        if i > 0 and not tied_prev:
            position = i + 1
        standings.append(Standing(
            movie_id=movie.id,
            title=movie.title,
            tmdb_id=movie.tmdb_id,
            poster_path=movie.poster_path,
            total_points=scores[i][0],
            rank_counts=scores[i][1],
            position=position,
            tied=tied_prev or tied_next,
        ))
    return standings


def winning_movie_ids(standings: Sequence[Standing]) -> set[MovieId]:
    """All movies at position 1 (several when the top is tied)."""
    return {s.movie_id for s in standings if s.position == 1}
