"""Leaderboard Fold — oracle accuracy across completed events.

Invariants:
    - Each completed event is re-scored from its raw ballots (no stored standings)
    - Winners are every movie at position 1; events without winners are skipped
    - Only recognized (registered) participants are scored; anonymous votes only
      influence standings
    - Earned points for a ballot = max_rank_n - best rank given to any winner + 1, else 0
    - accuracy_percent has one decimal, rounds half up, and is 0 when nothing was possible
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from reelvote.core.domain_types import EventId, MovieId, MovieRef, ParticipantId, RankPick
from reelvote.core.scoring import calculate_standings, winning_movie_ids


@dataclass(frozen=True)
class ScoredBallot:
    """An enabled ballot as the leaderboard sees it."""
    participant_id: ParticipantId
    picks: tuple[RankPick, ...]
    display_name: str | None = None


@dataclass
class CompletedEvent:
    """Everything needed to re-score one frozen survey or closed poll."""
    event_id: EventId
    max_rank_n: int
    movies: list[MovieRef] = field(default_factory=list)
    ballots: list[ScoredBallot] = field(default_factory=list)


@dataclass
class LeaderboardEntry:
    participant_id: ParticipantId
    display_name: str
    participation_count: int = 0
    oracle_points_earned: int = 0
    oracle_points_possible: int = 0

    @property
    def accuracy_percent(self) -> float:
        return accuracy_percent(self.oracle_points_earned, self.oracle_points_possible)


def accuracy_percent(earned: int, possible: int) -> float:
    if possible <= 0:
        return 0.0
    return math.floor(earned / possible * 1000 + 0.5) / 10


def oracle_points(
    picks: Sequence[RankPick], winners: set[MovieId], max_rank_n: int,
) -> int:
    """Points for how highly a ballot ranked any of the winners."""
    best = min((p.rank for p in picks if p.movie_id in winners), default=None)
    if best is None or best > max_rank_n:
        return 0
    return max_rank_n - best + 1


def fold_leaderboard(
    events: Sequence[CompletedEvent],
    recognized: Mapping[str, str],
) -> list[LeaderboardEntry]:
    """Fold completed events into per-participant oracle statistics.

    Args:
        events: completed, non-archived events with their enabled ballots
        recognized: registered participant id -> display name

    Returns:
        Entries sorted by accuracy desc, participation desc, then name and id.
    """
    stats: dict[str, LeaderboardEntry] = {}

    for event in events:
        if not event.ballots:
            continue
        standings = calculate_standings(
            (b.picks for b in event.ballots), event.movies, event.max_rank_n,
        )
        winners = winning_movie_ids(standings)
        if not winners:
            continue

        for ballot in event.ballots:
            if ballot.participant_id not in recognized:
                continue
            entry = stats.get(ballot.participant_id)
            if entry is None:
                entry = LeaderboardEntry(
                    participant_id=ballot.participant_id,
                    display_name=(
                        recognized[ballot.participant_id]
                        or ballot.display_name
                        or "Unknown"
                    ),
                )
                stats[ballot.participant_id] = entry
            entry.participation_count += 1
            entry.oracle_points_possible += event.max_rank_n
            entry.oracle_points_earned += oracle_points(
                ballot.picks, winners, event.max_rank_n,
            )

    return sorted(
        stats.values(),
        key=lambda e: (
            -e.accuracy_percent,
            -e.participation_count,
            e.display_name.casefold(),
            e.participant_id,
        ),
    )
