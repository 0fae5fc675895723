"""Ballot validation tests — rank range, uniqueness, membership, empty ballots."""

from uuid import UUID

import pytest

from reelvote.core.domain_types import EventKind, MovieId, RankPick
from reelvote.core.errors import ValidationError
from reelvote.core.validate_ballot import (
    normalize_display_name,
    strip_movie,
    validate_participant_id,
    validate_ranks,
)

M1, M2, M3, M4 = (MovieId(UUID(int=i)) for i in range(1, 5))
ACTIVE = {M1, M2, M3}


def _code(kind, picks, max_rank_n=3, active=ACTIVE) -> str:
    with pytest.raises(ValidationError) as exc:
        validate_ranks(kind, picks, max_rank_n, active)
    return exc.value.code


def test_valid_ballot_returned_in_rank_order():
    picks = [RankPick(3, M1), RankPick(1, M2)]
    assert validate_ranks(EventKind.SURVEY, picks, 3, ACTIVE) == [
        RankPick(1, M2), RankPick(3, M1),
    ]


def test_empty_survey_ballot_allowed():
    assert validate_ranks(EventKind.SURVEY, [], 3, ACTIVE) == []


def test_empty_poll_ballot_rejected():
    assert _code(EventKind.POLL, []) == "EMPTY_BALLOT"


@pytest.mark.parametrize("rank", [0, 4, -1])
def test_rank_out_of_range(rank):
    assert _code(EventKind.POLL, [RankPick(rank, M1)]) == "INVALID_RANK"


def test_non_integer_rank():
    assert _code(EventKind.POLL, [RankPick(True, M1)]) == "INVALID_RANK"
    assert _code(EventKind.POLL, [RankPick(1.0, M1)]) == "INVALID_RANK"


def test_duplicate_rank():
    assert _code(EventKind.POLL, [RankPick(1, M1), RankPick(1, M2)]) == "DUPLICATE_RANK"


def test_duplicate_movie():
    assert _code(EventKind.POLL, [RankPick(1, M1), RankPick(2, M1)]) == "DUPLICATE_MOVIE"


def test_movie_must_be_active_entry():
    assert _code(EventKind.SURVEY, [RankPick(1, M4)]) == "UNKNOWN_MOVIE"


def test_participant_id_required_and_bounded():
    assert validate_participant_id("  anon-123 ") == "anon-123"
    with pytest.raises(ValidationError) as exc:
        validate_participant_id("   ")
    assert exc.value.code == "MISSING_PARTICIPANT"
    with pytest.raises(ValidationError) as exc:
        validate_participant_id("x" * 65)
    assert exc.value.code == "INVALID_PARTICIPANT"


def test_display_name_normalized():
    assert normalize_display_name(None) is None
    assert normalize_display_name("   ") is None
    assert normalize_display_name(" Ana ") == "Ana"
    with pytest.raises(ValidationError):
        normalize_display_name("n" * 51)


def test_strip_movie_keeps_rank_gaps():
    picks = [RankPick(1, M1), RankPick(2, M2), RankPick(3, M3)]
    assert strip_movie(picks, M2) == [RankPick(1, M1), RankPick(3, M3)]
    assert strip_movie(picks, M4) == picks
