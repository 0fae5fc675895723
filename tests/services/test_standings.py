"""Standings query tests — enabled ballots only, active entries only."""

from reelvote.core.domain_types import RankPick
from reelvote.services.ballot_store import BallotStore
from reelvote.services.standings import load_standings


def _picks(*movies) -> list[RankPick]:
    return [RankPick(rank=i, movie_id=m.id) for i, m in enumerate(movies, start=1)]


async def test_standings_for_live_poll(make_event, movies, test_db):
    a, b, c = movies[:3]
    event = await make_event("poll")
    store = BallotStore(test_db)
    await store.submit(event.id, "anon-1", _picks(a, b, c))
    await store.submit(event.id, "anon-2", _picks(b, a))
    await store.submit(event.id, "anon-3", _picks(a))

    report = await load_standings(test_db, event.id)

    assert report.ballot_count == 3
    assert [(s.title, s.total_points, s.position) for s in report.standings] == [
        ("The Matrix", 8, 1), ("Inception", 5, 2), ("Interstellar", 1, 3),
    ]
    assert report.standings[0].rank_counts == (2, 1, 0)
    assert report.points[0] == {"rank": 1, "points": 3, "label": "Rank 1"}


async def test_disabled_ballots_do_not_count(make_event, movies, test_db):
    a, b = movies[:2]
    event = await make_event("poll")
    store = BallotStore(test_db)
    await store.submit(event.id, "anon-1", _picks(a))
    await store.submit(event.id, "spammer", _picks(b))
    await store.submit(event.id, "spammer-2", _picks(b))
    await store.set_disabled(event.id, "spammer", True)
    await store.set_disabled(event.id, "spammer-2", True)

    report = await load_standings(test_db, event.id)
    assert report.ballot_count == 1
    assert report.standings[0].movie_id == a.id


async def test_draft_standings_list_entries_with_zero_points(make_event, test_db):
    event = await make_event("survey", state="draft")
    report = await load_standings(test_db, event.id)
    assert report.ballot_count == 0
    assert all(s.total_points == 0 and s.position == 1 for s in report.standings)
    assert [s.title for s in report.standings] == ["Inception", "Interstellar", "The Matrix"]
