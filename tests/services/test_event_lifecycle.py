"""Event lifecycle service tests — transitions, the single live survey, entries, edits.

Invariants:
    - At most one survey is live; freezing it frees the slot
    - Polls have no such limit
    - Entries restore on re-add; active duplicates conflict
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from reelvote.core.domain_types import EventState
from reelvote.core.errors import ConflictError, NotFoundError, StateError, ValidationError
from reelvote.models.event_entry import EventEntry
from reelvote.models.voting_event import VotingEvent
from reelvote.services.catalog import Catalog
from reelvote.services.event_lifecycle import EventLifecycle
from reelvote.services.event_maintenance import EventMaintenance


async def test_create_event_defaults_to_draft(test_db):
    event = await EventLifecycle(test_db).create_event(
        "survey", "  Summer Picks  ", description="  ",
    )
    assert event.state == "draft"
    assert event.title == "Summer Picks"
    assert event.description is None
    assert event.max_rank_n == 3
    assert event.archived is False


async def test_create_event_uses_configured_default_rank(test_db):
    event = await EventLifecycle(test_db, default_max_rank_n=5).create_event("poll", "Friday")
    assert event.max_rank_n == 5


async def test_create_event_rejects_bad_input(test_db):
    lifecycle = EventLifecycle(test_db)
    with pytest.raises(ValidationError):
        await lifecycle.create_event("referendum", "x")
    with pytest.raises(ValidationError):
        await lifecycle.create_event("poll", "x", max_rank_n=11)



async def test_create_event_stores_closing_time_in_utc(test_db):
    pacific = timezone(timedelta(hours=-8))
    event = await EventLifecycle(test_db).create_event(
        "poll", "Friday", closes_at=datetime(2026, 11, 1, 18, 0, tzinfo=pacific),
    )
    assert event.closes_at == datetime(2026, 11, 2, 2, 0, tzinfo=timezone.utc)
    assert event.state == "draft"


async def test_create_event_rejects_naive_closing_time(test_db):
    with pytest.raises(ValidationError) as exc:
        await EventLifecycle(test_db).create_event(
            "survey", "Summer", closes_at=datetime(2026, 11, 1, 18, 0),
        )
    assert exc.value.code == "INVALID_CLOSES_AT"
    assert await EventLifecycle(test_db).list_events() == []

# --- Transitions --------------------------------------------------------------

async def test_full_survey_lifecycle_stamps_times(make_event, test_db):
    event = await make_event("survey", state="live")
    assert event.live_at is not None
    frozen = await EventLifecycle(test_db).change_state(event.id, "frozen")
    assert frozen.state == "frozen"
    assert frozen.frozen_at is not None
    assert frozen.closed_at is None


async def test_poll_closes(make_event, test_db):
    event = await make_event("poll", state="live")
    closed = await EventLifecycle(test_db).change_state(event.id, EventState.CLOSED)
    assert closed.state == "closed"
    assert closed.closed_at is not None


async def test_draft_to_frozen_fails(make_event, test_db):
    event = await make_event("survey", state="draft")
    with pytest.raises(StateError) as exc:
        await EventLifecycle(test_db).change_state(event.id, "frozen")
    assert exc.value.code == "ILLEGAL_TRANSITION"


async def test_zero_entries_cannot_go_live(test_db):
    lifecycle = EventLifecycle(test_db)
    event = await lifecycle.create_event("poll", "Empty")
    with pytest.raises(StateError) as exc:
        await lifecycle.change_state(event.id, "live")
    assert exc.value.code == "NO_ENTRIES"


async def test_removed_entries_do_not_count_for_going_live(make_event, movies, test_db):
    event = await make_event("poll", state="draft", n_movies=1)
    await EventMaintenance(test_db).remove_entry(event.id, movies[0].id)
    with pytest.raises(StateError):
        await EventLifecycle(test_db).change_state(event.id, "live")


async def test_terminal_event_is_final(make_event, test_db):
    event = await make_event("survey", state="frozen")
    lifecycle = EventLifecycle(test_db)
    for target in ("live", "draft", "frozen"):
        with pytest.raises(StateError) as exc:
            await lifecycle.change_state(event.id, target)
        assert exc.value.code == "EVENT_TERMINAL"


async def test_state_must_belong_to_kind(make_event, test_db):
    event = await make_event("survey", state="live")
    with pytest.raises(ValidationError) as exc:
        await EventLifecycle(test_db).change_state(event.id, "closed")
    assert exc.value.code == "INVALID_STATE"


async def test_change_state_unknown_event(test_db):
    with pytest.raises(NotFoundError):
        await EventLifecycle(test_db).change_state(uuid4(), "live")


# --- Single live survey ---------------------------------------------------------

async def test_second_live_survey_conflicts_until_first_freezes(make_event, test_db):
    lifecycle = EventLifecycle(test_db)
    first = await make_event("survey", state="live", title="First")
    second = await make_event("survey", state="draft", title="Second")

    with pytest.raises(ConflictError) as exc:
        await lifecycle.change_state(second.id, "live")
    assert exc.value.code == "SURVEY_ALREADY_LIVE"
    assert (await lifecycle.get_event(second.id)).state == "draft"

    await lifecycle.change_state(first.id, "frozen")
    live = await lifecycle.change_state(second.id, "live")
    assert live.state == "live"
    assert (await lifecycle.live_survey()).id == second.id


async def test_polls_may_be_live_together(make_event, test_db):
    await make_event("survey", state="live")
    await make_event("poll", state="live", title="P1")
    await make_event("poll", state="live", title="P2")
    polls = await EventLifecycle(test_db).live_polls()
    assert {p.title for p in polls} == {"P1", "P2"}


async def test_partial_index_rejects_two_live_surveys(test_db):
    test_db.add_all([
        VotingEvent(kind="survey", title="A", state="live", max_rank_n=3),
        VotingEvent(kind="survey", title="B", state="live", max_rank_n=3),
    ])
    with pytest.raises(IntegrityError):
        await test_db.commit()
    await test_db.rollback()


async def test_partial_index_ignores_other_states(test_db):
    test_db.add_all([
        VotingEvent(kind="survey", title="A", state="frozen", max_rank_n=3),
        VotingEvent(kind="survey", title="B", state="frozen", max_rank_n=3),
        VotingEvent(kind="survey", title="C", state="live", max_rank_n=3),
        VotingEvent(kind="poll", title="D", state="live", max_rank_n=3),
        VotingEvent(kind="poll", title="E", state="live", max_rank_n=3),
    ])
    await test_db.commit()
    result = await test_db.execute(select(VotingEvent))
    assert len(result.scalars().all()) == 5


# --- Entries --------------------------------------------------------------------

async def test_add_entry_requires_known_movie(make_event, test_db):
    event = await make_event("poll", state="draft", n_movies=0)
    with pytest.raises(NotFoundError):
        await EventLifecycle(test_db).add_entry(event.id, uuid4())


async def test_add_entry_duplicate_conflicts(make_event, movies, test_db):
    event = await make_event("poll", state="draft", n_movies=1)
    with pytest.raises(ConflictError) as exc:
        await EventLifecycle(test_db).add_entry(event.id, movies[0].id)
    assert exc.value.code == "DUPLICATE_ENTRY"


async def test_re_adding_removed_movie_restores_entry(make_event, movies, test_db):
    event = await make_event("survey", state="live", n_movies=2)
    lifecycle = EventLifecycle(test_db)
    await EventMaintenance(test_db).remove_entry(event.id, movies[0].id)
    assert len(await lifecycle.list_entries(event.id)) == 1

    restored = await lifecycle.add_entry(event.id, movies[0].id, added_by="alice")
    assert restored.removed_at is None
    assert restored.added_by == "alice"

    result = await test_db.execute(
        select(EventEntry).where(EventEntry.event_id == event.id),
    )
    assert len(result.scalars().all()) == 2


async def test_entries_frozen_with_event(make_event, movies, test_db):
    event = await make_event("survey", state="frozen", n_movies=1)
    with pytest.raises(StateError):
        await EventLifecycle(test_db).add_entry(event.id, movies[3].id)


async def test_list_entries_include_removed(make_event, movies, test_db):
    event = await make_event("poll", state="live", n_movies=3)
    await EventMaintenance(test_db).remove_entry(event.id, movies[1].id)
    lifecycle = EventLifecycle(test_db)
    active = await lifecycle.list_entries(event.id)
    everything = await lifecycle.list_entries(event.id, include_removed=True)
    assert [e.movie.title for e in active] == ["The Matrix", "Interstellar"]
    assert len(everything) == 3


# --- Edit / delete / archive ------------------------------------------------------

async def test_max_rank_editable_only_in_draft(make_event, test_db):
    lifecycle = EventLifecycle(test_db)
    draft = await make_event("poll", state="draft")
    assert (await lifecycle.update_event(draft.id, max_rank_n=5)).max_rank_n == 5

    live = await make_event("poll", state="live", title="Live")
    with pytest.raises(StateError) as exc:
        await lifecycle.update_event(live.id, max_rank_n=5)
    assert exc.value.code == "MAX_RANK_LOCKED"
    # unchanged value is not an edit
    updated = await lifecycle.update_event(live.id, title="Renamed", max_rank_n=3)
    assert updated.title == "Renamed"


async def test_delete_only_drafts(make_event, test_db):
    lifecycle = EventLifecycle(test_db)
    draft = await make_event("poll", state="draft")
    await lifecycle.delete_event(draft.id)
    with pytest.raises(NotFoundError):
        await lifecycle.get_event(draft.id)
    result = await test_db.execute(
        select(EventEntry).where(EventEntry.event_id == draft.id),
    )
    assert result.scalars().all() == []

    live = await make_event("poll", state="live", title="Live")
    with pytest.raises(StateError):
        await lifecycle.delete_event(live.id)


async def test_archive_only_completed(make_event, test_db):
    lifecycle = EventLifecycle(test_db)
    live = await make_event("poll", state="live")
    with pytest.raises(StateError):
        await lifecycle.set_archived(live.id, True)

    closed = await make_event("poll", state="closed", title="Closed")
    assert (await lifecycle.set_archived(closed.id, True)).archived is True
    visible = await lifecycle.list_events(include_archived=False)
    assert closed.id not in {e.id for e in visible}


async def test_list_events_filters(make_event, test_db):
    await make_event("survey", state="draft")
    await make_event("poll", state="live")
    lifecycle = EventLifecycle(test_db)
    assert [e.kind for e in await lifecycle.list_events(kind="poll")] == ["poll"]
    assert [e.state for e in await lifecycle.list_events(state="draft")] == ["draft"]
    assert len(await lifecycle.list_events()) == 2


async def test_closing_time_editable_until_terminal(make_event, test_db):
    lifecycle = EventLifecycle(test_db)
    live = await make_event("poll", state="live")
    deadline = datetime(2026, 11, 2, 2, 0, tzinfo=timezone.utc)

    updated = await lifecycle.update_event(live.id, closes_at=deadline)
    assert updated.closes_at == deadline
    # omitted leaves it alone, clearing is explicit
    assert (await lifecycle.update_event(live.id, title="Renamed")).closes_at == deadline
    assert (await lifecycle.update_event(live.id, clear_closes_at=True)).closes_at is None

    await lifecycle.change_state(live.id, "closed")
    with pytest.raises(StateError) as exc:
        await lifecycle.update_event(live.id, closes_at=deadline)
    assert exc.value.code == "EVENT_TERMINAL"


# --- Concurrent go-live -----------------------------------------------------------

async def _seed_draft_surveys(session_factory, *titles):
    async with session_factory() as db:
        movie = await Catalog(db).register_movie(603, "The Matrix")
        lifecycle = EventLifecycle(db)
        ids = []
        for title in titles:
            event = await lifecycle.create_event("survey", title)
            await lifecycle.add_entry(event.id, movie.id)
            ids.append(event.id)
        return ids


async def test_live_survey_lost_at_commit_is_conflict(file_session_factory):
    first_id, second_id = await _seed_draft_surveys(file_session_factory, "First", "Second")

    async with file_session_factory() as db, file_session_factory() as rival_db:
        lifecycle = EventLifecycle(db)
        check_other_live = lifecycle._ensure_no_other_live_survey

        async def rival_goes_live_after_check(event_id, context):
            await check_other_live(event_id, context)
            await EventLifecycle(rival_db).change_state(second_id, "live")

        lifecycle._ensure_no_other_live_survey = rival_goes_live_after_check
        with pytest.raises(ConflictError) as exc:
            await lifecycle.change_state(first_id, "live")
        assert exc.value.code == "SURVEY_ALREADY_LIVE"

    async with file_session_factory() as db:
        lifecycle = EventLifecycle(db)
        assert (await lifecycle.get_event(first_id)).state == "draft"
        assert (await lifecycle.live_survey()).id == second_id
