"""Lifecycle Enforcement — pure guards for voting event state transitions and mutations.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Guards raise typed errors (core/errors.py) on violation and return None on success
    - Legal transitions: draft -> live, live -> terminal (frozen for surveys, closed for polls)
    - Nothing leaves a terminal state
    - Entries mutate only in draft/live; ballots only while live

Design Decisions:
    - Cross-event checks (another survey live) live in the service: they need the DB
      and must run inside the same transaction as the write
"""

from datetime import datetime, timezone

from reelvote.core.domain_types import (
    EventKind, EventState, MAX_RANK_N, MIN_RANK_N, TITLE_MAX_LENGTH,
    is_terminal, states_for, terminal_state_for,
)
from reelvote.core.errors import ErrorContext, StateError, ValidationError


# --- Event fields --------------------------------------------------------------

def parse_kind(kind: str | EventKind) -> EventKind:
    try:
        return EventKind(kind)
    except ValueError:
        raise ValidationError(
            f"Unknown event kind '{kind}'. Expected 'survey' or 'poll'.",
            field="kind", code="INVALID_KIND",
        )


def validate_title(title: str | None) -> str:
    """Strip and bound the event title."""
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required", field="title", code="INVALID_TITLE")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be at most {TITLE_MAX_LENGTH} characters",
            field="title", code="INVALID_TITLE",
        )
    return title


def validate_max_rank_n(max_rank_n: int) -> int:
    if isinstance(max_rank_n, bool) or not isinstance(max_rank_n, int):
        raise ValidationError(
            "Max rank must be an integer", field="max_rank_n", code="INVALID_MAX_RANK",
        )
    if not MIN_RANK_N <= max_rank_n <= MAX_RANK_N:
        raise ValidationError(
            f"Max rank must be between {MIN_RANK_N} and {MAX_RANK_N}",
            field="max_rank_n", code="INVALID_MAX_RANK",
        )
    return max_rank_n


def validate_closes_at(closes_at: datetime | None) -> datetime | None:
    """Scheduled closing time must carry a timezone; stored as UTC."""
    if closes_at is None:
        return None
    if closes_at.tzinfo is None or closes_at.utcoffset() is None:
        raise ValidationError(
            "Closing time must include a timezone",
            field="closes_at", code="INVALID_CLOSES_AT",
        )
    return closes_at.astimezone(timezone.utc)


# --- State transitions ---------------------------------------------------------

def parse_target_state(kind: EventKind, target: str | EventState) -> EventState:
    """Resolve a requested state, rejecting ones the event kind does not have."""
    try:
        state = EventState(target)
    except ValueError:
        state = None
    if state is None or state not in states_for(kind):
        raise ValidationError(
            f"'{target}' is not a valid state for a {kind.value}",
            field="state", code="INVALID_STATE",
        )
    return state


def check_transition(
    kind: EventKind,
    current: EventState,
    target: EventState,
    active_entry_count: int,
    context: ErrorContext | None = None,
) -> None:
    """Validate a single-event transition (cross-event checks excluded)."""
    if is_terminal(current):
        raise StateError(
            f"Cannot change state of a {current.value} {kind.value}",
            current_state=current.value, code="EVENT_TERMINAL", context=context,
        )
    if current == target:
        raise StateError(
            f"{kind.value.capitalize()} is already {current.value}",
            current_state=current.value, code="ALREADY_IN_STATE", context=context,
        )
    if current == EventState.DRAFT and target != EventState.LIVE:
        raise StateError(
            f"Cannot {_verb(kind)} a draft {kind.value} directly",
            current_state=current.value, code="ILLEGAL_TRANSITION", context=context,
        )
    if current == EventState.LIVE and target != terminal_state_for(kind):
        raise StateError(
            f"A live {kind.value} can only be {terminal_state_for(kind).value}",
            current_state=current.value, code="ILLEGAL_TRANSITION", context=context,
        )
    if target == EventState.LIVE and active_entry_count < 1:
        raise StateError(
            "Cannot go live without any movies",
            current_state=current.value, code="NO_ENTRIES", context=context,
        )


def _verb(kind: EventKind) -> str:
    return "freeze" if kind == EventKind.SURVEY else "close"


# --- Mutation gates ------------------------------------------------------------

def check_entries_mutable(
    kind: EventKind, state: EventState, context: ErrorContext | None = None,
) -> None:
    if is_terminal(state):
        raise StateError(
            f"Cannot change movies of a {state.value} {kind.value}",
            current_state=state.value, code="EVENT_TERMINAL", context=context,
        )


def check_accepting_ballots(
    kind: EventKind, state: EventState, context: ErrorContext | None = None,
) -> None:
    if state != EventState.LIVE:
        raise StateError(
            f"This {kind.value} is not accepting votes",
            current_state=state.value, code="NOT_ACCEPTING_VOTES", context=context,
        )


def check_editable(
    kind: EventKind,
    state: EventState,
    changes_max_rank: bool,
    context: ErrorContext | None = None,
) -> None:
    """Title/description editable until terminal; max rank only while draft."""
    if is_terminal(state):
        raise StateError(
            f"Cannot edit a {state.value} {kind.value}",
            current_state=state.value, code="EVENT_TERMINAL", context=context,
        )
    if changes_max_rank and state != EventState.DRAFT:
        raise StateError(
            "Max rank can only be changed while the event is a draft",
            current_state=state.value, code="MAX_RANK_LOCKED", context=context,
        )


def check_deletable(
    kind: EventKind, state: EventState, context: ErrorContext | None = None,
) -> None:
    if state != EventState.DRAFT:
        raise StateError(
            f"Can only delete draft {kind.value}s",
            current_state=state.value, code="NOT_DRAFT", context=context,
        )


def check_archivable(
    kind: EventKind, state: EventState, context: ErrorContext | None = None,
) -> None:
    if state != terminal_state_for(kind):
        raise StateError(
            f"Can only archive {terminal_state_for(kind).value} {kind.value}s",
            current_state=state.value, code="NOT_TERMINAL", context=context,
        )
