"""Initial schema — movies, participants, voting events, entries, ballots, change logs.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "movies",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tmdb_id", sa.Integer, nullable=False, unique=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("poster_path", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "participants",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("display_name", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "voting_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("kind", sa.String(10), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("state", sa.String(10), nullable=False, server_default="draft"),
        sa.Column("max_rank_n", sa.Integer, nullable=False, server_default="3"),
        sa.Column("archived", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("closes_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("live_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("frozen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "max_rank_n >= 1 AND max_rank_n <= 10", name="ck_voting_events_max_rank_n",
        ),
    )
    op.create_index("ix_voting_events_state", "voting_events", ["state"])
    # At most one live survey
    op.create_index(
        "uq_voting_events_one_live_survey", "voting_events", ["kind"],
        unique=True,
        postgresql_where=sa.text("kind = 'survey' AND state = 'live'"),
    )

    op.create_table(
        "event_entries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id", UUID(as_uuid=True),
            sa.ForeignKey("voting_events.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("movie_id", UUID(as_uuid=True), sa.ForeignKey("movies.id"), nullable=False),
        sa.Column("added_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("removed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("event_id", "movie_id", name="uq_event_entries_event_movie"),
    )
    op.create_index("ix_event_entries_event_id", "event_entries", ["event_id"])

    op.create_table(
        "ballots",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id", UUID(as_uuid=True),
            sa.ForeignKey("voting_events.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("participant_id", sa.String(64), nullable=False),
        sa.Column("display_name", sa.String(50), nullable=True),
        sa.Column("disabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "participant_id", name="uq_ballots_event_participant"),
    )
    op.create_index("ix_ballots_event_id", "ballots", ["event_id"])

    op.create_table(
        "ballot_ranks",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "ballot_id", UUID(as_uuid=True),
            sa.ForeignKey("ballots.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("rank", sa.Integer, nullable=False),
        sa.Column("movie_id", UUID(as_uuid=True), sa.ForeignKey("movies.id"), nullable=False),
        sa.UniqueConstraint("ballot_id", "rank", name="uq_ballot_ranks_rank"),
        sa.UniqueConstraint("ballot_id", "movie_id", name="uq_ballot_ranks_movie"),
    )
    op.create_index("ix_ballot_ranks_ballot_id", "ballot_ranks", ["ballot_id"])

    op.create_table(
        "ballot_change_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id", UUID(as_uuid=True),
            sa.ForeignKey("voting_events.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("participant_id", sa.String(64), nullable=False),
        sa.Column("previous_ranks", sa.JSON, nullable=True),
        sa.Column("new_ranks", sa.JSON, nullable=True),
        sa.Column("reason", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_ballot_change_logs_event_id", "ballot_change_logs", ["event_id"])


def downgrade() -> None:
    op.drop_table("ballot_change_logs")
    op.drop_table("ballot_ranks")
    op.drop_table("ballots")
    op.drop_table("event_entries")
    op.drop_index("uq_voting_events_one_live_survey", table_name="voting_events")
    op.drop_index("ix_voting_events_state", table_name="voting_events")
    op.drop_table("voting_events")
    op.drop_table("participants")
    op.drop_table("movies")
