"""ORM Models — SQLAlchemy declarative models for all voting entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - VotingEvent is the aggregate root; entries, ballots and change logs scoped by event_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from reelvote.models.movie import Movie  # noqa: F401
from reelvote.models.participant import Participant  # noqa: F401
from reelvote.models.voting_event import VotingEvent  # noqa: F401
from reelvote.models.event_entry import EventEntry  # noqa: F401
from reelvote.models.ballot import Ballot, BallotRank  # noqa: F401
from reelvote.models.ballot_change_log import BallotChangeLog  # noqa: F401
