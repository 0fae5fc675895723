"""Leaderboard Schemas."""

from pydantic import BaseModel, ConfigDict


class LeaderboardEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    participant_id: str
    display_name: str
    participation_count: int
    oracle_points_earned: int
    oracle_points_possible: int
    accuracy_percent: float


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]
    total_completed_events: int
