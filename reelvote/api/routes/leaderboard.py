"""Leaderboard Route — oracle accuracy across completed events."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.infrastructure.database import get_db
from reelvote.schemas.leaderboard import LeaderboardEntryResponse, LeaderboardResponse
from reelvote.services.leaderboard import LeaderboardAggregator

router = APIRouter(prefix="/api/v1/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(db: AsyncSession = Depends(get_db)):
    report = await LeaderboardAggregator(db).build()
    return LeaderboardResponse(
        entries=[LeaderboardEntryResponse.model_validate(e) for e in report.entries],
        total_completed_events=report.total_completed_events,
    )
