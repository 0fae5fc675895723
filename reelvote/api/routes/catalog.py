"""Catalog Routes — register movies and participants the voting engine references."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from reelvote.infrastructure.database import get_db
from reelvote.schemas.catalog import MovieCreate, ParticipantCreate, ParticipantResponse
from reelvote.schemas.event import MovieResponse
from reelvote.services.catalog import Catalog

router = APIRouter(prefix="/api/v1", tags=["catalog"])


@router.post("/movies", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
async def register_movie(body: MovieCreate, db: AsyncSession = Depends(get_db)):
    return await Catalog(db).register_movie(body.tmdb_id, body.title, body.poster_path)


@router.post(
    "/participants", response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_participant(body: ParticipantCreate, db: AsyncSession = Depends(get_db)):
    return await Catalog(db).register_participant(body.id, body.display_name)
