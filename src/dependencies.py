"""FastAPI dependencies for accessing application state."""

from typing import AsyncIterator, cast

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.competitions.engine import ActivityProvider, ScoringEngine
from src.competitions.repository import SqlAlchemyCompetitionRepository
from src.competitions.schemas import CompetitionSchema, Unit
from src.competitions.service import CompetitionService, ProviderFactory
from src.config import get_settings
from src.core.request_context import set_user_id
from src.workouts.client import HttpActivityProvider
from src.workouts.service import WorkoutActivityProvider

# Set by the authentication gateway in front of this service
user_id_header = APIKeyHeader(name="X-User-ID", auto_error=False)


async def get_session_maker(request: Request) -> async_sessionmaker:
    return cast(async_sessionmaker, request.state.session_maker)


async def get_session(
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> AsyncIterator[AsyncSession]:
    """
    Get database session from application state.

    Usage:
        @router.get("/competitions")
        async def list_competitions(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_current_user_id(user_id: str | None = Security(user_id_header)) -> str:
    """
    Get the calling user's ID from the X-User-ID header.

    Raises
    ------
    HTTPException
        401 if the header is missing
    """
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-ID header")
    set_user_id(user_id)
    return user_id


def get_scoring_engine() -> ScoringEngine:
    settings = get_settings()
    return ScoringEngine(
        tz=settings.reference_zone,
        max_concurrent_fetches=settings.SCORING_MAX_CONCURRENT_FETCHES,
        fetch_timeout=settings.SCORING_FETCH_TIMEOUT_SECONDS,
    )


async def get_provider_factory(
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> ProviderFactory:
    """
    Build activity providers for competitions.

    Uses the remote activity service when ACTIVITY_PROVIDER_URL is set,
    otherwise the local workouts table.
    """
    settings = get_settings()

    def factory(competition: CompetitionSchema) -> ActivityProvider:
        unit = competition.options.unit or Unit.MILES
        if settings.ACTIVITY_PROVIDER_URL:
            return HttpActivityProvider(
                base_url=settings.ACTIVITY_PROVIDER_URL,
                unit=unit,
                access_token=settings.ACTIVITY_PROVIDER_TOKEN,
            )
        return WorkoutActivityProvider(session_maker, unit)

    return factory


async def get_competition_service(
    session: AsyncSession = Depends(get_session),
    engine: ScoringEngine = Depends(get_scoring_engine),
    provider_factory: ProviderFactory = Depends(get_provider_factory),
) -> CompetitionService:
    return CompetitionService(
        repository=SqlAlchemyCompetitionRepository(session),
        engine=engine,
        provider_factory=provider_factory,
        tz=get_settings().reference_zone,
    )
