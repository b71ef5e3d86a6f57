"""Persistence boundary for competitions and their participants."""

import logging
from typing import Any, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.competitions.models import Competition, CompetitionUser
from src.competitions.schemas import (
    CompetitionCreate,
    CompetitionSchema,
    InviteStatus,
    ParticipantSchema,
)

logger = logging.getLogger(__name__)


class CompetitionRepository(Protocol):
    """Storage for competitions. The scoring engine only reads through it."""

    async def get_competition(
        self, competition_id: str
    ) -> Optional[CompetitionSchema]: ...

    async def list_competitions_for_user(
        self, user_id: str, invite_status: Optional[InviteStatus] = None
    ) -> list[CompetitionSchema]: ...

    async def create_competition(
        self, owner: str, data: CompetitionCreate
    ) -> CompetitionSchema: ...

    async def update_competition(
        self, competition_id: str, values: dict[str, Any]
    ) -> CompetitionSchema: ...

    async def delete_competition(self, competition_id: str) -> bool: ...

    async def upsert_participant(
        self, competition_id: str, user_id: str, invite_status: InviteStatus
    ) -> ParticipantSchema: ...


class SqlAlchemyCompetitionRepository:
    """Competition repository backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get(self, competition_id: str) -> Optional[Competition]:
        result = await self.session.execute(
            select(Competition)
            .filter(Competition.id == competition_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _snapshot(self, competition: Competition) -> CompetitionSchema:
        await self.session.refresh(competition, attribute_names=["users"])
        return CompetitionSchema.model_validate(competition)

    async def get_competition(
        self, competition_id: str
    ) -> Optional[CompetitionSchema]:
        """Get competition with all participants by ID.

        Parameters
        ----------
        competition_id : str
            Competition ID

        Returns
        -------
        CompetitionSchema | None
            Competition snapshot if found, None otherwise
        """
        competition = await self._get(competition_id)
        if competition is None:
            return None
        return CompetitionSchema.model_validate(competition)

    async def list_competitions_for_user(
        self, user_id: str, invite_status: Optional[InviteStatus] = None
    ) -> list[CompetitionSchema]:
        """Get competitions a user participates in.

        Parameters
        ----------
        user_id : str
            User ID
        invite_status : InviteStatus | None
            Only include competitions where the user's invite has this status

        Returns
        -------
        list[CompetitionSchema]
            Competitions, newest first
        """
        query = (
            select(Competition)
            .join(CompetitionUser, CompetitionUser.competition_id == Competition.id)
            .filter(CompetitionUser.user_id == user_id)
            .order_by(Competition.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if invite_status is not None:
            query = query.filter(CompetitionUser.invite_status == invite_status.value)

        result = await self.session.execute(query)
        return [
            CompetitionSchema.model_validate(competition)
            for competition in result.scalars().unique().all()
        ]

    async def create_competition(
        self, owner: str, data: CompetitionCreate
    ) -> CompetitionSchema:
        """Create a competition with its owner as an accepted participant."""
        try:
            competition = Competition(
                competition_name=data.competition_name,
                type=data.type.value,
                start_date=data.start_date,
                end_date=data.end_date,
                workouts=[kind.value for kind in data.workouts],
                options=data.options.model_dump(mode="json", exclude_none=True),
                owner=owner,
            )
            competition.users.append(
                CompetitionUser(
                    user_id=owner, invite_status=InviteStatus.ACCEPTED.value
                )
            )
            self.session.add(competition)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            f"Created competition {competition.id}: {competition.competition_name} "
            f"({competition.type}) owned by {owner}"
        )
        return await self._snapshot(competition)

    async def update_competition(
        self, competition_id: str, values: dict[str, Any]
    ) -> CompetitionSchema:
        """Overwrite competition columns with ``values``.

        Raises
        ------
        ValueError
            If the competition does not exist
        """
        competition = await self._get(competition_id)
        if competition is None:
            raise ValueError(f"Competition {competition_id} not found")

        try:
            for column, value in values.items():
                setattr(competition, column, value)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Updated competition {competition_id}: {sorted(values)}")
        return await self._snapshot(competition)

    async def delete_competition(self, competition_id: str) -> bool:
        """Delete competition and its participants.

        Returns
        -------
        bool
            True if deleted, False if not found
        """
        competition = await self._get(competition_id)
        if competition is None:
            logger.warning(f"Competition {competition_id} not found for deletion")
            return False

        try:
            await self.session.delete(competition)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Deleted competition {competition_id}")
        return True

    async def upsert_participant(
        self, competition_id: str, user_id: str, invite_status: InviteStatus
    ) -> ParticipantSchema:
        """Create or update a user's participation in a competition."""
        result = await self.session.execute(
            select(CompetitionUser).filter(
                CompetitionUser.competition_id == competition_id,
                CompetitionUser.user_id == user_id,
            )
        )
        participant = result.scalar_one_or_none()

        try:
            if participant is None:
                participant = CompetitionUser(
                    competition_id=competition_id,
                    user_id=user_id,
                    invite_status=invite_status.value,
                )
                self.session.add(participant)
            else:
                participant.invite_status = invite_status.value
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            f"User {user_id} is {invite_status.value} in competition {competition_id}"
        )
        return ParticipantSchema.model_validate(participant)
