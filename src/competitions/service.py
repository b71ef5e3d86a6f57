"""Service layer for competitions."""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional

from pydantic import ValidationError

from src.competitions.calculator import calculate_winners
from src.competitions.engine import ActivityProvider, ScoringEngine
from src.competitions.exceptions import (
    AuthorizationError,
    ConfigurationError,
    InvalidStateError,
    NotFoundError,
)
from src.competitions.intervals import to_utc
from src.competitions.repository import CompetitionRepository
from src.competitions.schemas import (
    CompetitionCreate,
    CompetitionOptions,
    CompetitionSchema,
    CompetitionScores,
    CompetitionStatus,
    CompetitionUpdate,
    InviteStatus,
    LeaderboardEntry,
    ParticipantSchema,
)
from src.competitions.status import has_started, resolve_status
from src.competitions.validation import validate_competition

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[CompetitionSchema], ActivityProvider]


class CompetitionService:
    """Competition lifecycle and scoring.

    Parameters
    ----------
    repository : CompetitionRepository
        Competition storage
    engine : ScoringEngine
        Scoring engine
    provider_factory : Callable[[CompetitionSchema], ActivityProvider]
        Builds the activity provider for a competition (unit-specific)
    tz : tzinfo
        Reference zone
    """

    def __init__(
        self,
        repository: CompetitionRepository,
        engine: ScoringEngine,
        provider_factory: ProviderFactory,
        tz: tzinfo,
    ):
        self.repository = repository
        self.engine = engine
        self.provider_factory = provider_factory
        self.tz = tz

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return now or datetime.now(timezone.utc)

    def get_status(
        self, competition: CompetitionSchema, now: Optional[datetime] = None
    ) -> CompetitionStatus:
        return resolve_status(
            competition.start_date, competition.end_date, self._now(now), self.tz
        )

    async def get_competition(self, competition_id: str) -> CompetitionSchema:
        """Get competition by ID.

        Raises
        ------
        NotFoundError
            If the competition does not exist
        """
        competition = await self.repository.get_competition(competition_id)
        if competition is None:
            raise NotFoundError(f"No competition found with id: {competition_id}")
        return competition

    async def _get_owned(self, competition_id: str, user_id: str) -> CompetitionSchema:
        competition = await self.get_competition(competition_id)
        if competition.owner != user_id:
            raise AuthorizationError(
                f"Only the owner of competition {competition_id} can do this"
            )
        return competition

    async def create_competition(
        self, owner: str, data: CompetitionCreate
    ) -> CompetitionSchema:
        """Validate and create a competition owned by ``owner``.

        Raises
        ------
        ConfigurationError
            If required options for the competition type are missing
        """
        data = data.model_copy(
            update={
                "start_date": to_utc(data.start_date, self.tz),
                "end_date": to_utc(data.end_date, self.tz),
            }
        )
        validate_competition(
            data.type,
            data.options,
            start_date=data.start_date,
            end_date=data.end_date,
            workouts=data.workouts,
            owner=owner,
        )
        return await self.repository.create_competition(owner, data)

    async def list_competitions(
        self,
        user_id: str,
        status: Optional[CompetitionStatus] = None,
        page: int = 1,
        page_size: int = 25,
        now: Optional[datetime] = None,
    ) -> list[CompetitionSchema]:
        """Get a page of the competitions a user has joined.

        Parameters
        ----------
        user_id : str
            User ID
        status : CompetitionStatus | None
            Only include competitions currently in this status
        page : int
            Page number (1-indexed)
        page_size : int
            Competitions per page

        Returns
        -------
        list[CompetitionSchema]
            Competitions where the user's invite is accepted
        """
        now = self._now(now)
        competitions = await self.repository.list_competitions_for_user(
            user_id, InviteStatus.ACCEPTED
        )
        if status is not None:
            competitions = [
                competition
                for competition in competitions
                if self.get_status(competition, now) == status
            ]

        offset = (page - 1) * page_size
        return competitions[offset : offset + page_size]

    async def list_invites(self, user_id: str) -> list[CompetitionSchema]:
        """Get competitions the user has a pending invite to."""
        return await self.repository.list_competitions_for_user(
            user_id, InviteStatus.PENDING
        )

    async def update_competition(
        self,
        competition_id: str,
        user_id: str,
        changes: CompetitionUpdate,
        now: Optional[datetime] = None,
    ) -> CompetitionSchema:
        """Update a competition that has not started yet.

        Options are merged into the existing options and the resulting
        configuration is validated as a whole.

        Raises
        ------
        NotFoundError, AuthorizationError, InvalidStateError, ConfigurationError
        """
        competition = await self._get_owned(competition_id, user_id)
        if has_started(competition.start_date, self._now(now), self.tz):
            raise InvalidStateError(
                "Cannot update a competition that has already started"
            )

        updates = changes.model_dump(exclude_unset=True, exclude={"options"})
        for key in ("start_date", "end_date"):
            if key in updates:
                updates[key] = to_utc(updates[key], self.tz)
        merged = competition.model_copy(update=updates)

        options = competition.options
        if changes.options is not None:
            overrides = changes.options.model_dump(exclude_unset=True)
            try:
                options = CompetitionOptions.model_validate(
                    {**competition.options.model_dump(), **overrides}
                )
            except ValidationError as e:
                invalid = sorted({str(error["loc"][0]) for error in e.errors()})
                raise ConfigurationError([], invalid) from e

        validate_competition(
            merged.type,
            options,
            start_date=merged.start_date,
            end_date=merged.end_date,
            workouts=merged.workouts,
            owner=merged.owner,
        )

        values = {
            "competition_name": merged.competition_name,
            "type": merged.type.value,
            "start_date": merged.start_date,
            "end_date": merged.end_date,
            "workouts": [kind.value for kind in merged.workouts],
            "options": options.model_dump(mode="json", exclude_none=True),
        }
        return await self.repository.update_competition(competition_id, values)

    async def start_competition(
        self, competition_id: str, user_id: str, now: Optional[datetime] = None
    ) -> CompetitionSchema:
        """Start a competition immediately.

        When ``duration_hours`` is configured and no end date is set, the
        end date becomes start + duration.

        Raises
        ------
        NotFoundError, AuthorizationError, InvalidStateError
        """
        now = to_utc(self._now(now), self.tz)
        competition = await self._get_owned(competition_id, user_id)
        if has_started(competition.start_date, now, self.tz):
            raise InvalidStateError(f"Competition {competition_id} has already started")

        values: dict = {"start_date": now}
        duration_hours = competition.options.duration_hours
        if competition.end_date is None and duration_hours:
            values["end_date"] = now + timedelta(hours=duration_hours)

        logger.info(f"Starting competition {competition_id} at {now.isoformat()}")
        return await self.repository.update_competition(competition_id, values)

    async def delete_competition(self, competition_id: str, user_id: str) -> None:
        """Delete a competition. Owner only."""
        await self._get_owned(competition_id, user_id)
        await self.repository.delete_competition(competition_id)

    async def invite_user(
        self, competition_id: str, inviter: str, invitee: str
    ) -> ParticipantSchema:
        """Invite a user to a competition.

        Raises
        ------
        NotFoundError
            If the competition does not exist
        AuthorizationError
            If the inviter is not an accepted participant
        InvalidStateError
            If the invitee already joined
        """
        competition = await self.get_competition(competition_id)

        if inviter not in competition.accepted_user_ids:
            raise AuthorizationError("User does not have access to this competition")

        if invitee in competition.accepted_user_ids:
            raise InvalidStateError(f"User {invitee} is already in this competition")

        return await self.repository.upsert_participant(
            competition_id, invitee, InviteStatus.PENDING
        )

    async def respond_to_invite(
        self, competition_id: str, user_id: str, status: InviteStatus
    ) -> CompetitionSchema:
        """Accept or decline a pending invite.

        Raises
        ------
        NotFoundError, InvalidStateError
        """
        competition = await self.get_competition(competition_id)

        participant = competition.participant(user_id)
        if participant is None or participant.invite_status != InviteStatus.PENDING:
            raise InvalidStateError(
                f"User {user_id} does not have a pending invite to competition {competition_id}"
            )

        await self.repository.upsert_participant(competition_id, user_id, status)
        return await self.get_competition(competition_id)

    async def get_scores(
        self, competition_id: str, now: Optional[datetime] = None
    ) -> CompetitionScores:
        """Compute the leaderboard of a competition from raw activity.

        Parameters
        ----------
        competition_id : str
            Competition ID
        now : datetime | None
            Reference time. Defaults to the current time.

        Returns
        -------
        CompetitionScores
            Leaderboard sorted by score (descending, ties by user ID)

        Raises
        ------
        NotFoundError
            If the competition does not exist
        UpstreamFetchError
            If any participant's activity could not be fetched
        """
        now = self._now(now)
        competition = await self.get_competition(competition_id)
        provider = self.provider_factory(competition)

        scores = await self.engine.score(competition, provider, now)

        leaderboard = [
            LeaderboardEntry(
                user_id=user_id,
                score=result.score,
                remaining_lives=result.remaining_lives,
                intervals=result.intervals,
            )
            for user_id, result in sorted(
                scores.items(), key=lambda item: (-item[1].score, item[0])
            )
        ]

        return CompetitionScores(
            competition_id=competition.id,
            status=self.get_status(competition, now),
            current_interval=self.engine.current_interval(competition, now),
            leaderboard=leaderboard,
            winners=calculate_winners(competition.type, scores, competition.options),
        )
