"""Pydantic schemas for competitions and scoring results."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompetitionType(str, Enum):
    STREAKS = "streaks"
    APEX = "apex"
    CLASH = "clash"
    TARGETS = "targets"
    RACE = "race"


class Interval(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Unit(str, Enum):
    MILES = "miles"
    KILOMETERS = "kilometers"
    STEPS = "steps"


class ActivityKind(str, Enum):
    RUN = "run"
    WALK = "walk"


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class CompetitionStatus(str, Enum):
    LOBBY = "lobby"  # not started by the owner yet
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    FINISHED = "finished"


class CompetitionOptions(BaseModel):
    """Type-specific competition options.

    Which fields are mandatory depends on the competition type and is
    enforced by ``validate_competition``, not by this model.

    Attributes
    ----------
    goal : float | None
        Per-interval goal (streaks, targets) or total distance goal (race)
    unit : Unit | None
        Unit the goal and every interval total are expressed in
    first_to : int | None
        Points needed to win a clash or targets competition early
    interval : Interval | None
        Bucket granularity used for scoring
    duration_hours : int | None
        Competition length, used to derive end_date when started
    lives : int | None
        Misses tolerated before a streak resets (streaks only, defaults to 1)
    history : bool
        Whether workouts recorded before joining should count. Stored and
        returned for clients; scoring always covers the whole competition
        window.
    """

    goal: Optional[float] = None
    unit: Optional[Unit] = None
    first_to: Optional[int] = None
    interval: Optional[Interval] = None
    duration_hours: Optional[int] = None
    lives: Optional[int] = None
    history: bool = False


class ParticipantSchema(BaseModel):
    """A user's membership in a competition."""

    competition_id: str
    user_id: str
    invite_status: InviteStatus

    model_config = ConfigDict(from_attributes=True)


class CompetitionSchema(BaseModel):
    """Immutable competition snapshot read from the repository."""

    id: str
    competition_name: str
    type: CompetitionType
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    workouts: list[ActivityKind] = Field(default_factory=list)
    options: CompetitionOptions
    owner: str
    users: list[ParticipantSchema] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Dates are stored as UTC; some backends (SQLite) drop the offset
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def accepted_user_ids(self) -> list[str]:
        return [
            user.user_id
            for user in self.users
            if user.invite_status == InviteStatus.ACCEPTED
        ]

    def participant(self, user_id: str) -> Optional[ParticipantSchema]:
        for user in self.users:
            if user.user_id == user_id:
                return user
        return None


class DailyActivitySample(BaseModel):
    """Total qualifying distance for one user on one local calendar day."""

    user_id: str
    local_date: date
    distance: float = Field(ge=0)
    activity: Optional[str] = None


class ScoreResult(BaseModel):
    """Score for a single participant.

    Attributes
    ----------
    intervals : dict[str, float]
        Interval key to total distance, gap-free and in chronological order
    score : float
        Points (streaks, clash, targets) or total distance (apex, race)
    remaining_lives : int | None
        Lives left in the current streak (streaks only)
    """

    intervals: dict[str, float] = Field(default_factory=dict)
    score: float = 0
    remaining_lives: Optional[int] = None


class CompetitionCreate(BaseModel):
    """Request body for creating a competition."""

    competition_name: str
    type: CompetitionType
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    workouts: list[ActivityKind] = Field(
        default_factory=lambda: [ActivityKind.RUN, ActivityKind.WALK]
    )
    options: CompetitionOptions = Field(default_factory=CompetitionOptions)


class CompetitionOptionsUpdate(BaseModel):
    """Options to change; only the fields sent are merged."""

    goal: Optional[float] = None
    unit: Optional[Unit] = None
    first_to: Optional[int] = None
    interval: Optional[Interval] = None
    duration_hours: Optional[int] = None
    lives: Optional[int] = None
    history: Optional[bool] = None


class CompetitionUpdate(BaseModel):
    """Request body for updating a competition. Options are merged.

    Dates may be set to null to clear them; the other fields may only be
    omitted.
    """

    competition_name: Optional[str] = None
    type: Optional[CompetitionType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    workouts: Optional[list[ActivityKind]] = None
    options: Optional[CompetitionOptionsUpdate] = None

    @field_validator("competition_name", "type", "workouts", "options")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class InviteRequest(BaseModel):
    invite_user: str


class LeaderboardEntry(BaseModel):
    user_id: str
    score: float
    remaining_lives: Optional[int] = None
    intervals: dict[str, float]


class CompetitionScores(BaseModel):
    """Scores for every accepted participant of a competition.

    Attributes
    ----------
    competition_id : str
        Competition ID
    status : CompetitionStatus
        Lifecycle status at the reference time
    current_interval : str | None
        Key of the in-progress interval, None before start
    leaderboard : list[LeaderboardEntry]
        Participants sorted by score (descending)
    winners : list[str]
        Users that reached the target (race goal or first_to points)
    """

    competition_id: str
    status: CompetitionStatus
    current_interval: Optional[str] = None
    leaderboard: list[LeaderboardEntry]
    winners: list[str] = Field(default_factory=list)
