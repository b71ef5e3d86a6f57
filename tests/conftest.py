import asyncio
import os
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

# Settings are read at import time by the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REFERENCE_TIMEZONE", "America/New_York")
os.environ.setdefault("ENVIRONMENT", "staging")

import pytest

from src.competitions.engine import ScoringEngine
from src.competitions.schemas import (
    CompetitionCreate,
    CompetitionOptions,
    CompetitionSchema,
    CompetitionType,
    DailyActivitySample,
    InviteStatus,
    ParticipantSchema,
)
from src.competitions.service import CompetitionService

TZ = ZoneInfo("America/New_York")

# Monday 2026-10-19, 3pm in the reference zone
NOW = datetime(2026, 10, 19, 15, 0, tzinfo=TZ)


def make_competition(
    type: CompetitionType = CompetitionType.TARGETS,
    users: tuple[str, ...] = ("alice",),
    **overrides,
) -> CompetitionSchema:
    options = overrides.pop("options", {"goal": 1.0, "unit": "miles", "interval": "day"})
    data = {
        "id": "comp-1",
        "competition_name": "October Miles",
        "type": type,
        "start_date": datetime(2026, 10, 17, tzinfo=TZ),
        "end_date": None,
        "workouts": ["run", "walk"],
        "options": options,
        "owner": users[0] if users else "alice",
        "users": [
            {"competition_id": "comp-1", "user_id": user, "invite_status": "accepted"}
            for user in users
        ],
    }
    data.update(overrides)
    return CompetitionSchema.model_validate(data)


def samples(user_id: str, totals: dict[str, float], activity=None):
    return [
        DailyActivitySample(
            user_id=user_id,
            local_date=datetime.strptime(day, "%Y-%m-%d").date(),
            distance=distance,
            activity=activity,
        )
        for day, distance in totals.items()
    ]


class FakeActivityProvider:
    """In-memory activity provider recording every call."""

    def __init__(
        self,
        data: Optional[dict[str, list[DailyActivitySample]]] = None,
        failing: tuple[str, ...] = (),
        delay: float = 0.0,
    ):
        self.data = data or {}
        self.failing = set(failing)
        self.delay = delay
        self.calls: list[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.cancelled = 0

    async def fetch_daily_totals(self, user_id, start, end, activities):
        self.calls.append((user_id, start, end, tuple(activities)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if user_id in self.failing:
                raise ConnectionError(f"provider unavailable for {user_id}")
            return list(self.data.get(user_id, []))
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.in_flight -= 1


class InMemoryCompetitionRepository:
    """Competition repository keeping snapshots in a dict."""

    def __init__(self):
        self.competitions: dict[str, CompetitionSchema] = {}
        self._next_id = 1

    async def get_competition(self, competition_id):
        return self.competitions.get(competition_id)

    async def list_competitions_for_user(self, user_id, invite_status=None):
        return [
            competition
            for competition in self.competitions.values()
            if any(
                user.user_id == user_id
                and (invite_status is None or user.invite_status == invite_status)
                for user in competition.users
            )
        ]

    async def create_competition(self, owner, data: CompetitionCreate):
        competition_id = f"comp-{self._next_id}"
        self._next_id += 1
        competition = CompetitionSchema(
            id=competition_id,
            owner=owner,
            users=[
                ParticipantSchema(
                    competition_id=competition_id,
                    user_id=owner,
                    invite_status=InviteStatus.ACCEPTED,
                )
            ],
            **data.model_dump(),
        )
        self.competitions[competition_id] = competition
        return competition

    async def update_competition(self, competition_id, values):
        competition = self.competitions[competition_id]
        data = competition.model_dump()
        data.update(values)
        if isinstance(data["options"], CompetitionOptions):
            data["options"] = data["options"].model_dump()
        updated = CompetitionSchema.model_validate(data)
        self.competitions[competition_id] = updated
        return updated

    async def delete_competition(self, competition_id):
        return self.competitions.pop(competition_id, None) is not None

    async def upsert_participant(self, competition_id, user_id, invite_status):
        competition = self.competitions[competition_id]
        participant = ParticipantSchema(
            competition_id=competition_id,
            user_id=user_id,
            invite_status=invite_status,
        )
        users = [user for user in competition.users if user.user_id != user_id]
        users.append(participant)
        self.competitions[competition_id] = competition.model_copy(
            update={"users": users}
        )
        return participant


@pytest.fixture
def engine():
    return ScoringEngine(tz=TZ, max_concurrent_fetches=4, fetch_timeout=1.0)


@pytest.fixture
def repository():
    return InMemoryCompetitionRepository()


@pytest.fixture
def provider():
    return FakeActivityProvider()


@pytest.fixture
def service(repository, engine, provider):
    return CompetitionService(
        repository=repository,
        engine=engine,
        provider_factory=lambda competition: provider,
        tz=TZ,
    )
