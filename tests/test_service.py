from datetime import datetime, timedelta

import pytest

from src.competitions.exceptions import (
    AuthorizationError,
    ConfigurationError,
    InvalidStateError,
    NotFoundError,
    UpstreamFetchError,
)
from src.competitions.schemas import (
    CompetitionCreate,
    CompetitionStatus,
    CompetitionType,
    CompetitionUpdate,
    InviteStatus,
)

from conftest import NOW, TZ, samples


def race(**overrides):
    data = {
        "competition_name": "Marathon Month",
        "type": CompetitionType.RACE,
        "options": {"goal": 2.6, "unit": "miles"},
    }
    data.update(overrides)
    return CompetitionCreate(**data)


class TestCreate:
    async def test_owner_joins_as_accepted(self, service):
        competition = await service.create_competition("alice", race())

        assert competition.owner == "alice"
        assert competition.accepted_user_ids == ["alice"]
        assert [kind.value for kind in competition.workouts] == ["run", "walk"]
        assert service.get_status(competition, NOW) == CompetitionStatus.LOBBY

    async def test_invalid_configuration_is_rejected(self, service, repository):
        with pytest.raises(ConfigurationError) as exc_info:
            await service.create_competition(
                "alice",
                CompetitionCreate(
                    competition_name="Streak",
                    type=CompetitionType.STREAKS,
                    options={"unit": "miles"},
                ),
            )

        assert exc_info.value.missing == ["goal", "interval"]
        assert repository.competitions == {}


class TestGetAndDelete:
    async def test_missing_competition(self, service):
        with pytest.raises(NotFoundError):
            await service.get_competition("nope")

    async def test_delete_requires_owner(self, service, repository):
        competition = await service.create_competition("alice", race())

        with pytest.raises(AuthorizationError):
            await service.delete_competition(competition.id, "bob")

        await service.delete_competition(competition.id, "alice")
        assert repository.competitions == {}


class TestUpdate:
    async def test_options_are_merged(self, service):
        competition = await service.create_competition("alice", race())

        updated = await service.update_competition(
            competition.id,
            "alice",
            CompetitionUpdate(competition_name="Half Marathon", options={"goal": 13.1}),
            now=NOW,
        )

        assert updated.competition_name == "Half Marathon"
        assert updated.options.goal == 13.1
        assert updated.options.unit.value == "miles"

    async def test_merged_options_are_validated(self, service):
        competition = await service.create_competition("alice", race())

        with pytest.raises(ConfigurationError) as exc_info:
            await service.update_competition(
                competition.id, "alice", CompetitionUpdate(options={"goal": 0}), now=NOW
            )
        assert exc_info.value.invalid == ["goal"]

    async def test_only_owner_can_update(self, service):
        competition = await service.create_competition("alice", race())

        with pytest.raises(AuthorizationError):
            await service.update_competition(
                competition.id, "bob", CompetitionUpdate(competition_name="Mine"), now=NOW
            )

    async def test_started_competition_is_locked(self, service):
        competition = await service.create_competition(
            "alice", race(start_date=NOW - timedelta(days=1))
        )

        with pytest.raises(InvalidStateError):
            await service.update_competition(
                competition.id, "alice", CompetitionUpdate(competition_name="Late"), now=NOW
            )


class TestStart:
    async def test_start_sets_end_from_duration(self, service):
        competition = await service.create_competition(
            "alice",
            CompetitionCreate(
                competition_name="Weekend Apex",
                type=CompetitionType.APEX,
                options={"unit": "miles", "duration_hours": 48},
            ),
        )

        started = await service.start_competition(competition.id, "alice", now=NOW)

        assert started.start_date == NOW
        assert started.end_date == NOW + timedelta(hours=48)
        assert service.get_status(started, NOW) == CompetitionStatus.ACTIVE
        assert service.get_status(started, NOW + timedelta(hours=48)) == (
            CompetitionStatus.FINISHED
        )

    async def test_start_keeps_explicit_end_date(self, service):
        end = datetime(2026, 11, 1, tzinfo=TZ)
        competition = await service.create_competition("alice", race(end_date=end))

        started = await service.start_competition(competition.id, "alice", now=NOW)

        assert started.end_date == end

    async def test_cannot_start_twice(self, service):
        competition = await service.create_competition("alice", race())
        await service.start_competition(competition.id, "alice", now=NOW)

        with pytest.raises(InvalidStateError):
            await service.start_competition(competition.id, "alice", now=NOW)


class TestInvites:
    async def test_invite_and_accept(self, service):
        competition = await service.create_competition("alice", race())

        participant = await service.invite_user(competition.id, "alice", "bob")
        assert participant.invite_status == InviteStatus.PENDING
        assert [c.id for c in await service.list_invites("bob")] == [competition.id]

        joined = await service.respond_to_invite(
            competition.id, "bob", InviteStatus.ACCEPTED
        )
        assert joined.accepted_user_ids == ["alice", "bob"]
        assert await service.list_invites("bob") == []

    async def test_decline(self, service):
        competition = await service.create_competition("alice", race())
        await service.invite_user(competition.id, "alice", "bob")

        declined = await service.respond_to_invite(
            competition.id, "bob", InviteStatus.DECLINED
        )

        assert declined.accepted_user_ids == ["alice"]
        assert declined.participant("bob").invite_status == InviteStatus.DECLINED

    async def test_outsider_cannot_invite(self, service):
        competition = await service.create_competition("alice", race())

        with pytest.raises(AuthorizationError):
            await service.invite_user(competition.id, "mallory", "bob")

    async def test_cannot_invite_member(self, service):
        competition = await service.create_competition("alice", race())

        with pytest.raises(InvalidStateError):
            await service.invite_user(competition.id, "alice", "alice")

    async def test_respond_without_invite(self, service):
        competition = await service.create_competition("alice", race())

        with pytest.raises(InvalidStateError):
            await service.respond_to_invite(
                competition.id, "bob", InviteStatus.ACCEPTED
            )


class TestList:
    async def test_pagination(self, service):
        for i in range(3):
            await service.create_competition("alice", race(competition_name=f"Race {i}"))

        page = await service.list_competitions("alice", page=2, page_size=2, now=NOW)

        assert [competition.competition_name for competition in page] == ["Race 2"]

    async def test_status_filter(self, service):
        lobby = await service.create_competition("alice", race())
        active = await service.create_competition("alice", race())
        await service.start_competition(active.id, "alice", now=NOW - timedelta(days=1))

        result = await service.list_competitions(
            "alice", CompetitionStatus.ACTIVE, now=NOW
        )
        assert [competition.id for competition in result] == [active.id]

        result = await service.list_competitions(
            "alice", CompetitionStatus.LOBBY, now=NOW
        )
        assert [competition.id for competition in result] == [lobby.id]

    async def test_pending_invites_not_listed_as_joined(self, service):
        competition = await service.create_competition("alice", race())
        await service.invite_user(competition.id, "alice", "bob")

        assert await service.list_competitions("bob", now=NOW) == []


class TestScores:
    async def _race_with_bob(self, service):
        competition = await service.create_competition("alice", race())
        await service.invite_user(competition.id, "alice", "bob")
        await service.respond_to_invite(competition.id, "bob", InviteStatus.ACCEPTED)
        await service.start_competition(
            competition.id, "alice", now=datetime(2026, 10, 18, 8, tzinfo=TZ)
        )
        return competition

    async def test_leaderboard(self, service, provider):
        competition = await self._race_with_bob(service)
        provider.data = {
            "alice": samples("alice", {"2026-10-18": 1.5, "2026-10-19": 1.0}),
            "bob": samples("bob", {"2026-10-18": 3.0}),
        }

        scores = await service.get_scores(competition.id, NOW)

        assert scores.status == CompetitionStatus.ACTIVE
        assert scores.current_interval == "2026-10-19"
        assert [entry.user_id for entry in scores.leaderboard] == ["bob", "alice"]
        assert scores.leaderboard[1].score == pytest.approx(2.5)
        assert scores.winners == ["bob"]

    async def test_ties_ordered_by_user_id(self, service, provider):
        competition = await self._race_with_bob(service)
        provider.data = {
            "bob": samples("bob", {"2026-10-18": 1.0}),
            "alice": samples("alice", {"2026-10-19": 1.0}),
        }

        scores = await service.get_scores(competition.id, NOW)

        assert [entry.user_id for entry in scores.leaderboard] == ["alice", "bob"]
        assert scores.winners == []

    async def test_lobby_competition(self, service, provider):
        competition = await service.create_competition("alice", race())

        scores = await service.get_scores(competition.id, NOW)

        assert scores.status == CompetitionStatus.LOBBY
        assert scores.current_interval is None
        assert scores.leaderboard[0].score == 0
        assert provider.calls == []

    async def test_upstream_failure_propagates(self, service, provider):
        competition = await self._race_with_bob(service)
        provider.failing = {"bob"}

        with pytest.raises(UpstreamFetchError):
            await service.get_scores(competition.id, NOW)
