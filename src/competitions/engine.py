"""Competition scoring engine.

Fetches every accepted participant's daily activity concurrently, then
recomputes all scores from scratch. Nothing is cached or written back, so
the same competition, samples and reference time always give the same
result.
"""

import asyncio
from collections.abc import Sequence
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Protocol

from src.competitions.aggregation import aggregate_intervals
from src.competitions.calculator import calculate_scores
from src.competitions.exceptions import UpstreamFetchError
from src.competitions.intervals import (
    competition_window,
    interval_key,
    interval_range,
    to_reference,
)
from src.competitions.schemas import (
    CompetitionSchema,
    CompetitionType,
    DailyActivitySample,
    Interval,
    ScoreResult,
)
from src.competitions.status import has_started


class ActivityProvider(Protocol):
    """Source of per-day activity totals for a user."""

    async def fetch_daily_totals(
        self,
        user_id: str,
        start: date,
        end: Optional[date],
        activities: Sequence[str],
    ) -> Sequence[DailyActivitySample]: ...


class ScoringEngine:
    """Computes competition scores from raw daily activity.

    Parameters
    ----------
    tz : tzinfo
        Reference zone every interval key is computed in
    max_concurrent_fetches : int
        Upper bound on simultaneous provider calls
    fetch_timeout : float | None
        Seconds allowed for all fetches together. None waits forever.
    """

    def __init__(
        self,
        tz: tzinfo,
        max_concurrent_fetches: int = 8,
        fetch_timeout: Optional[float] = 30.0,
    ):
        self.tz = tz
        self.max_concurrent_fetches = max_concurrent_fetches
        self.fetch_timeout = fetch_timeout

    def current_interval(
        self, competition: CompetitionSchema, now: datetime
    ) -> Optional[str]:
        """Key of the in-progress interval, None when not running."""
        if not has_started(competition.start_date, now, self.tz):
            return None
        end_date = competition.end_date
        if end_date is not None and to_reference(end_date, self.tz) <= to_reference(
            now, self.tz
        ):
            return None
        return interval_key(now, self._interval(competition), self.tz)

    async def score(
        self,
        competition: CompetitionSchema,
        provider: ActivityProvider,
        now: Optional[datetime] = None,
    ) -> dict[str, ScoreResult]:
        """Score every accepted participant of a competition.

        Parameters
        ----------
        competition : CompetitionSchema
            Competition snapshot including its participants
        provider : ActivityProvider
            Source of daily activity totals
        now : datetime | None
            Reference time. Defaults to the current time.

        Returns
        -------
        dict[str, ScoreResult]
            Score per accepted user_id

        Raises
        ------
        UpstreamFetchError
            If any participant's activity could not be fetched in time
        """
        now = now or datetime.now(timezone.utc)
        user_ids = competition.accepted_user_ids

        if not has_started(competition.start_date, now, self.tz):
            return self._unstarted(competition, user_ids)

        first_day, last_day = competition_window(
            competition.start_date, competition.end_date, now, self.tz
        )
        samples = await self.fetch_samples(
            user_ids,
            provider,
            first_day,
            last_day,
            [kind.value for kind in competition.workouts],
        )
        return self.score_samples(competition, samples, now)

    def score_samples(
        self,
        competition: CompetitionSchema,
        samples: dict[str, Sequence[DailyActivitySample]],
        now: datetime,
    ) -> dict[str, ScoreResult]:
        """Score already-fetched samples. Pure; performs no I/O.

        Every user in ``samples`` is scored; a user with no samples gets
        zero totals for every elapsed interval.
        """
        if not has_started(competition.start_date, now, self.tz):
            return self._unstarted(competition, list(samples))

        interval = self._interval(competition)
        window = competition_window(
            competition.start_date, competition.end_date, now, self.tz
        )
        keys = interval_range(window[0], window[1], interval)
        activities = [kind.value for kind in competition.workouts]

        totals = {
            user_id: aggregate_intervals(
                user_samples, keys, interval, activities=activities, window=window
            )
            for user_id, user_samples in samples.items()
        }

        return calculate_scores(
            competition.type,
            totals,
            keys,
            self.current_interval(competition, now),
            competition.options,
        )

    async def fetch_samples(
        self,
        user_ids: list[str],
        provider: ActivityProvider,
        start: date,
        end: date,
        activities: list[str],
    ) -> dict[str, Sequence[DailyActivitySample]]:
        """Fetch daily totals for every user with a bounded fan-out.

        All fetches must succeed. On the first failure, or when the deadline
        passes, outstanding fetches are cancelled and the whole call fails:
        a failed fetch must never be scored as zero activity.
        """
        semaphore = asyncio.Semaphore(self.max_concurrent_fetches)

        async def fetch_one(user_id: str) -> Sequence[DailyActivitySample]:
            async with semaphore:
                return await provider.fetch_daily_totals(
                    user_id, start, end, activities
                )

        tasks = {
            asyncio.create_task(fetch_one(user_id)): user_id for user_id in user_ids
        }
        if not tasks:
            return {}

        try:
            done, pending = await asyncio.wait(
                tasks,
                timeout=self.fetch_timeout,
                return_when=asyncio.FIRST_EXCEPTION,
            )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        failed = [task for task in done if task.exception() is not None]
        if failed:
            first_error = failed[0].exception()
            raise UpstreamFetchError(
                sorted(tasks[task] for task in failed), str(first_error)
            ) from first_error

        if pending:
            raise UpstreamFetchError(
                sorted(tasks[task] for task in pending),
                f"timed out after {self.fetch_timeout}s",
            )

        return {tasks[task]: task.result() for task in tasks}

    def _unstarted(
        self, competition: CompetitionSchema, user_ids: list[str]
    ) -> dict[str, ScoreResult]:
        remaining_lives = None
        if competition.type == CompetitionType.STREAKS:
            remaining_lives = competition.options.lives or 1
        return {
            user_id: ScoreResult(score=0, remaining_lives=remaining_lives)
            for user_id in user_ids
        }

    @staticmethod
    def _interval(competition: CompetitionSchema) -> Interval:
        # apex and race have no required interval; totals are the same either way
        return competition.options.interval or Interval.DAY
