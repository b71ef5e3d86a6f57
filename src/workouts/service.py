"""Workout storage and the database-backed activity provider."""

import logging
from collections.abc import Sequence
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.competitions.schemas import DailyActivitySample, Unit
from src.workouts.models import Workout
from src.workouts.schemas import WorkoutSchema, WorkoutUploadResult

logger = logging.getLogger(__name__)

METERS_PER_UNIT = {
    Unit.MILES: 1609.344,
    Unit.KILOMETERS: 1000.0,
}


def convert_distance(meters: float, unit: Unit) -> float:
    """Convert meters to a competition unit.

    Parameters
    ----------
    meters : float
        Distance in meters
    unit : Unit
        Target unit (miles or kilometers)

    Returns
    -------
    float
        Distance in ``unit``
    """
    return meters / METERS_PER_UNIT[unit]


class WorkoutService:
    """Service for managing uploaded workouts in the database."""

    async def get_workout(
        self, db: AsyncSession, user_id: str, workout_id: str
    ) -> Optional[Workout]:
        result = await db.execute(
            select(Workout).filter(
                Workout.user_id == user_id, Workout.workout_id == workout_id
            )
        )
        return result.scalar_one_or_none()

    async def upload_workouts(
        self, db: AsyncSession, user_id: str, workouts: list[WorkoutSchema]
    ) -> WorkoutUploadResult:
        """Create or update a batch of workouts for a user.

        Parameters
        ----------
        db : AsyncSession
            Database session
        user_id : str
            Owner of the workouts
        workouts : list[WorkoutSchema]
            Workouts from the device. Existing workout IDs are overwritten.

        Returns
        -------
        WorkoutUploadResult
            Counts of created and updated workouts
        """
        created_count = 0
        updated_count = 0

        try:
            for data in workouts:
                workout = await self.get_workout(db, user_id, data.workout_id)
                if workout is None:
                    workout = Workout(user_id=user_id, workout_id=data.workout_id)
                    db.add(workout)
                    created_count += 1
                else:
                    workout.updated_at = datetime.now(timezone.utc)
                    updated_count += 1

                workout.workout_type = data.workout_type.value
                workout.distance = data.distance
                workout.steps = data.steps
                workout.calories = data.calories
                workout.total_duration = data.total_duration
                workout.local_date = data.local_date
                workout.recorded_at = data.recorded_at
                workout.timezone_offset = data.timezone_offset
                workout.device_end_date = data.device_end_date

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Workout upload completed for user {user_id}: "
            f"{created_count} created, {updated_count} updated"
        )

        return WorkoutUploadResult(
            user_id=user_id,
            created_count=created_count,
            updated_count=updated_count,
            total_processed=created_count + updated_count,
        )


class WorkoutActivityProvider:
    """Activity provider reading daily totals from the workouts table.

    Each fetch opens its own session so that many participants can be
    fetched concurrently.

    Parameters
    ----------
    session_maker : async_sessionmaker
        Factory for database sessions
    unit : Unit
        Unit the returned totals are expressed in
    """

    def __init__(self, session_maker: async_sessionmaker, unit: Unit):
        self.session_maker = session_maker
        self.unit = unit

    async def fetch_daily_totals(
        self,
        user_id: str,
        start: date,
        end: Optional[date],
        activities: Sequence[str],
    ) -> list[DailyActivitySample]:
        """Get one total per local day with qualifying workouts.

        Parameters
        ----------
        user_id : str
            User ID
        start : date
            First local day (inclusive)
        end : date | None
            Last local day (inclusive). None for no upper bound.
        activities : Sequence[str]
            Qualifying workout types

        Returns
        -------
        list[DailyActivitySample]
            Samples ordered by local_date; days without workouts are absent
        """
        metric = Workout.steps if self.unit == Unit.STEPS else Workout.distance

        query = (
            select(Workout.local_date, func.sum(metric).label("total"))
            .filter(
                Workout.user_id == user_id,
                Workout.local_date >= start,
                Workout.workout_type.in_(list(activities)),
            )
            .group_by(Workout.local_date)
            .order_by(Workout.local_date)
        )
        if end is not None:
            query = query.filter(Workout.local_date <= end)

        async with self.session_maker() as session:
            result = await session.execute(query)
            rows = result.all()

        samples = []
        for local_date, total in rows:
            total = float(total or 0)
            if self.unit != Unit.STEPS:
                total = convert_distance(total, self.unit)
            samples.append(
                DailyActivitySample(user_id=user_id, local_date=local_date, distance=total)
            )
        return samples


workout_service = WorkoutService()
