"""Workout database models."""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, Integer, String

from src.core.database import Base


class Workout(Base):
    """Workout uploaded from a user's device.

    Daily totals for competitions are aggregated from this table by
    local_date, so no running totals are stored anywhere.
    """

    __tablename__ = "workouts"

    # Composite primary key - workout IDs are only unique per device owner
    user_id = Column(String, primary_key=True)
    workout_id = Column(String, primary_key=True)

    workout_type = Column(String, nullable=False, index=True)  # run, walk

    # Metrics
    distance = Column(Float, nullable=False)  # meters
    steps = Column(Integer, nullable=True)
    calories = Column(Float, nullable=True)
    total_duration = Column(Float, nullable=True)  # seconds

    # Dates
    local_date = Column(Date, nullable=False, index=True)  # day in the user's zone
    recorded_at = Column(DateTime(timezone=True), nullable=False)  # UTC
    timezone_offset = Column(Integer, nullable=True)  # seconds from UTC
    device_end_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Workout(user_id={self.user_id}, workout_id='{self.workout_id}', type='{self.workout_type}', distance={self.distance})>"
