"""Pydantic schemas for workout uploads."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.competitions.schemas import ActivityKind


class WorkoutSchema(BaseModel):
    """Workout as sent by the mobile client (camelCase or snake_case keys)."""

    workout_id: str
    workout_type: ActivityKind
    distance: float = Field(ge=0)  # meters
    steps: Optional[int] = Field(default=None, ge=0)
    local_date: date
    recorded_at: datetime = Field(alias="date")
    timezone_offset: Optional[int] = None
    device_end_date: Optional[datetime] = None
    calories: Optional[float] = None
    total_duration: Optional[float] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkoutUploadResult(BaseModel):
    user_id: str
    created_count: int
    updated_count: int
    total_processed: int
