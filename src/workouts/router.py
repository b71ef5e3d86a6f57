"""Workout upload endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.dependencies import get_current_user_id, get_session
from src.workouts.schemas import WorkoutSchema, WorkoutUploadResult
from src.workouts.service import workout_service

router = APIRouter(prefix="/workouts", tags=["workouts"])


@router.post("", response_model=WorkoutUploadResult)
async def upload_workouts(
    workouts: list[WorkoutSchema],
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Upload workouts recorded on the caller's device.

    Workouts are keyed by workout ID; uploading the same workout again
    overwrites it.
    """
    return await workout_service.upload_workouts(db, user_id, workouts)
