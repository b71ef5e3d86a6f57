"""Workout storage and activity providers."""

from src.workouts.client import HttpActivityProvider
from src.workouts.service import WorkoutActivityProvider

__all__ = ["HttpActivityProvider", "WorkoutActivityProvider"]
