"""Pydantic models for user gamification stats and workout history"""
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from typing import Optional, Union


class UserGamificationStats(BaseModel):
    """
    Snapshot of a user's persisted gamification counters.

    The engine never mutates a snapshot; it returns a new one.
    """

    user_id: str
    total_xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_workout_date: Optional[date] = None
    last_streak_freeze_date: Optional[date] = None
    total_workouts_completed: int = Field(default=0, ge=0)
    total_prs: int = Field(default=0, ge=0)
    rank_title: str = "Novice"
    birth_date: Optional[date] = None

    @model_validator(mode="after")
    def _longest_covers_current(self) -> "UserGamificationStats":
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) must be >= current_streak ({self.current_streak})"
            )
        return self


class WorkoutHistoryEntry(BaseModel):
    """One completed workout, as supplied by the persistence layer"""

    date: Union[datetime, date, str]
    workout_type: str = "unknown"  # push, pull, legs
