"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union
from datetime import datetime


class RequirementType(str, Enum):
    """What an achievement's requirement_value is measured against"""
    WORKOUTS = "workouts"
    PRS = "prs"
    STREAK = "streak"
    WEIGHT_THRESHOLD = "weight_threshold"
    REPS_THRESHOLD = "reps_threshold"
    SPECIAL = "special"


class SpecialCondition(str, Enum):
    """Named conditions for achievements with requirement_type 'special'"""
    EARLY_BIRD = "Early Bird"
    NIGHT_OWL = "Night Owl"
    BIRTHDAY_PR = "Birthday PR"
    COMEBACK_KING = "Comeback King"
    SOVIET_COMRADE = "Soviet Comrade"
    THE_UNBREAKABLE = "The Unbreakable"
    # Deferred: need workout history aggregates the engine is not given
    PERFECT_WEEK = "Perfect Week"
    RING_MASTER = "Ring Master"
    BALANCED_WARRIOR = "Balanced Warrior"
    DOUBLE_BODYWEIGHT = "Double Bodyweight"


class AchievementRarity(str, Enum):
    """Achievement rarity, drives default notification visibility"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class AchievementDefinition(BaseModel):
    """Achievement catalog entry"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    icon: Optional[str] = None
    category: str = "milestone"
    # Unknown requirement types are kept as plain strings and never unlock
    requirement_type: Union[RequirementType, str]
    requirement_value: Optional[float] = None  # None only for 'special'
    exercise_specific: Optional[str] = None  # restricts reps_threshold to one exercise
    rarity: AchievementRarity = AchievementRarity.COMMON
    is_secret: bool = False
    xp_reward: int = Field(default=0, ge=0)


class UserAchievement(BaseModel):
    """User's unlocked achievement"""
    user_id: str
    achievement_id: str
    unlocked_at: datetime
    progress: Optional[float] = None


class ExercisePerformance(BaseModel):
    """Single exercise result from the workout that triggered the check"""
    exercise_name: str
    weight: float = 0.0
    reps: int = Field(ge=0)


class AchievementContext(BaseModel):
    """
    Event-scoped facts for one achievement check.

    Built fresh for each activity event and never persisted.
    """
    # Workout context
    workout_just_completed: bool = False
    workout_type: Optional[str] = None  # push, pull, legs
    workout_time: Optional[datetime] = None

    # PR context
    pr_just_achieved: bool = False
    pr_exercise: Optional[str] = None
    pr_weight: Optional[float] = None
    pr_reps: Optional[int] = None

    # Exercise-specific context
    exercise_performance: Optional[ExercisePerformance] = None

    # Special contexts
    is_birthday: bool = False
    is_early_morning: bool = False
    is_late_night: bool = False
    days_since_last_workout: Optional[int] = None
