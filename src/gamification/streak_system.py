"""
Workout Streak Tracking System

Pure streak calculations over calendar dates:
- Current streak and status (active / at risk / broken)
- Streak update after a completed workout
- Streak freeze (mulligan): once per calendar month, rescues one missed day
- Milestones (7, 14, 30, 60, 90, 180, 365 days)

All "today" comparisons use the reference calendar from
src.utils.datetime_helpers. Every function accepts an explicit `today`
so callers can evaluate against a single reference "now".
"""

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from datetime import date
import logging

from src.gamification.xp_system import XPAction
from src.models.gamification import WorkoutHistoryEntry
from src.utils.datetime_helpers import (
    DateLike,
    days_between,
    to_reference_date,
    today_in_timezone,
)

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (7, 14, 30, 60, 90, 180, 365)

# Streak lengths that earn a one-off XP bonus
STREAK_BONUS_ACTIONS = {
    7: XPAction.STREAK_7_DAYS,
    30: XPAction.STREAK_30_DAYS,
}

HistoryItem = Union[WorkoutHistoryEntry, Mapping[str, Any]]


class StreakStatus(str, Enum):
    ACTIVE = "active"  # worked out today
    AT_RISK = "at_risk"  # worked out yesterday, not yet today
    BROKEN = "broken"  # gap of 2+ days, or no history


def _entry_date(entry: HistoryItem) -> date:
    raw = entry.date if isinstance(entry, WorkoutHistoryEntry) else entry["date"]
    return to_reference_date(raw)


def count_consecutive_days(workout_history: Iterable[HistoryItem], today: Optional[date] = None) -> int:
    """
    Count workouts in the unbroken run ending today (or yesterday)

    Walks the history newest-first. Each entry within 0 or 1 days of the
    previous cursor extends the run, so same-day duplicates are counted too.
    Stops at the first gap of 2 or more days.
    """
    today = today or today_in_timezone()
    dates = sorted((_entry_date(entry) for entry in workout_history), reverse=True)

    streak = 0
    cursor = today
    for workout_day in dates:
        gap = days_between(workout_day, cursor)
        if gap in (0, 1):
            streak += 1
            cursor = workout_day
        else:
            break

    return streak


def calculate_streak(
    last_workout_date: Optional[DateLike],
    workout_history: Iterable[HistoryItem],
    today: Optional[date] = None
) -> Dict[str, any]:
    """
    Calculate current streak and its status

    Logic:
    - No last workout: broken, streak 0
    - Last workout today: active
    - Last workout yesterday: at risk, mulligan offered
    - Last workout 2+ days ago: broken, streak 0 (mulligan only if exactly 2 days)

    Args:
        last_workout_date: Date of the most recent completed workout
        workout_history: Completed workouts ({date, workout_type})
        today: Reference date (defaults to today in the reference calendar)

    Returns:
        {
            'current_streak': int,
            'streak_status': StreakStatus,
            'can_use_mulligan': bool,
            'last_workout_date': date or None,
            'next_workout_date': date or None
        }
    """
    today = today or today_in_timezone()
    last_day = to_reference_date(last_workout_date)

    if last_day is None:
        return {
            "current_streak": 0,
            "streak_status": StreakStatus.BROKEN,
            "can_use_mulligan": False,
            "last_workout_date": None,
            "next_workout_date": None,
        }

    days_since = days_between(last_day, today)

    if days_since > 1:
        return {
            "current_streak": 0,
            "streak_status": StreakStatus.BROKEN,
            "can_use_mulligan": days_since == 2,
            "last_workout_date": last_day,
            "next_workout_date": today,
        }

    if days_since == 1:
        return {
            "current_streak": count_consecutive_days(workout_history, today),
            "streak_status": StreakStatus.AT_RISK,
            "can_use_mulligan": True,
            "last_workout_date": last_day,
            "next_workout_date": today,
        }

    # Today (or a date ahead of the reference calendar)
    return {
        "current_streak": count_consecutive_days(workout_history, today),
        "streak_status": StreakStatus.ACTIVE,
        "can_use_mulligan": False,
        "last_workout_date": last_day,
        "next_workout_date": None,
    }


def update_streak_after_workout(
    current_streak: int,
    last_workout_date: Optional[DateLike],
    new_workout_date: Optional[DateLike] = None
) -> Dict[str, any]:
    """
    Update streak when a workout is completed

    Logic:
    - First workout ever: streak 1
    - Same day as last workout: unchanged
    - Next day: +1
    - Larger gap: reset to 1

    Returns:
        {
            'new_streak': int,
            'streak_increased': bool,
            'streak_maintained': bool
        }
    """
    new_day = to_reference_date(new_workout_date) or today_in_timezone()
    last_day = to_reference_date(last_workout_date)

    if last_day is None:
        return {"new_streak": 1, "streak_increased": True, "streak_maintained": False}

    gap = days_between(last_day, new_day)

    if gap == 0:
        return {"new_streak": current_streak, "streak_increased": False, "streak_maintained": True}

    if gap == 1:
        return {"new_streak": current_streak + 1, "streak_increased": True, "streak_maintained": True}

    logger.info(f"Streak reset after {gap}-day gap. Was {current_streak} days")
    return {"new_streak": 1, "streak_increased": False, "streak_maintained": False}


def can_use_streak_freeze(
    last_streak_freeze_date: Optional[DateLike],
    last_workout_date: Optional[DateLike],
    today: Optional[date] = None
) -> Dict[str, any]:
    """
    Check whether the monthly streak freeze (mulligan) is available

    Rules:
    - One freeze per calendar month
    - Only rescues a single missed day (last workout at most 2 days ago)

    Returns:
        {
            'can_use': bool,
            'reason': str or None
        }
    """
    today = today or today_in_timezone()

    freeze_day = to_reference_date(last_streak_freeze_date)
    if freeze_day and (freeze_day.year, freeze_day.month) == (today.year, today.month):
        return {"can_use": False, "reason": "Already used streak freeze this month"}

    last_day = to_reference_date(last_workout_date)
    if last_day and days_between(last_day, today) > 2:
        return {
            "can_use": False,
            "reason": "Too late to use streak freeze (it only covers a single missed day)",
        }

    return {"can_use": True, "reason": None}


def get_streak_milestone(streak: int) -> Optional[int]:
    """Milestone reached at exactly this streak length, if any"""
    return streak if streak in STREAK_MILESTONES else None


def get_streak_bonus_action(new_streak: int) -> Optional[XPAction]:
    """XP reward action earned by reaching this streak length, if any"""
    return STREAK_BONUS_ACTIONS.get(new_streak)


def get_streak_message(streak_status: StreakStatus, streak: int) -> str:
    """Banner text for the current streak state"""
    if streak_status == StreakStatus.BROKEN:
        return "Start a new streak today!"
    if streak_status == StreakStatus.AT_RISK:
        return f"Don't break your {streak}-day streak! Workout today."
    return f"{streak} day streak! Keep it going!"
