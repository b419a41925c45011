"""
Gamification engine for workout tracking

This module turns workout activity into motivation mechanics:
- XP and leveling system (six level bands, rank titles)
- Workout streak tracking with a monthly streak freeze
- Rule-based achievement system

All functions are pure: they take snapshots and return computed values.
Persisting the results is the caller's job.
"""

from src.gamification.xp_system import (
    award_xp,
    calculate_level_from_xp,
    did_level_up,
    get_level_progress,
    get_rank_title,
    level_from_xp,
    total_xp_for_level,
    xp_for_next_level,
    XPAction,
    XP_REWARDS,
)
from src.gamification.streak_system import (
    calculate_streak,
    can_use_streak_freeze,
    get_streak_milestone,
    update_streak_after_workout,
    StreakStatus,
)
from src.gamification.achievement_system import (
    check_achievements,
    evaluate_achievement,
    get_almost_unlocked_achievements,
    should_notify_achievement,
)

__all__ = [
    "award_xp",
    "calculate_level_from_xp",
    "did_level_up",
    "get_level_progress",
    "get_rank_title",
    "level_from_xp",
    "total_xp_for_level",
    "xp_for_next_level",
    "XPAction",
    "XP_REWARDS",
    "calculate_streak",
    "can_use_streak_freeze",
    "get_streak_milestone",
    "update_streak_after_workout",
    "StreakStatus",
    "check_achievements",
    "evaluate_achievement",
    "get_almost_unlocked_achievements",
    "should_notify_achievement",
]
