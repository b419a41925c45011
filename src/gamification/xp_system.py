"""
XP and Leveling System

Pure level calculations, rank titles, and the XP reward table.

Leveling Curve (cost per level):
- Level 1-10 (Novice): 500 XP per level
- Level 11-25 (Intermediate): 1000 XP per level
- Level 26-50 (Advanced): 2000 XP per level
- Level 51-75 (Elite): 3000 XP per level
- Level 76-100 (Master): 5000 XP per level
- Level 101+ (Soviet Legend): 10000 XP per level

XP Award Rules:
- Workout completed: 100 XP
- Personal record: 200 XP
- 7-day streak: 50 XP
- 30-day streak: 200 XP
- Weekly challenge: 500 XP
- Monthly challenge: 1000 XP
- Legendary achievement: 500 XP
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Union
import logging
import math
import random

from src.exceptions import UnknownRewardError, ValidationError

logger = logging.getLogger(__name__)


class LevelBand(NamedTuple):
    """Contiguous range of levels sharing one per-level XP cost"""
    start_level: int
    end_level: Optional[int]  # None for the unbounded top band
    cost: int
    start_xp: int
    rank_title: str


def _build_bands() -> List[LevelBand]:
    # (first level, last level, cost per level, rank title)
    table = [
        (1, 10, 500, "Novice"),
        (11, 25, 1000, "Intermediate"),
        (26, 50, 2000, "Advanced"),
        (51, 75, 3000, "Elite"),
        (76, 100, 5000, "Master"),
        (101, None, 10000, "Soviet Legend"),
    ]
    bands = []
    start_xp = 0
    for start_level, end_level, cost, title in table:
        bands.append(LevelBand(start_level, end_level, cost, start_xp, title))
        if end_level is not None:
            start_xp += (end_level - start_level + 1) * cost
    return bands


# Cumulative XP at band start: 0, 5000, 20000, 70000, 145000, 270000
LEVEL_BANDS: List[LevelBand] = _build_bands()


class XPAction(str, Enum):
    """Actions that earn a fixed XP reward"""
    WORKOUT_COMPLETED = "workout_completed"
    PR_ACHIEVED = "pr_achieved"
    STREAK_7_DAYS = "streak_7_days"
    STREAK_30_DAYS = "streak_30_days"
    WEEKLY_CHALLENGE = "weekly_challenge"
    MONTHLY_CHALLENGE = "monthly_challenge"
    LEGENDARY_ACHIEVEMENT = "legendary_achievement"


XP_REWARDS: Dict[XPAction, int] = {
    XPAction.WORKOUT_COMPLETED: 100,
    XPAction.PR_ACHIEVED: 200,
    XPAction.STREAK_7_DAYS: 50,
    XPAction.STREAK_30_DAYS: 200,
    XPAction.WEEKLY_CHALLENGE: 500,
    XPAction.MONTHLY_CHALLENGE: 1000,
    XPAction.LEGENDARY_ACHIEVEMENT: 500,
}


def _band_for_level(level: int) -> LevelBand:
    for band in LEVEL_BANDS:
        if band.end_level is None or level <= band.end_level:
            return band
    return LEVEL_BANDS[-1]


def level_from_xp(xp: int) -> int:
    """
    Calculate level from total XP

    Negative XP is treated as level 1.
    """
    if xp < 0:
        return 1

    # Highest band whose start threshold has been reached
    band = LEVEL_BANDS[0]
    for candidate in LEVEL_BANDS:
        if xp >= candidate.start_xp:
            band = candidate

    level = band.start_level + (xp - band.start_xp) // band.cost
    if band.end_level is not None:
        level = min(level, band.end_level)
    return level


def total_xp_for_level(level: int) -> int:
    """Minimum cumulative XP required to be at the start of a level"""
    if level <= 1:
        return 0

    band = _band_for_level(level)
    return band.start_xp + (level - band.start_level) * band.cost


def xp_for_next_level(level: int) -> int:
    """XP cost to advance past the given level"""
    return _band_for_level(max(level, 1)).cost


def get_rank_title(level: int) -> str:
    """Rank title for a level (tier boundaries coincide with the level bands)"""
    if level >= 101:
        return "Soviet Legend"
    if level >= 76:
        return "Master"
    if level >= 51:
        return "Elite"
    if level >= 26:
        return "Advanced"
    if level >= 11:
        return "Intermediate"
    return "Novice"


def get_level_progress(xp: int) -> Dict[str, Union[int, float]]:
    """
    Get progress towards the next level

    Returns:
        {
            'current_level': int,
            'next_level': int,
            'xp_in_current_level': int,
            'xp_needed_for_next_level': int,
            'progress_percentage': float (0-100)
        }
    """
    current_level = level_from_xp(xp)
    xp_in_current_level = xp - total_xp_for_level(current_level)
    xp_needed = xp_for_next_level(current_level)
    percentage = min(100.0, max(0.0, xp_in_current_level / xp_needed * 100))

    return {
        "current_level": current_level,
        "next_level": current_level + 1,
        "xp_in_current_level": xp_in_current_level,
        "xp_needed_for_next_level": xp_needed,
        "progress_percentage": percentage,
    }


def calculate_level_from_xp(total_xp: int) -> Dict[str, any]:
    """
    Calculate level and rank from total XP

    Returns:
        {
            'current_level': int,
            'rank_title': str,
            'xp_in_current_level': int,
            'xp_to_next_level': int,
            'total_xp_for_next_level': int
        }
    """
    progress = get_level_progress(total_xp)
    level = progress["current_level"]
    next_threshold = total_xp_for_level(level + 1)

    return {
        "current_level": level,
        "rank_title": get_rank_title(level),
        "xp_in_current_level": progress["xp_in_current_level"],
        "xp_to_next_level": next_threshold - max(total_xp, 0),
        "total_xp_for_next_level": next_threshold,
    }


def award_xp(action: Union[XPAction, str]) -> int:
    """
    Look up the fixed XP reward for an action

    Args:
        action: XPAction member or its value (case-insensitive), e.g. "workout_completed"

    Returns:
        XP amount to award

    Raises:
        UnknownRewardError: If the action is not in the reward table
    """
    try:
        key = action if isinstance(action, XPAction) else XPAction(str(action).lower())
    except ValueError:
        raise UnknownRewardError(action, operation="award_xp")
    return XP_REWARDS[key]


def did_level_up(old_xp: int, new_xp: int) -> Dict[str, any]:
    """
    Compare levels before and after an XP award

    Raises:
        ValidationError: If new_xp is lower than old_xp
    """
    if new_xp < old_xp:
        raise ValidationError(
            f"new_xp ({new_xp}) must not be lower than old_xp ({old_xp})",
            field="new_xp",
            value=new_xp,
            operation="did_level_up",
        )

    old_level = level_from_xp(old_xp)
    new_level = level_from_xp(new_xp)
    leveled_up = new_level > old_level

    if leveled_up:
        logger.debug(f"Level up: {old_level} -> {new_level} ({old_xp} -> {new_xp} XP)")

    return {
        "leveled_up": leveled_up,
        "old_level": old_level,
        "new_level": new_level,
        "levels_gained": new_level - old_level,
    }


_MILESTONE_LEVEL_MESSAGES = {
    10: "Level 10! You're no longer a Novice!",
    25: "Level 25! Intermediate level complete!",
    50: "Level 50! You've reached Advanced status!",
    75: "Level 75! Elite tier unlocked!",
    100: "Level 100! One step from Soviet Legend!",
}

_LEVEL_UP_MESSAGES = [
    "Level {level}! You're getting stronger!",
    "Level {level} achieved! Keep pushing!",
    "Welcome to Level {level}!",
    "Level {level}! Your dedication is paying off!",
    "You've reached Level {level}!",
]


def get_level_up_message(new_level: int) -> str:
    """Celebration message for reaching a level"""
    if new_level in _MILESTONE_LEVEL_MESSAGES:
        return _MILESTONE_LEVEL_MESSAGES[new_level]
    return random.choice(_LEVEL_UP_MESSAGES).format(level=new_level)


def format_xp(xp: int) -> str:
    """Format XP for display (1.5K, 2.3M)"""
    if xp >= 1_000_000:
        return f"{xp / 1_000_000:.1f}M"
    if xp >= 1000:
        return f"{xp / 1000:.1f}K"
    return str(xp)


def get_estimated_time_to_next_level(current_xp: int, average_xp_per_day: float) -> Dict[str, any]:
    """
    Estimate days until the next level at the user's average daily XP

    Returns:
        {'days': int or math.inf, 'message': str}
    """
    progress = get_level_progress(current_xp)
    xp_remaining = progress["xp_needed_for_next_level"] - progress["xp_in_current_level"]

    if average_xp_per_day <= 0:
        return {"days": math.inf, "message": "Complete workouts to estimate"}

    days = math.ceil(xp_remaining / average_xp_per_day)

    if days <= 1:
        return {"days": days, "message": "Tomorrow if you keep it up!"}
    if days <= 7:
        return {"days": days, "message": f"About {days} days away"}
    if days <= 30:
        weeks = math.ceil(days / 7)
        return {"days": days, "message": f"About {weeks} {'week' if weeks == 1 else 'weeks'} away"}

    months = math.ceil(days / 30)
    return {"days": days, "message": f"About {months} {'month' if months == 1 else 'months'} away"}
