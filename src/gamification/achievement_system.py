"""
Achievement System

Evaluates a catalog of declarative achievement rules against a stats
snapshot and an event context:
- Counters (total workouts, total PRs, current streak)
- Event thresholds (PR weight, reps for a specific exercise)
- Special named conditions (Early Bird, Comeback King, ...)

Features:
- Progress tracking for locked achievements
- "Almost unlocked" detection from persisted stats alone
- Notification policy by rarity / secrecy

Achievements are one-time unlocks: anything already in the user's unlocked
set is never evaluated again. The caller persists the unlock records.
"""

from typing import Callable, Dict, Iterable, List, Optional
import logging

from src import config
from src.models.achievement import (
    AchievementContext,
    AchievementDefinition,
    AchievementRarity,
    RequirementType,
    SpecialCondition,
    UserAchievement,
)
from src.models.gamification import UserGamificationStats

logger = logging.getLogger(__name__)

NOTIFY_RARITIES = {AchievementRarity.RARE, AchievementRarity.EPIC, AchievementRarity.LEGENDARY}

# Milestone achievements at or below this requirement always notify
EARLY_MILESTONE_MAX_REQUIREMENT = 5

EMPTY_CONTEXT = AchievementContext()


# ============================================
# Requirement Evaluators
# ============================================
# Each evaluator returns (unlocked, progress)

def _required(achievement: AchievementDefinition) -> float:
    return achievement.requirement_value or 0


def _check_workouts(achievement, stats, context):
    progress = stats.total_workouts_completed
    return progress >= _required(achievement), progress


def _check_prs(achievement, stats, context):
    progress = stats.total_prs
    return progress >= _required(achievement), progress


def _check_streak(achievement, stats, context):
    progress = stats.current_streak
    return progress >= _required(achievement), progress


def _check_weight_threshold(achievement, stats, context):
    """Only a fresh PR can satisfy a weight threshold"""
    if not context.pr_just_achieved or context.pr_weight is None:
        return False, 0
    return context.pr_weight >= _required(achievement), context.pr_weight


def _check_reps_threshold(achievement, stats, context):
    performance = context.exercise_performance
    if performance is None:
        return False, 0

    if achievement.exercise_specific and performance.exercise_name != achievement.exercise_specific:
        return False, 0

    return performance.reps >= _required(achievement), performance.reps


def _check_special(achievement, stats, context):
    unlocked = check_special_condition(achievement, stats, context)
    progress = (achievement.requirement_value or 100) if unlocked else 0
    return unlocked, progress


_REQUIREMENT_EVALUATORS: Dict[RequirementType, Callable] = {
    RequirementType.WORKOUTS: _check_workouts,
    RequirementType.PRS: _check_prs,
    RequirementType.STREAK: _check_streak,
    RequirementType.WEIGHT_THRESHOLD: _check_weight_threshold,
    RequirementType.REPS_THRESHOLD: _check_reps_threshold,
    RequirementType.SPECIAL: _check_special,
}


# ============================================
# Special Conditions
# ============================================

def _deferred(stats: UserGamificationStats, context: AchievementContext) -> bool:
    # Needs workout history aggregates (weekly PRs, sets by exercise, body weight)
    return False


_SPECIAL_CONDITIONS: Dict[SpecialCondition, Callable[[UserGamificationStats, AchievementContext], bool]] = {
    SpecialCondition.EARLY_BIRD: lambda stats, ctx: ctx.is_early_morning,
    SpecialCondition.NIGHT_OWL: lambda stats, ctx: ctx.is_late_night,
    SpecialCondition.BIRTHDAY_PR: lambda stats, ctx: ctx.is_birthday and ctx.pr_just_achieved,
    SpecialCondition.COMEBACK_KING: lambda stats, ctx: (ctx.days_since_last_workout or 0) >= 30,
    SpecialCondition.SOVIET_COMRADE: lambda stats, ctx: stats.level >= 50,
    SpecialCondition.THE_UNBREAKABLE: lambda stats, ctx: stats.current_streak >= 200,
    SpecialCondition.PERFECT_WEEK: _deferred,
    SpecialCondition.RING_MASTER: _deferred,
    SpecialCondition.BALANCED_WARRIOR: _deferred,
    SpecialCondition.DOUBLE_BODYWEIGHT: _deferred,
}


def _assert_exhaustive() -> None:
    missing = set(RequirementType) - set(_REQUIREMENT_EVALUATORS)
    missing |= set(SpecialCondition) - set(_SPECIAL_CONDITIONS)
    if missing:
        raise RuntimeError(f"Achievement rules without a handler: {sorted(m.value for m in missing)}")


_assert_exhaustive()


def check_special_condition(
    achievement: AchievementDefinition,
    stats: UserGamificationStats,
    context: AchievementContext
) -> bool:
    """Evaluate a 'special' achievement by its name. Unknown names never unlock."""
    try:
        condition = SpecialCondition(achievement.name)
    except ValueError:
        logger.debug(f"No special condition named '{achievement.name}'")
        return False

    return bool(_SPECIAL_CONDITIONS[condition](stats, context))


# ============================================
# Evaluation
# ============================================

def evaluate_achievement(
    achievement: AchievementDefinition,
    stats: UserGamificationStats,
    context: Optional[AchievementContext] = None
) -> Dict[str, any]:
    """
    Evaluate a single achievement

    Returns:
        {
            'achievement_id': str,
            'unlocked': bool,
            'progress': float,
            'progress_percentage': float (0-100)
        }
    """
    context = context or EMPTY_CONTEXT

    try:
        requirement_type = RequirementType(achievement.requirement_type)
    except ValueError:
        logger.warning(
            f"Unknown requirement type '{achievement.requirement_type}' "
            f"for achievement {achievement.id} ({achievement.name})"
        )
        unlocked, progress = False, 0
    else:
        unlocked, progress = _REQUIREMENT_EVALUATORS[requirement_type](achievement, stats, context)

    required = achievement.requirement_value
    percentage = min(100.0, progress / required * 100) if required and required > 0 else 0.0

    return {
        "achievement_id": achievement.id,
        "unlocked": bool(unlocked),
        "progress": progress,
        "progress_percentage": percentage,
    }


def _unlocked_ids(already_unlocked: Iterable[UserAchievement]) -> set:
    return {record.achievement_id for record in already_unlocked}


def check_achievements(
    user_id: str,
    stats: UserGamificationStats,
    catalog: Iterable[AchievementDefinition],
    already_unlocked: Iterable[UserAchievement],
    context: Optional[AchievementContext] = None
) -> List[Dict[str, any]]:
    """
    Check which achievements the user just unlocked

    Args:
        user_id: User ID (for logging)
        stats: Freshly recomputed stats snapshot
        catalog: All achievement definitions, in display order
        already_unlocked: User's unlock records; these are skipped
        context: Facts about the triggering event

    Returns:
        Newly unlocked achievements in catalog order:
        [
            {
                'achievement': AchievementDefinition,
                'xp_awarded': int
            }
        ]
    """
    unlocked_ids = _unlocked_ids(already_unlocked)
    newly_unlocked = []

    for achievement in catalog:
        if achievement.id in unlocked_ids:
            continue

        result = evaluate_achievement(achievement, stats, context)
        if result["unlocked"]:
            newly_unlocked.append({
                "achievement": achievement,
                "xp_awarded": achievement.xp_reward,
            })
            logger.info(
                f"User {user_id} unlocked achievement: {achievement.id} "
                f"({achievement.name}) +{achievement.xp_reward} XP"
            )

    return newly_unlocked


def get_almost_unlocked_achievements(
    catalog: Iterable[AchievementDefinition],
    stats: UserGamificationStats,
    already_unlocked: Iterable[UserAchievement],
    threshold: Optional[float] = None
) -> List[AchievementDefinition]:
    """
    Locked achievements at or above `threshold` progress

    Evaluated with an empty context, so only requirements derivable from
    persisted stats (workouts, prs, streak) can ever appear.
    """
    if threshold is None:
        threshold = config.ALMOST_UNLOCKED_THRESHOLD

    unlocked_ids = _unlocked_ids(already_unlocked)
    almost = []

    for achievement in catalog:
        if achievement.id in unlocked_ids:
            continue

        result = evaluate_achievement(achievement, stats, EMPTY_CONTEXT)
        if not result["unlocked"] and result["progress_percentage"] >= threshold * 100:
            almost.append(achievement)

    return almost


def get_achievement_progress(achievement: AchievementDefinition, current_progress: float) -> Dict[str, any]:
    """
    Progress towards an achievement for display

    Returns:
        {
            'current': float,
            'required': float,
            'percentage': float,
            'message': str
        }
    """
    required = achievement.requirement_value or 0
    percentage = min(100.0, current_progress / required * 100) if required > 0 else 0.0

    if percentage >= 100:
        message = "Unlocked!"
    else:
        remaining = required - current_progress
        message = f"{remaining:g} more to unlock"

    return {
        "current": current_progress,
        "required": required,
        "percentage": percentage,
        "message": message,
    }


def should_notify_achievement(achievement: AchievementDefinition) -> bool:
    """Whether unlocking this achievement should trigger a notification"""
    if achievement.rarity in NOTIFY_RARITIES:
        return True

    if achievement.is_secret:
        return True

    # First few milestone achievements
    if (
        achievement.category == "milestone"
        and achievement.requirement_value is not None
        and achievement.requirement_value <= EARLY_MILESTONE_MAX_REQUIREMENT
    ):
        return True

    return False
