"""
GamificationService - Gamification Business Logic

Runs the "workout recorded" flow over a stats snapshot:
XP award -> streak update -> achievement check -> final level/rank.
Legendary unlocks earn the legendary achievement bonus on top of the
catalog xp_reward. Backfilled workouts never touch the streak.

The service never reads or writes storage. Callers load the snapshot,
catalog and unlock records, call the service, and persist the returned
snapshot and unlock records in one transaction per user.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence
from datetime import date, datetime

from src import config
from src.exceptions import StreakFreezeError
from src.gamification.xp_system import (
    award_xp,
    calculate_level_from_xp,
    did_level_up,
    get_level_progress,
    get_rank_title,
    level_from_xp,
    XPAction,
)
from src.gamification.streak_system import (
    calculate_streak,
    can_use_streak_freeze,
    get_streak_bonus_action,
    get_streak_message,
    get_streak_milestone,
    update_streak_after_workout,
    HistoryItem,
)
from src.gamification.achievement_system import (
    check_achievements,
    get_almost_unlocked_achievements,
    should_notify_achievement,
)
from src.models.achievement import (
    AchievementContext,
    AchievementDefinition,
    AchievementRarity,
    ExercisePerformance,
    UserAchievement,
)
from src.models.gamification import UserGamificationStats
from src.utils.datetime_helpers import (
    DateLike,
    days_between,
    now_in_timezone,
    now_utc,
    to_reference_date,
    to_reference_datetime,
    today_in_timezone,
    yesterday_of,
)

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - XP calculation and level/rank recomputation
    - Streak tracking and the monthly streak freeze
    - Achievement checking and unlock records
    - Building event context for achievement rules
    """

    def __init__(self, catalog: Sequence[AchievementDefinition], timezone: Optional[str] = None):
        """
        Initialize GamificationService.

        Args:
            catalog: Achievement definitions, in display order
            timezone: Reference calendar (defaults to GAMIFICATION_TIMEZONE)
        """
        self.catalog = tuple(catalog)
        self.timezone = timezone or config.GAMIFICATION_TIMEZONE
        logger.debug(f"GamificationService initialized with {len(self.catalog)} achievements ({self.timezone})")

    def today(self) -> date:
        return today_in_timezone(self.timezone)

    def build_context(
        self,
        stats: UserGamificationStats,
        workout_time: Optional[datetime] = None,
        workout_type: Optional[str] = None,
        pr_just_achieved: bool = False,
        pr_exercise: Optional[str] = None,
        pr_weight: Optional[float] = None,
        pr_reps: Optional[int] = None,
        exercise_performance: Optional[ExercisePerformance] = None,
    ) -> AchievementContext:
        """
        Build achievement context for a workout that is being recorded.

        Derives time-of-day, birthday and days-since-last-workout flags
        from the workout time in the reference calendar and the stats
        snapshot taken *before* this workout.
        """
        workout_time = to_reference_datetime(workout_time or now_in_timezone(self.timezone), self.timezone)
        workout_day = workout_time.date()

        is_birthday = bool(
            stats.birth_date
            and (stats.birth_date.month, stats.birth_date.day) == (workout_day.month, workout_day.day)
        )

        days_since_last = None
        if stats.last_workout_date is not None:
            days_since_last = days_between(stats.last_workout_date, workout_day)

        return AchievementContext(
            workout_just_completed=True,
            workout_type=workout_type,
            workout_time=workout_time,
            pr_just_achieved=pr_just_achieved,
            pr_exercise=pr_exercise,
            pr_weight=pr_weight,
            pr_reps=pr_reps,
            exercise_performance=exercise_performance,
            is_birthday=is_birthday,
            is_early_morning=workout_time.hour < config.EARLY_MORNING_HOUR,
            is_late_night=workout_time.hour >= config.LATE_NIGHT_HOUR,
            days_since_last_workout=days_since_last,
        )

    def process_workout_completion(
        self,
        stats: UserGamificationStats,
        already_unlocked: Iterable[UserAchievement],
        context: Optional[AchievementContext] = None,
        workout_date: Optional[DateLike] = None,
    ) -> Dict[str, Any]:
        """
        Process gamification for a completed workout.

        Args:
            stats: Current stats snapshot
            already_unlocked: User's existing unlock records
            context: Event context (see build_context)
            workout_date: Calendar day of the workout (defaults to today)

        Returns:
            {
                'stats': UserGamificationStats,  # new snapshot to persist
                'xp_awarded': int,
                'xp_breakdown': [(source, amount), ...],
                'level_up': dict,  # did_level_up() over the whole award
                'streak': dict,  # update_streak_after_workout() result
                'streak_milestone': int or None,
                'achievements_unlocked': [{'achievement', 'xp_awarded'}, ...],
                'unlock_records': [UserAchievement, ...],  # to insert
                'notify': [AchievementDefinition, ...]
            }
        """
        context = context or AchievementContext(workout_just_completed=True)
        workout_day = to_reference_date(workout_date, self.timezone) or self.today()

        # 1. XP for the workout itself
        breakdown: List[tuple] = [(XPAction.WORKOUT_COMPLETED.value, award_xp(XPAction.WORKOUT_COMPLETED))]
        if context.pr_just_achieved:
            breakdown.append((XPAction.PR_ACHIEVED.value, award_xp(XPAction.PR_ACHIEVED)))

        # 2. Streak. A backfilled workout leaves the streak as it is
        if stats.last_workout_date and workout_day < stats.last_workout_date:
            streak_result = {
                "new_streak": stats.current_streak,
                "streak_increased": False,
                "streak_maintained": True,
            }
        else:
            streak_result = update_streak_after_workout(stats.current_streak, stats.last_workout_date, workout_day)
        new_streak = streak_result["new_streak"]
        milestone = None
        if streak_result["streak_increased"]:
            milestone = get_streak_milestone(new_streak)
            bonus_action = get_streak_bonus_action(new_streak)
            if bonus_action is not None:
                breakdown.append((bonus_action.value, award_xp(bonus_action)))

        last_workout_date = workout_day
        if stats.last_workout_date and stats.last_workout_date > workout_day:
            last_workout_date = stats.last_workout_date

        activity_xp = stats.total_xp + sum(amount for _, amount in breakdown)
        recomputed = self._next_snapshot(
            stats,
            total_xp=activity_xp,
            current_streak=new_streak,
            longest_streak=max(stats.longest_streak, new_streak),
            last_workout_date=last_workout_date,
            total_workouts_completed=stats.total_workouts_completed + 1,
            total_prs=stats.total_prs + (1 if context.pr_just_achieved else 0),
        )

        # 3. Achievements against the recomputed snapshot
        unlocked = check_achievements(stats.user_id, recomputed, self.catalog, already_unlocked, context)
        for entry in unlocked:
            achievement = entry["achievement"]
            breakdown.append((f"achievement:{achievement.id}", entry["xp_awarded"]))
            if achievement.rarity == AchievementRarity.LEGENDARY:
                breakdown.append((XPAction.LEGENDARY_ACHIEVEMENT.value, award_xp(XPAction.LEGENDARY_ACHIEVEMENT)))

        # 4. Final level and rank
        final_xp = stats.total_xp + sum(amount for _, amount in breakdown)
        final_stats = self._next_snapshot(recomputed, total_xp=final_xp)
        level_up = did_level_up(stats.total_xp, final_xp)

        unlocked_at = now_utc()
        unlock_records = [
            UserAchievement(
                user_id=stats.user_id,
                achievement_id=entry["achievement"].id,
                unlocked_at=unlocked_at,
                progress=100.0,
            )
            for entry in unlocked
        ]

        logger.info(
            f"Gamification processed for workout: user={stats.user_id}, "
            f"xp={final_xp - stats.total_xp}, streak={new_streak}, "
            f"achievements={len(unlocked)}"
        )
        if level_up["leveled_up"]:
            logger.info(
                f"User {stats.user_id} leveled up from {level_up['old_level']} to {level_up['new_level']}!"
            )

        return {
            "stats": final_stats,
            "xp_awarded": final_xp - stats.total_xp,
            "xp_breakdown": breakdown,
            "level_up": level_up,
            "streak": streak_result,
            "streak_milestone": milestone,
            "achievements_unlocked": unlocked,
            "unlock_records": unlock_records,
            "notify": [entry["achievement"] for entry in unlocked if should_notify_achievement(entry["achievement"])],
        }

    def apply_streak_freeze(self, stats: UserGamificationStats, today: Optional[date] = None) -> UserGamificationStats:
        """
        Use the monthly streak freeze to cover one missed day.

        Bridges the gap by moving the last workout date to yesterday, so
        a workout today continues the streak.

        Raises:
            StreakFreezeError: If the freeze is not available
        """
        today = today or self.today()

        if stats.last_workout_date is None or stats.current_streak == 0:
            raise StreakFreezeError(
                "No streak to protect",
                user_id=stats.user_id,
                operation="apply_streak_freeze",
            )

        check = can_use_streak_freeze(stats.last_streak_freeze_date, stats.last_workout_date, today)
        if not check["can_use"]:
            raise StreakFreezeError(
                check["reason"],
                user_id=stats.user_id,
                operation="apply_streak_freeze",
                context={"last_workout_date": stats.last_workout_date.isoformat()},
            )

        # Only a single missed day (last workout the day before yesterday) can be covered
        if days_between(stats.last_workout_date, today) != 2:
            raise StreakFreezeError(
                "No missed day to cover",
                user_id=stats.user_id,
                operation="apply_streak_freeze",
                context={"last_workout_date": stats.last_workout_date.isoformat()},
            )

        logger.info(f"User {stats.user_id} used streak freeze for a {stats.current_streak}-day streak")

        return self._next_snapshot(
            stats,
            last_streak_freeze_date=today,
            last_workout_date=yesterday_of(today),
        )

    def get_dashboard(
        self,
        stats: UserGamificationStats,
        already_unlocked: Sequence[UserAchievement],
        workout_history: Iterable[HistoryItem],
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Get everything the dashboard shows, computed from persisted state.

        Returns:
            {
                'level': dict,  # calculate_level_from_xp()
                'progress': dict,  # get_level_progress()
                'streak': dict,  # calculate_streak()
                'streak_message': str,
                'streak_freeze': dict,  # can_use_streak_freeze()
                'almost_unlocked': [AchievementDefinition, ...],
                'achievements_unlocked': int,
                'achievements_total': int
            }
        """
        today = today or self.today()
        streak = calculate_streak(stats.last_workout_date, workout_history, today)
        unlocked_ids = {record.achievement_id for record in already_unlocked}

        return {
            "level": calculate_level_from_xp(stats.total_xp),
            "progress": get_level_progress(stats.total_xp),
            "streak": streak,
            "streak_message": get_streak_message(streak["streak_status"], streak["current_streak"]),
            "streak_freeze": can_use_streak_freeze(stats.last_streak_freeze_date, stats.last_workout_date, today),
            "almost_unlocked": get_almost_unlocked_achievements(self.catalog, stats, already_unlocked),
            "achievements_unlocked": sum(1 for a in self.catalog if a.id in unlocked_ids),
            "achievements_total": len(self.catalog),
        }

    @staticmethod
    def _next_snapshot(stats: UserGamificationStats, **changes: Any) -> UserGamificationStats:
        """New validated snapshot with level and rank derived from total_xp"""
        data = {**stats.model_dump(), **changes}
        data["level"] = level_from_xp(data["total_xp"])
        data["rank_title"] = get_rank_title(data["level"])
        return UserGamificationStats.model_validate(data)
