"""Unit tests for Achievement System (src/gamification/achievement_system.py)"""
import pytest

from src.gamification import achievement_system
from src.gamification.achievement_system import (
    check_achievements,
    check_special_condition,
    evaluate_achievement,
    get_achievement_progress,
    get_almost_unlocked_achievements,
    should_notify_achievement,
)
from src.models.achievement import (
    AchievementContext,
    ExercisePerformance,
    RequirementType,
    SpecialCondition,
)


# ============================================================================
# Achievement Checking Tests
# ============================================================================

def test_check_achievements_first_workout(test_user_id, make_stats, sample_catalog):
    """Test unlocking the first workout achievement"""
    stats = make_stats(total_workouts_completed=1)

    result = check_achievements(test_user_id, stats, sample_catalog, [], AchievementContext())

    assert [entry["achievement"].id for entry in result] == ["first-workout"]
    assert result[0]["xp_awarded"] == 50


def test_check_achievements_already_unlocked(test_user_id, make_stats, sample_catalog, make_unlock):
    """Test that already unlocked achievements are skipped"""
    stats = make_stats(total_workouts_completed=1)

    result = check_achievements(
        test_user_id, stats, sample_catalog, [make_unlock("first-workout")], AchievementContext()
    )

    assert result == []


def test_check_achievements_multiple_unlocks_in_catalog_order(test_user_id, make_stats, sample_catalog):
    """Test unlocking multiple achievements at once"""
    stats = make_stats(total_workouts_completed=12, total_prs=1, current_streak=7, longest_streak=7)

    result = check_achievements(test_user_id, stats, sample_catalog, [], AchievementContext())

    assert [entry["achievement"].id for entry in result] == [
        "first-workout", "ten-workouts", "first-pr", "week-streak",
    ]


def test_check_achievements_is_idempotent(test_user_id, make_stats, sample_catalog, make_unlock):
    """Test a second check with the updated unlock set returns nothing new"""
    stats = make_stats(total_workouts_completed=12, total_prs=3)
    context = AchievementContext(pr_just_achieved=True, pr_weight=120, is_early_morning=True)

    first = check_achievements(test_user_id, stats, sample_catalog, [], context)
    unlocked = [make_unlock(entry["achievement"].id) for entry in first]
    second = check_achievements(test_user_id, stats, sample_catalog, unlocked, context)

    assert first
    assert second == []


def test_check_achievements_without_context(test_user_id, make_stats, sample_catalog):
    """Test context defaults to empty"""
    stats = make_stats(total_workouts_completed=1)

    result = check_achievements(test_user_id, stats, sample_catalog, [])

    assert len(result) == 1


# ============================================================================
# Requirement Type Tests
# ============================================================================

def test_workouts_progress(make_stats, make_achievement):
    """Test workout count progress"""
    achievement = make_achievement(requirement_type="workouts", requirement_value=10)

    result = evaluate_achievement(achievement, make_stats(total_workouts_completed=4))

    assert result["unlocked"] is False
    assert result["progress"] == 4
    assert result["progress_percentage"] == pytest.approx(40.0)


def test_prs_unlock(make_stats, make_achievement):
    """Test PR count unlock"""
    achievement = make_achievement(requirement_type="prs", requirement_value=5)

    assert evaluate_achievement(achievement, make_stats(total_prs=5))["unlocked"] is True


def test_streak_unlock_uses_current_streak(make_stats, make_achievement):
    """Test streak requirement reads current, not longest, streak"""
    achievement = make_achievement(requirement_type="streak", requirement_value=30)

    stats = make_stats(current_streak=3, longest_streak=45)

    assert evaluate_achievement(achievement, stats)["unlocked"] is False


def test_progress_percentage_capped(make_stats, make_achievement):
    """Test progress percentage never exceeds 100"""
    achievement = make_achievement(requirement_type="workouts", requirement_value=10)

    result = evaluate_achievement(achievement, make_stats(total_workouts_completed=25))

    assert result["progress_percentage"] == 100


@pytest.mark.parametrize("context, unlocked", [
    (AchievementContext(pr_just_achieved=True, pr_weight=100), True),
    (AchievementContext(pr_just_achieved=True, pr_weight=99), False),
    (AchievementContext(pr_just_achieved=False, pr_weight=150), False),
    (AchievementContext(pr_just_achieved=True), False),
])
def test_weight_threshold(make_stats, make_achievement, context, unlocked):
    """Test weight threshold only unlocks on a fresh PR at or above the value"""
    achievement = make_achievement(requirement_type="weight_threshold", requirement_value=100)

    assert evaluate_achievement(achievement, make_stats(), context)["unlocked"] is unlocked


def test_weight_threshold_zero_weight_pr(make_stats, make_achievement):
    """Test a zero-weight PR is evaluated against a zero threshold"""
    achievement = make_achievement(requirement_type="weight_threshold", requirement_value=0)
    context = AchievementContext(pr_just_achieved=True, pr_weight=0.0)

    result = evaluate_achievement(achievement, make_stats(), context)

    assert result["unlocked"] is True
    assert result["progress"] == 0.0


def test_reps_threshold_matching_exercise(make_stats, make_achievement):
    """Test reps threshold for the matching exercise"""
    achievement = make_achievement(
        requirement_type="reps_threshold", requirement_value=20, exercise_specific="Pull-up"
    )
    context = AchievementContext(
        exercise_performance=ExercisePerformance(exercise_name="Pull-up", weight=0, reps=21)
    )

    result = evaluate_achievement(achievement, make_stats(), context)

    assert result["unlocked"] is True
    assert result["progress"] == 21


def test_reps_threshold_other_exercise(make_stats, make_achievement):
    """Test exercise-specific achievement ignores other exercises"""
    achievement = make_achievement(
        requirement_type="reps_threshold", requirement_value=20, exercise_specific="Pull-up"
    )
    context = AchievementContext(
        exercise_performance=ExercisePerformance(exercise_name="Dip", weight=0, reps=50)
    )

    assert evaluate_achievement(achievement, make_stats(), context)["unlocked"] is False


def test_reps_threshold_any_exercise(make_stats, make_achievement):
    """Test non-specific reps achievement accepts any exercise"""
    achievement = make_achievement(requirement_type="reps_threshold", requirement_value=50)
    context = AchievementContext(
        exercise_performance=ExercisePerformance(exercise_name="Push-up", reps=50)
    )

    assert evaluate_achievement(achievement, make_stats(), context)["unlocked"] is True


def test_reps_threshold_without_performance(make_stats, make_achievement):
    """Test reps achievement needs exercise performance in context"""
    achievement = make_achievement(requirement_type="reps_threshold", requirement_value=1)

    assert evaluate_achievement(achievement, make_stats(), AchievementContext())["unlocked"] is False


def test_unknown_requirement_type(make_stats, make_achievement):
    """Test unknown requirement types never unlock and never raise"""
    achievement = make_achievement(requirement_type="total_distance", requirement_value=1)

    result = evaluate_achievement(achievement, make_stats(total_workouts_completed=100))

    assert result["unlocked"] is False
    assert result["progress"] == 0


# ============================================================================
# Special Condition Tests
# ============================================================================

@pytest.mark.parametrize("name, stats_kwargs, context, unlocked", [
    ("Early Bird", {}, AchievementContext(is_early_morning=True), True),
    ("Early Bird", {}, AchievementContext(), False),
    ("Night Owl", {}, AchievementContext(is_late_night=True), True),
    ("Birthday PR", {}, AchievementContext(is_birthday=True, pr_just_achieved=True), True),
    ("Birthday PR", {}, AchievementContext(is_birthday=True), False),
    ("Comeback King", {}, AchievementContext(days_since_last_workout=30), True),
    ("Comeback King", {}, AchievementContext(days_since_last_workout=29), False),
    ("Comeback King", {}, AchievementContext(), False),
    ("Soviet Comrade", {"level": 50}, AchievementContext(), True),
    ("Soviet Comrade", {"level": 49}, AchievementContext(), False),
    ("The Unbreakable", {"current_streak": 200, "longest_streak": 200}, AchievementContext(), True),
    ("The Unbreakable", {"current_streak": 199, "longest_streak": 250}, AchievementContext(), False),
])
def test_special_conditions(make_stats, make_achievement, name, stats_kwargs, context, unlocked):
    """Test each implemented special condition"""
    achievement = make_achievement(name=name, requirement_type="special", requirement_value=None)

    result = evaluate_achievement(achievement, make_stats(**stats_kwargs), context)

    assert result["unlocked"] is unlocked


@pytest.mark.parametrize("name", ["Perfect Week", "Ring Master", "Balanced Warrior", "Double Bodyweight"])
def test_deferred_special_conditions_never_unlock(make_stats, make_achievement, name):
    """Test conditions that need history aggregates stay locked"""
    achievement = make_achievement(name=name, requirement_type="special", requirement_value=None)
    stats = make_stats(level=120, current_streak=365, longest_streak=365, total_workouts_completed=1000)
    context = AchievementContext(
        pr_just_achieved=True, pr_weight=500, is_birthday=True, is_early_morning=True, is_late_night=True
    )

    assert check_special_condition(achievement, stats, context) is False


def test_unknown_special_name(make_stats, make_achievement):
    """Test unknown special names never unlock"""
    achievement = make_achievement(name="Moon Walker", requirement_type="special", requirement_value=None)

    assert evaluate_achievement(achievement, make_stats(), AchievementContext(is_late_night=True))["unlocked"] is False


def test_special_progress(make_stats, make_achievement):
    """Test special achievements report full progress when unlocked"""
    achievement = make_achievement(name="Early Bird", requirement_type="special", requirement_value=None)

    result = evaluate_achievement(achievement, make_stats(), AchievementContext(is_early_morning=True))

    assert result["progress"] == 100
    assert result["progress_percentage"] == 0  # no requirement value to measure against


def test_dispatch_tables_are_exhaustive():
    """Test every requirement type and special condition has a handler"""
    assert set(achievement_system._REQUIREMENT_EVALUATORS) == set(RequirementType)
    assert set(achievement_system._SPECIAL_CONDITIONS) == set(SpecialCondition)


# ============================================================================
# Almost Unlocked Tests
# ============================================================================

def test_get_almost_unlocked_achievements(make_stats, sample_catalog):
    """Test achievements at 80%+ progress are returned"""
    stats = make_stats(total_workouts_completed=8, current_streak=6, longest_streak=6)

    result = get_almost_unlocked_achievements(sample_catalog, stats, [], threshold=0.8)

    assert [a.id for a in result] == ["ten-workouts", "week-streak"]


def test_get_almost_unlocked_excludes_unlocked(make_stats, sample_catalog, make_unlock):
    """Test already unlocked and fully satisfied achievements are excluded"""
    stats = make_stats(total_workouts_completed=9)

    result = get_almost_unlocked_achievements(sample_catalog, stats, [make_unlock("ten-workouts")], threshold=0.8)

    assert result == []


def test_get_almost_unlocked_ignores_context_types(make_stats, make_achievement):
    """Test context-dependent types never appear"""
    catalog = [
        make_achievement(requirement_type="weight_threshold", requirement_value=1),
        make_achievement(requirement_type="reps_threshold", requirement_value=1),
        make_achievement(name="Soviet Comrade", requirement_type="special", requirement_value=None),
    ]

    assert get_almost_unlocked_achievements(catalog, make_stats(level=49), [], threshold=0.01) == []


def test_get_almost_unlocked_default_threshold(make_stats, make_achievement):
    """Test default threshold comes from configuration"""
    catalog = [make_achievement(requirement_type="workouts", requirement_value=10)]

    assert len(get_almost_unlocked_achievements(catalog, make_stats(total_workouts_completed=8), [])) == 1
    assert get_almost_unlocked_achievements(catalog, make_stats(total_workouts_completed=7), []) == []


# ============================================================================
# Progress Display Tests
# ============================================================================

def test_get_achievement_progress_locked(make_achievement):
    """Test progress message for a locked achievement"""
    achievement = make_achievement(requirement_value=10)

    result = get_achievement_progress(achievement, 7)

    assert result == {"current": 7, "required": 10, "percentage": pytest.approx(70.0), "message": "3 more to unlock"}


def test_get_achievement_progress_unlocked(make_achievement):
    """Test progress message once requirement is met"""
    achievement = make_achievement(requirement_value=10)

    assert get_achievement_progress(achievement, 12)["message"] == "Unlocked!"


# ============================================================================
# Notification Tests
# ============================================================================

@pytest.mark.parametrize("rarity", ["rare", "epic", "legendary"])
def test_should_notify_rare_and_above(make_achievement, rarity):
    """Test rare and above always notify"""
    assert should_notify_achievement(make_achievement(rarity=rarity, requirement_value=1000)) is True


def test_should_notify_secret(make_achievement):
    """Test secret achievements notify"""
    assert should_notify_achievement(make_achievement(is_secret=True, requirement_value=1000)) is True


def test_should_notify_early_milestone(make_achievement):
    """Test small milestone achievements notify"""
    assert should_notify_achievement(make_achievement(category="milestone", requirement_value=5)) is True
    assert should_notify_achievement(make_achievement(category="milestone", requirement_value=6)) is False


def test_should_not_notify_common(make_achievement):
    """Test common, non-secret, non-milestone achievements stay quiet"""
    assert should_notify_achievement(make_achievement(category="strength", requirement_value=3)) is False


def test_should_not_notify_milestone_without_value(make_achievement):
    """Test milestone without a requirement value does not use the milestone rule"""
    achievement = make_achievement(category="milestone", requirement_type="special", requirement_value=None)

    assert should_notify_achievement(achievement) is False
