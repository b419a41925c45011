"""Global test fixtures and utilities for gamification tests"""
import pytest
from datetime import date, datetime, timedelta, timezone

from src.models.achievement import AchievementDefinition, UserAchievement
from src.models.gamification import UserGamificationStats


# ============================================================================
# Calendar Fixtures
# ============================================================================

@pytest.fixture
def today():
    """Fixed reference date for deterministic streak tests"""
    return date(2024, 6, 15)


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123456789"


@pytest.fixture
def make_stats(test_user_id):
    """Factory for stats snapshots with sensible defaults"""
    def _make(**overrides):
        data = {"user_id": test_user_id}
        data.update(overrides)
        return UserGamificationStats(**data)
    return _make


@pytest.fixture
def fresh_stats(make_stats):
    """Brand-new user with no activity"""
    return make_stats()


# ============================================================================
# Achievement Fixtures
# ============================================================================

@pytest.fixture
def make_achievement():
    """Factory for achievement definitions"""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": f"ach-{counter['n']}",
            "name": f"Achievement {counter['n']}",
            "description": "Test achievement",
            "category": "strength",
            "requirement_type": "workouts",
            "requirement_value": 10,
            "rarity": "common",
            "is_secret": False,
            "xp_reward": 50,
        }
        data.update(overrides)
        return AchievementDefinition(**data)
    return _make


@pytest.fixture
def sample_catalog():
    """Small catalog covering every requirement type"""
    return [
        AchievementDefinition(
            id="first-workout", name="First Blood", description="Complete your first workout",
            category="milestone", requirement_type="workouts", requirement_value=1,
            rarity="common", xp_reward=50,
        ),
        AchievementDefinition(
            id="ten-workouts", name="Getting Serious", description="Complete 10 workouts",
            category="milestone", requirement_type="workouts", requirement_value=10,
            rarity="common", xp_reward=100,
        ),
        AchievementDefinition(
            id="first-pr", name="Personal Best", description="Set your first PR",
            category="strength", requirement_type="prs", requirement_value=1,
            rarity="common", xp_reward=100,
        ),
        AchievementDefinition(
            id="week-streak", name="Iron Week", description="Train 7 days in a row",
            category="consistency", requirement_type="streak", requirement_value=7,
            rarity="rare", xp_reward=200,
        ),
        AchievementDefinition(
            id="hundred-kilo", name="Century Club", description="PR of 100 kg",
            category="strength", requirement_type="weight_threshold", requirement_value=100,
            rarity="epic", xp_reward=300,
        ),
        AchievementDefinition(
            id="pullup-20", name="Pull-up Pro", description="20 pull-ups in one set",
            category="strength", requirement_type="reps_threshold", requirement_value=20,
            exercise_specific="Pull-up", rarity="rare", xp_reward=250,
        ),
        AchievementDefinition(
            id="early-bird", name="Early Bird", description="Work out before 6 AM",
            category="special", requirement_type="special", rarity="common",
            is_secret=True, xp_reward=75,
        ),
    ]


@pytest.fixture
def make_unlock(test_user_id):
    """Factory for unlock records"""
    def _make(achievement_id):
        return UserAchievement(
            user_id=test_user_id,
            achievement_id=achievement_id,
            unlocked_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
    return _make
