"""Configuration management"""
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv

from src.exceptions import ConfigurationError

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Reference calendar for every day-boundary comparison (streaks, freezes, birthdays)
GAMIFICATION_TIMEZONE: str = os.getenv("GAMIFICATION_TIMEZONE", "UTC")

# Achievements at or above this fraction of progress count as "almost unlocked"
ALMOST_UNLOCKED_THRESHOLD: float = float(os.getenv("ALMOST_UNLOCKED_THRESHOLD", "0.8"))

# Workout time windows for the Early Bird / Night Owl achievements
# - EARLY_MORNING_HOUR: workouts strictly before this hour are early morning
# - LATE_NIGHT_HOUR: workouts at or after this hour are late night
EARLY_MORNING_HOUR: int = int(os.getenv("EARLY_MORNING_HOUR", "6"))
LATE_NIGHT_HOUR: int = int(os.getenv("LATE_NIGHT_HOUR", "22"))


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    try:
        ZoneInfo(GAMIFICATION_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(
            f"Unknown timezone '{GAMIFICATION_TIMEZONE}'",
            config_key="GAMIFICATION_TIMEZONE",
            cause=e,
        )
    if not 0 < ALMOST_UNLOCKED_THRESHOLD <= 1:
        raise ConfigurationError(
            f"ALMOST_UNLOCKED_THRESHOLD must be in (0, 1], got {ALMOST_UNLOCKED_THRESHOLD}",
            config_key="ALMOST_UNLOCKED_THRESHOLD",
        )
    for key, hour in (("EARLY_MORNING_HOUR", EARLY_MORNING_HOUR), ("LATE_NIGHT_HOUR", LATE_NIGHT_HOUR)):
        if not 0 <= hour <= 23:
            raise ConfigurationError(f"{key} must be between 0 and 23, got {hour}", config_key=key)
