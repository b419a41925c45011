"""
Exception hierarchy for the gamification engine

XP, streak and achievement calculations are total over their documented
inputs, so these are only raised for caller errors (bad arguments, unknown
reward actions, a disallowed streak freeze) and for invalid configuration.

Every error carries a request ID and UTC timestamp, logs itself once when
created, and can be serialized for API responses with to_dict().
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class GamificationError(Exception):
    """
    Base exception for all gamification errors

    Example:
        raise GamificationError(
            message="Streak freeze rejected",
            user_id="123456",
            operation="apply_streak_freeze",
            context={"last_workout_date": "2024-01-01"}
        )
    """

    log_level = logging.ERROR
    default_user_message = "An error occurred. Please try again."

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or self.default_user_message
        self.request_id = request_id or str(uuid4())
        self.timestamp = datetime.now(timezone.utc)

        self._log()

    def _log(self) -> None:
        # 'message' is reserved on LogRecord, hence error_message
        extra = {
            "error_type": type(self).__name__,
            "error_message": self.message,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.cause is not None:
            extra["cause"] = repr(self.cause)

        logger.log(
            self.log_level,
            f"{type(self).__name__}: {self.message}",
            extra=extra,
            exc_info=self.cause,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "user_message": self.user_message,
            "operation": self.operation,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
        }


# ==========================================
# Caller Input
# ==========================================

class ValidationError(GamificationError):
    """
    Input outside the engine's domain

    Raised for XP that decreases between did_level_up() calls and for
    date strings that are not ISO 8601.
    """

    log_level = logging.WARNING

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None, **kwargs):
        self.field = field
        self.value = value
        kwargs.setdefault("user_message", f"Invalid {field}: {message}" if field else message)
        super().__init__(message, context={"field": field, "value": value}, **kwargs)


class UnknownRewardError(ValidationError):
    """XP reward requested for an action outside the reward table"""

    def __init__(self, action: Any, **kwargs):
        self.action = action
        super().__init__(f"Unknown XP reward action: {action!r}", field="action", value=action, **kwargs)


# ==========================================
# Streaks
# ==========================================

class StreakFreezeError(GamificationError):
    """Streak freeze (mulligan) requested when it is not available"""

    log_level = logging.WARNING

    def __init__(self, reason: str, **kwargs):
        self.reason = reason
        super().__init__(f"Streak freeze not allowed: {reason}", user_message=reason, **kwargs)


# ==========================================
# Configuration
# ==========================================

class ConfigurationError(GamificationError):
    """Environment configuration is invalid"""

    default_user_message = "Gamification is not configured correctly. Please contact support."

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        self.config_key = config_key
        super().__init__(message, context={"config_key": config_key}, **kwargs)
