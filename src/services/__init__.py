"""
Service Layer Package

Services orchestrate the pure gamification engine for the application layer.
They hold no storage handles; callers load snapshots and persist results.

Core Services:
- GamificationService: workout completion flow, streak freeze, dashboard data
"""

from src.services.gamification_service import GamificationService

__all__ = [
    "GamificationService",
]
