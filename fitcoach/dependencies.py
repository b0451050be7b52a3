"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from fastapi import Depends

from fitcoach.achievements.checker import HealthAchievementChecker
from fitcoach.achievements.config_loader import get_achievements_config
from fitcoach.achievements.store import PostgresAchievementStore
from fitcoach.challenges.reconciler import ProgressReconciler
from fitcoach.challenges.store import PostgresProgressStore
from fitcoach.config import Settings, get_settings


def get_reconciler() -> ProgressReconciler:
    return ProgressReconciler(PostgresProgressStore())


def get_achievement_checker(
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthAchievementChecker:
    path = Path(settings.achievements_config_path) if settings.achievements_config_path else None
    return HealthAchievementChecker(
        PostgresAchievementStore(),
        get_achievements_config(path),
        history_days=settings.health_history_days,
    )


# Annotated shortcuts for route signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
Reconciler = Annotated[ProgressReconciler, Depends(get_reconciler)]
AchievementChecker = Annotated[HealthAchievementChecker, Depends(get_achievement_checker)]
