"""Fixtures and an in-memory store for achievement tests."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

import pytest

from fitcoach.achievements.config_loader import AchievementsConfig, load_achievements_config
from fitcoach.achievements.store import AchievementStore
from fitcoach.models.achievements import Badge
from fitcoach.models.health import HealthSample
from fitcoach.services.supabase import StoreError

CLIENT_ID = "c0ffee00-1111-4222-8333-444455556666"
TODAY = date(2026, 3, 20)


def badge(
    badge_id: str,
    criteria_type: str,
    required: float,
    xp: int = 50,
    threshold: float | None = None,
) -> Badge:
    return Badge(
        id=badge_id,
        name=badge_id.replace("-", " ").title(),
        criteria_type=criteria_type,
        required_value=required,
        xp_reward=xp,
        threshold=threshold,
    )


def streak_days(value: float, days: int, source: str = "garmin", data_type: str = "steps"):
    return [
        HealthSample(
            data_type=data_type,
            value=value,
            source=source,
            recorded_at=TODAY - timedelta(days=i),
            client_id=CLIENT_ID,
        )
        for i in range(days)
    ]


class FakeAchievementStore(AchievementStore):
    def __init__(self) -> None:
        self.badges: list[Badge] = []
        self.earned: set[str] = set()
        self.samples: list[HealthSample] = []
        self.workouts = 0
        self.providers: list[str] = []
        self.awards: list[tuple[str, dict[str, Any]]] = []
        self.xp = 0
        self.xp_transactions: list[tuple[int, str, str]] = []
        self.history_since: date | None = None
        self.fail_award_ids: set[str] = set()
        self.fail_badges = False
        self.fail_xp = False
        self.categories_requested: list[str] = []

    async def list_active_badges(self, categories: list[str]) -> list[Badge]:
        self.categories_requested = categories
        if self.fail_badges:
            raise StoreError("badges unavailable")
        return list(self.badges)

    async def earned_badge_ids(self, client_id: str) -> set[str]:
        return set(self.earned)

    async def fetch_health_history(self, client_id: str, since: date) -> list[HealthSample]:
        self.history_since = since
        return [s for s in self.samples if s.recorded_at >= since and s.source != "manual"]

    async def count_workouts(self, client_id: str, data_type: str) -> int:
        return self.workouts

    async def active_connection_providers(self, client_id: str) -> list[str]:
        return list(self.providers)

    async def award_badge(self, client_id: str, badge_id: str, source_data: dict[str, Any]) -> None:
        if badge_id in self.fail_award_ids:
            raise StoreError("duplicate key value violates unique constraint")
        self.awards.append((badge_id, source_data))
        self.earned.add(badge_id)

    async def credit_xp(self, client_id: str, amount: int) -> None:
        if self.fail_xp:
            raise StoreError("client_xp row locked")
        self.xp += amount

    async def record_xp_transaction(
        self, client_id: str, amount: int, badge_id: str, description: str
    ) -> None:
        self.xp_transactions.append((amount, badge_id, description))


@pytest.fixture
def achievements_config() -> AchievementsConfig:
    """Load the bundled achievements config."""
    return load_achievements_config()


@pytest.fixture
def achievement_store() -> FakeAchievementStore:
    return FakeAchievementStore()
