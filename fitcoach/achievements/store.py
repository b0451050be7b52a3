"""Data access for health achievements: badges, XP, and health history."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from fitcoach.models.achievements import Badge
from fitcoach.models.health import HealthSample, HealthSource
from fitcoach.services import supabase

logger = logging.getLogger("fitcoach.achievements.store")


class AchievementStore(ABC):
    """Reads and writes used by the achievement checker.

    Implementations raise :class:`~fitcoach.services.supabase.StoreError` on
    backend failures.
    """

    @abstractmethod
    async def list_active_badges(self, categories: list[str]) -> list[Badge]: ...

    @abstractmethod
    async def earned_badge_ids(self, client_id: str) -> set[str]: ...

    @abstractmethod
    async def fetch_health_history(self, client_id: str, since: date) -> list[HealthSample]:
        """Non-manual samples of every metric recorded on or after ``since``."""

    @abstractmethod
    async def count_workouts(self, client_id: str, data_type: str) -> int: ...

    @abstractmethod
    async def active_connection_providers(self, client_id: str) -> list[str]:
        """Provider slug of each active wearable connection (may repeat)."""

    @abstractmethod
    async def award_badge(
        self, client_id: str, badge_id: str, source_data: dict[str, Any]
    ) -> None: ...

    @abstractmethod
    async def credit_xp(self, client_id: str, amount: int) -> None: ...

    @abstractmethod
    async def record_xp_transaction(
        self, client_id: str, amount: int, badge_id: str, description: str
    ) -> None: ...


class PostgresAchievementStore(AchievementStore):
    """AchievementStore backed by the Supabase Postgres tables."""

    async def list_active_badges(self, categories: list[str]) -> list[Badge]:
        rows = await supabase.fetch(
            "SELECT id, name, criteria, xp_reward FROM badges "
            "WHERE is_active = true AND category = ANY($1::text[])",
            categories,
        )
        badges = []
        for row in rows:
            badge = Badge.from_row(dict(row))
            if badge is None:
                logger.warning("Ignoring badge %s with unreadable criteria", row["id"])
                continue
            badges.append(badge)
        return badges

    async def earned_badge_ids(self, client_id: str) -> set[str]:
        rows = await supabase.fetch(
            "SELECT badge_id FROM client_badges WHERE client_id = $1", client_id
        )
        return {str(r["badge_id"]) for r in rows}

    async def fetch_health_history(self, client_id: str, since: date) -> list[HealthSample]:
        rows = await supabase.fetch(
            "SELECT client_id, data_type, value, source, recorded_at FROM health_data_sync "
            "WHERE client_id = $1 AND source <> $2 AND recorded_at::date >= $3",
            client_id,
            HealthSource.manual.value,
            since,
        )
        return [HealthSample.from_row(dict(r)) for r in rows]

    async def count_workouts(self, client_id: str, data_type: str) -> int:
        count = await supabase.fetchval(
            "SELECT count(*) FROM health_data_sync "
            "WHERE client_id = $1 AND data_type = $2 AND source <> $3",
            client_id,
            data_type,
            HealthSource.manual.value,
        )
        return int(count or 0)

    async def active_connection_providers(self, client_id: str) -> list[str]:
        rows = await supabase.fetch(
            "SELECT provider FROM wearable_connections WHERE client_id = $1 AND is_active = true",
            client_id,
        )
        return [str(r["provider"]) for r in rows]

    async def award_badge(
        self, client_id: str, badge_id: str, source_data: dict[str, Any]
    ) -> None:
        await supabase.execute(
            "INSERT INTO client_badges (client_id, badge_id, source_data) "
            "VALUES ($1, $2, $3::jsonb)",
            client_id,
            badge_id,
            json.dumps(source_data),
        )

    async def credit_xp(self, client_id: str, amount: int) -> None:
        await supabase.execute(
            "UPDATE client_xp SET total_xp = COALESCE(total_xp, 0) + $2, updated_at = NOW() "
            "WHERE client_id = $1",
            client_id,
            amount,
        )

    async def record_xp_transaction(
        self, client_id: str, amount: int, badge_id: str, description: str
    ) -> None:
        await supabase.execute(
            "INSERT INTO xp_transactions (client_id, amount, source, source_id, description) "
            "VALUES ($1, $2, 'badge_earned', $3, $4)",
            client_id,
            amount,
            badge_id,
            description,
        )
