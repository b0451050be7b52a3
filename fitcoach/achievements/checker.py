"""Evaluate health badges for a client and award the ones newly earned.

Totals and streaks are computed from the same cross-device deduplication the
challenge reconciler uses, so a client with two connected devices earns
badges on one device's worth of activity per day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable

from fitcoach.achievements.config_loader import (
    DEVICE_CONNECTED,
    DEVICES_CONNECTED,
    WEARABLE_WORKOUT_COUNT,
    AchievementsConfig,
)
from fitcoach.achievements.store import AchievementStore
from fitcoach.models.achievements import AwardedBadge, Badge, HealthAchievementResponse
from fitcoach.models.health import HealthSample
from fitcoach.services.supabase import StoreError
from fitcoach.wearables.dedup import totals_by_type
from fitcoach.wearables.streaks import calculate_streak

logger = logging.getLogger("fitcoach.achievements.checker")


@dataclass
class ClientHealthSnapshot:
    """Everything badge criteria are evaluated against."""

    totals: dict[str, float]
    streaks: dict[str, int]
    device_count: int
    provider_count: int
    workout_count: int | None = None


@dataclass
class AchievementReport:
    client_id: str
    results: list[AwardedBadge] = field(default_factory=list)
    streaks: dict[str, int] = field(default_factory=dict)

    @property
    def awarded(self) -> list[AwardedBadge]:
        return [r for r in self.results if r.was_awarded]

    def to_response(self) -> HealthAchievementResponse:
        return HealthAchievementResponse(
            success=True,
            checked=len(self.results),
            awarded=len(self.awarded),
            results=self.awarded,
            streaks=self.streaks,
        )


def compute_streaks(
    samples: list[HealthSample], config: AchievementsConfig, today: date
) -> dict[str, int]:
    """Streak length for every configured level, keyed by level key."""
    return {
        level.key: calculate_streak(samples, rule.data_type, level.min_value, today)
        for rule, level in config.streak_levels()
    }


class HealthAchievementChecker:
    """Award health badges from wearable data.

    Usage::

        checker = HealthAchievementChecker(PostgresAchievementStore(), get_achievements_config())
        report = await checker.check(client_id)
    """

    def __init__(
        self,
        store: AchievementStore,
        config: AchievementsConfig,
        history_days: int = 365,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._config = config
        self._history_days = history_days
        self._today = today

    async def check(self, client_id: str) -> AchievementReport:
        """Evaluate every unearned health badge for a client.

        Raises:
            ValueError: If ``client_id`` is empty.
            StoreError: If badges, earned badges, health history, or
                connections cannot be read.
        """
        if not client_id:
            raise ValueError("clientId is required")

        logger.info("Checking health achievements for client %s", client_id)

        badges = [
            b
            for b in await self._store.list_active_badges(self._config.badge_categories)
            if b.criteria_type in self._config.health_badge_types
        ]
        logger.info("Found %d health-related badge(s) to check", len(badges))

        earned = await self._store.earned_badge_ids(client_id)

        today = self._today()
        since = today - timedelta(days=self._history_days)
        samples = await self._store.fetch_health_history(client_id, since)

        providers = await self._store.active_connection_providers(client_id)
        snapshot = ClientHealthSnapshot(
            totals=totals_by_type(samples),
            streaks=compute_streaks(samples, self._config, today),
            device_count=len(providers),
            provider_count=len(set(providers)),
        )
        logger.debug("Health totals for %s: %s", client_id, snapshot.totals)
        logger.debug("Streaks for %s: %s", client_id, snapshot.streaks)

        report = AchievementReport(client_id=client_id, streaks=snapshot.streaks)
        for badge in badges:
            if badge.id in earned:
                report.results.append(
                    AwardedBadge(badge_id=badge.id, badge_name=badge.name, was_awarded=False)
                )
                continue
            result = await self._evaluate(client_id, badge, snapshot)
            if result is not None:
                report.results.append(result)

        logger.info(
            "Completed achievement check for %s: awarded %d badge(s)",
            client_id, len(report.awarded),
        )
        return report

    async def current_value(
        self, client_id: str, badge: Badge, snapshot: ClientHealthSnapshot
    ) -> float:
        """Return the client's value for a badge's criteria type."""
        ctype = badge.criteria_type
        if ctype in self._config.totals:
            return self._config.totals[ctype].value_from(snapshot.totals)
        if ctype in self._config.streaks:
            level = self._config.streaks[ctype].select_level(
                badge.required_value, badge.threshold
            )
            return float(snapshot.streaks.get(level.key, 0))
        if ctype == WEARABLE_WORKOUT_COUNT:
            if snapshot.workout_count is None:
                snapshot.workout_count = await self._store.count_workouts(
                    client_id, self._config.workout_data_type
                )
            return float(snapshot.workout_count)
        if ctype == DEVICE_CONNECTED:
            return float(snapshot.device_count)
        if ctype == DEVICES_CONNECTED:
            return float(snapshot.provider_count)
        return 0.0

    async def _evaluate(
        self, client_id: str, badge: Badge, snapshot: ClientHealthSnapshot
    ) -> AwardedBadge | None:
        """Award the badge if earned.  Returns None when the award insert fails."""
        total = await self.current_value(client_id, badge, snapshot)
        logger.info(
            "Badge %r: current=%s, required=%s", badge.name, total, badge.required_value
        )
        not_awarded = AwardedBadge(
            badge_id=badge.id,
            badge_name=badge.name,
            was_awarded=False,
            total_value=total,
            required_value=badge.required_value,
        )
        if total < badge.required_value:
            return not_awarded

        source_data: dict[str, Any] = {
            "source": "wearable_sync",
            "total_value": total,
            "criteria_value": badge.required_value,
        }
        if badge.criteria_type in self._config.streaks:
            source_data["streaks"] = snapshot.streaks

        try:
            await self._store.award_badge(client_id, badge.id, source_data)
        except StoreError as exc:
            # Usually a unique violation from a concurrent award
            logger.warning("Badge insert failed for %r: %s", badge.name, exc)
            return None

        logger.info("Awarded badge %r to client %s", badge.name, client_id)
        await self._credit_xp(client_id, badge)
        return not_awarded.model_copy(update={"was_awarded": True})

    async def _credit_xp(self, client_id: str, badge: Badge) -> None:
        if badge.xp_reward <= 0:
            return
        try:
            await self._store.credit_xp(client_id, badge.xp_reward)
        except StoreError as exc:
            logger.warning("XP update failed for client %s: %s", client_id, exc)
        try:
            await self._store.record_xp_transaction(
                client_id,
                badge.xp_reward,
                badge.id,
                f'Earned "{badge.name}" badge from wearable data',
            )
        except StoreError as exc:
            logger.warning("XP transaction insert failed for client %s: %s", client_id, exc)
