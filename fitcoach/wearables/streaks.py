"""Consecutive-day streaks over deduplicated wearable samples."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from fitcoach.models.health import HealthSample
from fitcoach.wearables.dedup import dedupe_by_day

MAX_STREAK_DAYS = 365


def calculate_streak(
    samples: Iterable[HealthSample],
    data_type: str,
    min_value: float,
    today: date | None = None,
) -> int:
    """Count consecutive qualifying days ending today or yesterday.

    A day qualifies when its highest-priority sample for ``data_type`` is at
    least ``min_value``.  Today not having data yet does not break a streak,
    so counting may start from yesterday.

    Args:
        samples:   Readings of any metric; others are ignored.
        data_type: Metric to evaluate (e.g. 'steps').
        min_value: Daily threshold.
        today:     Reference day.  Defaults to ``date.today()``.

    Returns:
        Streak length in days, capped at MAX_STREAK_DAYS.
    """
    today = today or date.today()
    winners = dedupe_by_day(s for s in samples if s.data_type == data_type)
    qualifying = {day for day, sample in winners.items() if sample.value >= min_value}

    if today in qualifying:
        cursor = today
    elif today - timedelta(days=1) in qualifying:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in qualifying and streak < MAX_STREAK_DAYS:
        streak += 1
        cursor -= timedelta(days=1)
    return streak
