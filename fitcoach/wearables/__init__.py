"""Wearable sample reduction shared by challenge and achievement logic.

Core modules:
    priority — Fixed source ranking used to resolve same-day conflicts
    dedup    — One-sample-per-day reduction and totals
    streaks  — Consecutive qualifying-day counting
"""

from fitcoach.wearables.dedup import dedupe_by_day, total_progress, totals_by_type
from fitcoach.wearables.priority import SOURCE_PRIORITY, source_rank
from fitcoach.wearables.streaks import calculate_streak

__all__ = [
    "SOURCE_PRIORITY",
    "source_rank",
    "dedupe_by_day",
    "total_progress",
    "totals_by_type",
    "calculate_streak",
]
