"""Shared fixtures for wearable deduplication tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from fitcoach.models.health import HealthSample

TEST_CLIENT_ID = "2b7c61e0-5d1f-4a57-9a43-0c3c1f1d9e21"
WINDOW_START = date(2026, 3, 2)


def make_sample(
    value: float,
    source: str = "apple_health",
    day: date = WINDOW_START,
    data_type: str = "steps",
) -> HealthSample:
    return HealthSample(
        data_type=data_type,
        value=value,
        source=source,
        recorded_at=day,
        client_id=TEST_CLIENT_ID,
    )


def week_of(value: float, source: str, start: date = WINDOW_START, days: int = 7) -> list[HealthSample]:
    """One sample per day for ``days`` consecutive days."""
    return [make_sample(value, source, start + timedelta(days=i)) for i in range(days)]


@pytest.fixture
def single_source_week() -> list[HealthSample]:
    """Seven days of 10,000 steps from Apple Health."""
    return week_of(10000, "apple_health")


@pytest.fixture
def dual_source_week() -> list[HealthSample]:
    """Seven days where Apple Health and Garmin both reported steps."""
    return week_of(10000, "apple_health") + week_of(5000, "garmin")
