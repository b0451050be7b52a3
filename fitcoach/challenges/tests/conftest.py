"""Fixtures and an in-memory store for reconciler tests."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, timedelta, timezone

import pytest

from fitcoach.challenges.reconciler import ProgressReconciler
from fitcoach.challenges.store import ProgressStore
from fitcoach.models.challenges import (
    Challenge,
    ChallengeParticipant,
    ParticipantStatus,
    ProgressUpdate,
)
from fitcoach.models.health import HealthSample
from fitcoach.services.supabase import StoreError

CLIENT_ID = "8f14e45f-ceea-467f-a0e6-ef4b1a1c2d3e"
START = date(2026, 3, 2)
END = START + timedelta(days=6)
FIXED_NOW = datetime(2026, 3, 9, 12, 0, tzinfo=timezone.utc)


def make_participant(
    participant_id: str = "p-1",
    challenge_id: str = "c-1",
    data_type: str | None = "steps",
    target: float = 70000,
    current: float = 0,
    verified: float | None = None,
    requires_verification: bool = False,
    data_source: str | None = "wearable",
    status: ParticipantStatus = ParticipantStatus.active,
    client_id: str = CLIENT_ID,
) -> ChallengeParticipant:
    return ChallengeParticipant(
        id=participant_id,
        challenge_id=challenge_id,
        client_id=client_id,
        current_progress=current,
        verified_progress=verified,
        status=status,
        challenge=Challenge(
            id=challenge_id,
            title=f"Challenge {challenge_id}",
            wearable_data_type=data_type,
            target_value=target,
            start_date=START,
            end_date=END,
            requires_verification=requires_verification,
            data_source=data_source,
        ),
    )


def daily(value: float, source: str, data_type: str = "steps", days: int = 7, start: date = START):
    return [
        HealthSample(
            data_type=data_type,
            value=value,
            source=source,
            recorded_at=start + timedelta(days=i),
            client_id=CLIENT_ID,
        )
        for i in range(days)
    ]


class FakeProgressStore(ProgressStore):
    """In-memory stand-in that applies updates like the real table would."""

    def __init__(
        self,
        participants: list[ChallengeParticipant] | None = None,
        samples: list[HealthSample] | None = None,
    ) -> None:
        self.participants = {p.id: p for p in participants or []}
        self.samples = list(samples or [])
        self.updates: list[ProgressUpdate] = []
        self.fail_list = False
        self.fail_fetch_types: set[str] = set()
        self.fail_update_ids: set[str] = set()
        self.fetch_calls = 0

    async def list_active_participations(self, client_id: str) -> list[ChallengeParticipant]:
        if self.fail_list:
            raise StoreError("connection refused")
        return [
            p
            for p in self.participants.values()
            if p.client_id == client_id and p.status == ParticipantStatus.active
        ]

    async def fetch_samples(
        self, client_id: str, data_type: str, start_date: date, end_date: date
    ) -> list[HealthSample]:
        self.fetch_calls += 1
        if data_type in self.fail_fetch_types:
            raise StoreError(f"timeout reading {data_type}")
        return [
            s
            for s in self.samples
            if s.client_id == client_id
            and s.data_type == data_type
            and start_date <= s.recorded_at <= end_date
            and s.source != "manual"
        ]

    async def apply_update(self, update: ProgressUpdate) -> None:
        if update.participant_id in self.fail_update_ids:
            raise StoreError("permission denied")
        self.updates.append(update)
        current = self.participants[update.participant_id]
        changes: dict = {
            "verified_progress": update.verified_progress,
            "current_progress": update.current_progress,
        }
        if update.mark_completed:
            changes["status"] = ParticipantStatus.completed
            changes["completed_at"] = update.synced_at
        self.participants[update.participant_id] = dataclasses.replace(current, **changes)


@pytest.fixture
def store() -> FakeProgressStore:
    return FakeProgressStore()


@pytest.fixture
def reconciler(store: FakeProgressStore) -> ProgressReconciler:
    return ProgressReconciler(store, clock=lambda: FIXED_NOW)
