"""Data access for challenge progress reconciliation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date

from fitcoach.models.challenges import (
    ChallengeParticipant,
    ParticipantStatus,
    ProgressUpdate,
)
from fitcoach.models.health import HealthSample, HealthSource
from fitcoach.services import supabase
from fitcoach.services.supabase import StoreError

logger = logging.getLogger("fitcoach.challenges.store")


class ProgressStore(ABC):
    """Reads and writes the reconciler depends on.

    Implementations raise :class:`StoreError` for any backend failure so the
    reconciler can tell data-layer errors from bugs.
    """

    @abstractmethod
    async def list_active_participations(self, client_id: str) -> list[ChallengeParticipant]:
        """Return the client's participations whose status is ``active``."""

    @abstractmethod
    async def fetch_samples(
        self,
        client_id: str,
        data_type: str,
        start_date: date,
        end_date: date,
    ) -> list[HealthSample]:
        """Return non-manual samples for one metric within [start_date, end_date]."""

    @abstractmethod
    async def apply_update(self, update: ProgressUpdate) -> None:
        """Persist new progress values for one participation."""


_ACTIVE_PARTICIPATIONS_SQL = """
    SELECT cp.id, cp.challenge_id, cp.client_id, cp.current_progress,
           cp.verified_progress, cp.status, cp.completed_at,
           c.title AS challenge_title, c.wearable_data_type, c.target_value,
           c.start_date, c.end_date, c.requires_verification, c.data_source
    FROM challenge_participants cp
    JOIN challenges c ON c.id = cp.challenge_id
    WHERE cp.client_id = $1 AND cp.status = $2
    ORDER BY cp.joined_at
"""

_SAMPLES_SQL = """
    SELECT client_id, data_type, value, source, recorded_at
    FROM health_data_sync
    WHERE client_id = $1
      AND data_type = $2
      AND recorded_at::date BETWEEN $3 AND $4
      AND source <> $5
"""

_UPDATE_SQL = """
    UPDATE challenge_participants
    SET verified_progress = $2,
        current_progress = $3,
        last_wearable_sync_at = $4,
        status = CASE WHEN $5 THEN 'completed' ELSE status END,
        completed_at = CASE WHEN $5 THEN $4 ELSE completed_at END
    WHERE id = $1
"""


def _db_number(value: float) -> int | float:
    # Progress columns are integer in practice; asyncpg will not coerce floats.
    return int(value) if float(value).is_integer() else value


class PostgresProgressStore(ProgressStore):
    """ProgressStore backed by the Supabase Postgres tables."""

    async def list_active_participations(self, client_id: str) -> list[ChallengeParticipant]:
        rows = await supabase.fetch(
            _ACTIVE_PARTICIPATIONS_SQL, client_id, ParticipantStatus.active.value
        )
        return [ChallengeParticipant.from_row(dict(r)) for r in rows]

    async def fetch_samples(
        self,
        client_id: str,
        data_type: str,
        start_date: date,
        end_date: date,
    ) -> list[HealthSample]:
        rows = await supabase.fetch(
            _SAMPLES_SQL,
            client_id,
            data_type,
            start_date,
            end_date,
            HealthSource.manual.value,
        )
        return [HealthSample.from_row(dict(r)) for r in rows]

    async def apply_update(self, update: ProgressUpdate) -> None:
        status = await supabase.execute(
            _UPDATE_SQL,
            update.participant_id,
            update.verified_progress,
            _db_number(update.current_progress),
            update.synced_at,
            update.mark_completed,
        )
        if status == "UPDATE 0":
            raise StoreError(f"Participation {update.participant_id} not found")
        logger.debug("Updated participation %s (%s)", update.participant_id, status)
