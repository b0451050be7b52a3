"""Recompute wearable-verified progress for a client's active challenges.

For each active participation the reconciler fetches the client's non-manual
samples for the challenge metric within the challenge window, deduplicates
them across devices (one source per day, by priority), and writes the result
back.  A failure on one challenge is logged and recorded in its outcome; the
remaining challenges are still processed.

Completed participations are never revisited because the store only returns
``active`` rows, which keeps repeated runs from re-triggering completion.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from fitcoach.challenges.store import ProgressStore
from fitcoach.models.challenges import (
    ChallengeParticipant,
    ChallengeProgressResult,
    ParticipantStatus,
    ProgressUpdate,
    VerifyProgressResponse,
)
from fitcoach.services.supabase import StoreError
from fitcoach.wearables.dedup import total_progress

logger = logging.getLogger("fitcoach.challenges.reconciler")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OutcomeKind(str, Enum):
    updated = "updated"
    skipped = "skipped"
    failed = "failed"


@dataclass(frozen=True)
class ChallengeOutcome:
    """What happened to one participation during a run.

    Attributes:
        kind:              updated, skipped, or failed.
        challenge_id:      Challenge the participation belongs to.
        participant_id:    The participation row.
        previous_progress: current_progress before the run.
        new_progress:      current_progress written (updated only).
        verified_progress: verified_progress written (updated only).
        completed:         True if the challenge target is met.
        stage:             'fetch', 'compute', or 'update' for failures.
        detail:            Skip reason or error message.
    """

    kind: OutcomeKind
    challenge_id: str
    participant_id: str
    previous_progress: float
    new_progress: float | None = None
    verified_progress: int | None = None
    completed: bool = False
    stage: str | None = None
    detail: str | None = None


@dataclass
class ReconcileReport:
    """All outcomes of one reconciliation run for a client."""

    client_id: str
    outcomes: list[ChallengeOutcome] = field(default_factory=list)

    def _of(self, kind: OutcomeKind) -> list[ChallengeOutcome]:
        return [o for o in self.outcomes if o.kind == kind]

    @property
    def updated(self) -> list[ChallengeOutcome]:
        return self._of(OutcomeKind.updated)

    @property
    def failed(self) -> list[ChallengeOutcome]:
        return self._of(OutcomeKind.failed)

    @property
    def skipped(self) -> list[ChallengeOutcome]:
        return self._of(OutcomeKind.skipped)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)

    def to_response(self) -> VerifyProgressResponse:
        return VerifyProgressResponse(
            success=True,
            updated=len(self.updated),
            failed=len(self.failed),
            skipped=len(self.skipped),
            results=[
                ChallengeProgressResult(
                    challenge_id=o.challenge_id,
                    previous_progress=o.previous_progress,
                    new_progress=o.new_progress if o.new_progress is not None else o.previous_progress,
                    completed=o.completed,
                )
                for o in self.updated
            ],
        )


def next_current_progress(
    previous: float, verified: int, requires_verification: bool
) -> float:
    """Return the user-facing progress after verification.

    Verified challenges mirror the wearable total exactly.  Otherwise the
    wearable total can only raise a higher self-reported value, never lower it.
    """
    if requires_verification:
        return verified
    return max(previous, verified)


class ProgressReconciler:
    """Reconcile verified progress for every active challenge of a client.

    Usage::

        reconciler = ProgressReconciler(PostgresProgressStore())
        report = await reconciler.reconcile(client_id)
    """

    def __init__(
        self,
        store: ProgressStore,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    async def reconcile(self, client_id: str) -> ReconcileReport:
        """Run reconciliation for one client.

        Args:
            client_id: Client whose participations to process.

        Returns:
            ReconcileReport with one outcome per active participation.

        Raises:
            ValueError: If ``client_id`` is empty.
            StoreError: If the participation list itself cannot be fetched.
        """
        if not client_id:
            raise ValueError("clientId is required")

        participations = await self._store.list_active_participations(client_id)
        report = ReconcileReport(client_id=client_id)

        if not participations:
            logger.info("No active challenge participations for client %s", client_id)
            return report

        logger.info(
            "Reconciling %d active participation(s) for client %s",
            len(participations), client_id,
        )

        for participation in participations:
            report.outcomes.append(await self._reconcile_one(participation))

        logger.info(
            "Reconciled client %s: %d updated, %d skipped, %d failed",
            client_id, len(report.updated), len(report.skipped), len(report.failed),
        )
        return report

    async def _reconcile_one(self, participation: ChallengeParticipant) -> ChallengeOutcome:
        challenge = participation.challenge
        base = {
            "challenge_id": participation.challenge_id,
            "participant_id": participation.id,
            "previous_progress": participation.current_progress,
        }

        if not challenge.is_wearable_tracked:
            return ChallengeOutcome(
                kind=OutcomeKind.skipped, detail="not a wearable challenge", **base
            )

        try:
            samples = await self._store.fetch_samples(
                participation.client_id,
                challenge.wearable_data_type,  # type: ignore[arg-type]
                challenge.start_date,
                challenge.end_date,
            )
        except StoreError as exc:
            logger.error(
                "Failed to fetch health data for challenge %s: %s",
                participation.challenge_id, exc,
            )
            return ChallengeOutcome(
                kind=OutcomeKind.failed, stage="fetch", detail=str(exc), **base
            )

        total = total_progress(samples)
        if not math.isfinite(total):
            logger.error(
                "Non-finite total %s for challenge %s, not updating",
                total, participation.challenge_id,
            )
            return ChallengeOutcome(
                kind=OutcomeKind.failed, stage="compute", detail=f"non-finite total: {total}", **base
            )
        verified = math.floor(total)
        is_completed = total >= challenge.target_value
        current = next_current_progress(
            participation.current_progress, verified, challenge.requires_verification
        )
        mark_completed = is_completed and participation.status == ParticipantStatus.active

        update = ProgressUpdate(
            participant_id=participation.id,
            verified_progress=verified,
            current_progress=current,
            mark_completed=mark_completed,
            synced_at=self._clock(),
        )

        try:
            await self._store.apply_update(update)
        except StoreError as exc:
            logger.error(
                "Failed to update progress for challenge %s: %s",
                participation.challenge_id, exc,
            )
            return ChallengeOutcome(
                kind=OutcomeKind.failed, stage="update", detail=str(exc), **base
            )

        logger.info(
            "Challenge %s (%s): %d sample(s), total=%.2f, target=%.2f, completed=%s",
            participation.challenge_id, challenge.title or "untitled", len(samples), total,
            challenge.target_value, is_completed,
        )
        return ChallengeOutcome(
            kind=OutcomeKind.updated,
            new_progress=current,
            verified_progress=verified,
            completed=is_completed,
            **base,
        )
