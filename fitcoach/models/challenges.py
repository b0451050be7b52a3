"""Challenge participation records and the verify-progress wire schema."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import Field

from fitcoach.models.base import FitcoachBase

WEARABLE_DATA_SOURCE = "wearable"


class ParticipantStatus(str, Enum):
    active = "active"
    completed = "completed"
    abandoned = "abandoned"


def _day(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _number(value: Any) -> float:
    return float(value) if value is not None else 0.0


@dataclass(frozen=True)
class Challenge:
    """The parts of a challenge the reconciler reads.

    Attributes:
        id:                    Challenge id.
        title:                 Display title, for logs.
        wearable_data_type:    Metric tracked, or None if not wearable-based.
        target_value:          Completion threshold.
        start_date:            First counted day (inclusive).
        end_date:              Last counted day (inclusive).
        requires_verification: When True, current progress mirrors verified
                               progress exactly.  NULL reads as False.
        data_source:           Must be ``"wearable"`` to be reconciled.
    """

    id: str
    wearable_data_type: str | None
    target_value: float
    start_date: date
    end_date: date
    requires_verification: bool = False
    data_source: str | None = None
    title: str = ""

    @property
    def is_wearable_tracked(self) -> bool:
        return self.data_source == WEARABLE_DATA_SOURCE and bool(self.wearable_data_type)


@dataclass(frozen=True)
class ChallengeParticipant:
    """A client's enrollment in one challenge, joined with the challenge."""

    id: str
    challenge_id: str
    client_id: str
    current_progress: float
    verified_progress: float | None
    status: ParticipantStatus
    challenge: Challenge
    completed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ChallengeParticipant":
        """Build from a participant row joined with its challenge.

        Challenge columns are expected with a ``challenge_`` prefix where they
        would otherwise clash (``challenge_title``, ``challenge_start_date``...).
        """
        challenge = Challenge(
            id=str(row["challenge_id"]),
            title=row.get("challenge_title") or "",
            wearable_data_type=row.get("wearable_data_type"),
            target_value=_number(row.get("target_value")),
            start_date=_day(row["start_date"]),
            end_date=_day(row["end_date"]),
            requires_verification=bool(row.get("requires_verification") or False),
            data_source=row.get("data_source"),
        )
        verified = row.get("verified_progress")
        return cls(
            id=str(row["id"]),
            challenge_id=str(row["challenge_id"]),
            client_id=str(row["client_id"]),
            current_progress=_number(row.get("current_progress")),
            verified_progress=_number(verified) if verified is not None else None,
            status=ParticipantStatus(row["status"]),
            challenge=challenge,
            completed_at=row.get("completed_at"),
        )


@dataclass(frozen=True)
class ProgressUpdate:
    """Values written back to ``challenge_participants`` for one row."""

    participant_id: str
    verified_progress: int
    current_progress: float
    mark_completed: bool
    synced_at: datetime


# ---------- Wire schema ----------


class ChallengeProgressResult(FitcoachBase):
    challenge_id: str = Field(alias="challengeId")
    previous_progress: float = Field(alias="previousProgress")
    new_progress: float = Field(alias="newProgress")
    completed: bool


class VerifyProgressResponse(FitcoachBase):
    success: bool = True
    updated: int
    failed: int = 0
    skipped: int = 0
    results: list[ChallengeProgressResult] = Field(default_factory=list)
