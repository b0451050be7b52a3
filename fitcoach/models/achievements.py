"""Health badges and the check-health-achievements wire schema."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import Field

from fitcoach.models.base import FitcoachBase


@dataclass(frozen=True)
class Badge:
    """An awardable badge with a ``{type, value}`` criteria document.

    ``threshold`` is an optional daily minimum for streak badges
    (e.g. 10000 for a 10k-steps streak).
    """

    id: str
    name: str
    criteria_type: str
    required_value: float
    xp_reward: int = 0
    threshold: float | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Badge | None":
        """Build from a ``badges`` row; returns None when criteria is unusable."""
        criteria = row.get("criteria")
        if isinstance(criteria, str):
            try:
                criteria = json.loads(criteria)
            except ValueError:
                return None
        if not isinstance(criteria, dict) or "type" not in criteria:
            return None
        threshold = criteria.get("threshold")
        return cls(
            id=str(row["id"]),
            name=str(row["name"]),
            criteria_type=str(criteria["type"]),
            required_value=float(criteria.get("value") or 0),
            xp_reward=int(row.get("xp_reward") or 0),
            threshold=float(threshold) if threshold is not None else None,
        )


class AwardedBadge(FitcoachBase):
    badge_id: str = Field(alias="badgeId")
    badge_name: str = Field(alias="badgeName")
    was_awarded: bool = Field(alias="wasAwarded")
    total_value: float | None = Field(default=None, alias="totalValue")
    required_value: float | None = Field(default=None, alias="requiredValue")


class HealthAchievementResponse(FitcoachBase):
    success: bool = True
    checked: int
    awarded: int
    results: list[AwardedBadge] = Field(default_factory=list)
    streaks: dict[str, int] = Field(default_factory=dict)
