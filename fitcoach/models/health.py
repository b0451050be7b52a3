"""Health data samples and the wearable source enumeration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping


class HealthSource(str, Enum):
    """Integrations that write rows into ``health_data_sync``."""

    apple_health = "apple_health"
    health_connect = "health_connect"
    fitbit = "fitbit"
    garmin = "garmin"
    manual = "manual"


class HealthDataType(str, Enum):
    steps = "steps"
    calories = "calories"
    active_minutes = "active_minutes"
    distance = "distance"
    sleep = "sleep"
    heart_rate = "heart_rate"
    workout = "workout"


def _as_day(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class HealthSample:
    """One reading from one source for one metric on one day.

    Attributes:
        data_type:   Metric name (e.g. 'steps').  Kept as a plain string so
                     metrics this service does not know about still flow.
        value:       Magnitude in the metric's implied unit.
        source:      Origin slug.  Unknown slugs are kept verbatim.
        recorded_at: Calendar day the reading covers.
        client_id:   Subject of the reading, if known.
    """

    data_type: str
    value: float
    source: str
    recorded_at: date
    client_id: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "HealthSample":
        """Build a sample from a ``health_data_sync`` row.

        ``recorded_at`` may arrive as a date, a timestamp, or an ISO string;
        it is truncated to the calendar day.  A NULL value counts as 0.
        """
        value = row.get("value")
        client_id = row.get("client_id")
        return cls(
            data_type=str(row["data_type"]),
            value=float(value) if value is not None else 0.0,
            source=str(row["source"]),
            recorded_at=_as_day(row["recorded_at"]),
            client_id=str(client_id) if client_id is not None else None,
        )
