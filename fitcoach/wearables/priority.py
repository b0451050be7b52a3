"""Source priority for resolving same-day readings from several devices.

A client can have a phone health store and a tracker vendor connected at the
same time; both report the same steps.  Only one source per day is counted,
chosen from this fixed order (highest first).
"""

from __future__ import annotations

from typing import Iterable, TypeVar

from fitcoach.models.health import HealthSample, HealthSource

SOURCE_PRIORITY: tuple[HealthSource, ...] = (
    HealthSource.apple_health,
    HealthSource.health_connect,
    HealthSource.fitbit,
    HealthSource.garmin,
    HealthSource.manual,
)

# Rank assigned to any source not in SOURCE_PRIORITY
UNKNOWN_SOURCE_RANK = 99

_RANKS: dict[str, int] = {src.value: i for i, src in enumerate(SOURCE_PRIORITY)}

S = TypeVar("S", bound=HealthSample)


def source_rank(source: str | HealthSource) -> int:
    """Return the priority rank of a source (0 = highest).

    Args:
        source: Source slug or enum member.

    Returns:
        Index in SOURCE_PRIORITY, or UNKNOWN_SOURCE_RANK when unrecognized.
    """
    key = source.value if isinstance(source, HealthSource) else source
    return _RANKS.get(key, UNKNOWN_SOURCE_RANK)


def select_primary(samples: Iterable[S]) -> S | None:
    """Pick the sample from the highest-priority source.

    Ties keep the first sample encountered.

    Args:
        samples: Readings for one metric on one day.

    Returns:
        The winning sample, or None if ``samples`` is empty.
    """
    best: S | None = None
    best_rank = UNKNOWN_SOURCE_RANK + 1
    for sample in samples:
        rank = source_rank(sample.source)
        if rank < best_rank:
            best, best_rank = sample, rank
    return best
