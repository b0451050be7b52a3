"""Cross-device deduplication of daily wearable samples.

Samples are grouped by calendar day.  A day with one sample keeps it; a day
with several keeps only the highest-priority source's value and drops the
rest.  Values from different devices are never averaged or added together,
since daily counters like steps describe the same physical activity.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from fitcoach.models.health import HealthSample
from fitcoach.wearables.priority import select_primary

logger = logging.getLogger("fitcoach.wearables.dedup")


def group_by_day(samples: Iterable[HealthSample]) -> dict[date, list[HealthSample]]:
    """Group samples by ``recorded_at``, preserving arrival order within a day."""
    by_day: dict[date, list[HealthSample]] = defaultdict(list)
    for sample in samples:
        by_day[sample.recorded_at].append(sample)
    return dict(by_day)


def dedupe_by_day(samples: Iterable[HealthSample]) -> dict[date, HealthSample]:
    """Reduce samples to one per day using source priority.

    All samples are assumed to be for the same metric; use
    :func:`totals_by_type` for mixed input.

    Args:
        samples: Readings for one metric.

    Returns:
        Mapping of day → winning sample.
    """
    winners: dict[date, HealthSample] = {}
    for day, entries in group_by_day(samples).items():
        winner = entries[0] if len(entries) == 1 else select_primary(entries)
        if winner is None:
            continue
        if len(entries) > 1:
            logger.debug(
                "Dropped %d duplicate sample(s) on %s, kept %s",
                len(entries) - 1, day, winner.source,
            )
        winners[day] = winner
    return winners


def total_progress(samples: Iterable[HealthSample]) -> float:
    """Sum one deduplicated value per day.

    Args:
        samples: Readings for one metric, typically one challenge window.

    Returns:
        Total of the per-day winning values.
    """
    return float(sum(s.value for s in dedupe_by_day(samples).values()))


def totals_by_type(samples: Iterable[HealthSample]) -> dict[str, float]:
    """Deduplicated totals for every metric present in ``samples``.

    Args:
        samples: Readings across any number of metrics.

    Returns:
        Mapping of data_type → deduplicated total.
    """
    by_type: dict[str, list[HealthSample]] = defaultdict(list)
    for sample in samples:
        by_type[sample.data_type].append(sample)
    return {data_type: total_progress(rows) for data_type, rows in by_type.items()}
