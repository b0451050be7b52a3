"""Load, validate, and hot-reload the health achievement rules.

The rules live in ``achievements_config.yaml`` alongside this module.  They
are loaded once and cached; call ``reload_achievements_config()`` to re-read
them from disk without a restart.

Usage::

    from fitcoach.achievements.config_loader import get_achievements_config

    config = get_achievements_config()
    rule = config.streaks["steps_streak"]
    rule.select_level(required_value=7).key   # "steps_5k"
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from fitcoach.models.health import HealthDataType

logger = logging.getLogger("fitcoach.achievements.config")

_CONFIG_PATH = Path(__file__).parent / "achievements_config.yaml"

DEVICE_CONNECTED = "device_connected"
DEVICES_CONNECTED = "devices_connected"
WEARABLE_WORKOUT_COUNT = "wearable_workout_count"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class TotalRule:
    """A badge type measured by a deduplicated total of one metric."""

    criteria_type: str
    data_type: str
    divisor: float = 1.0

    def value_from(self, totals: dict[str, float]) -> float:
        return totals.get(self.data_type, 0.0) / self.divisor


@dataclass
class StreakLevel:
    key: str
    min_value: float


@dataclass
class StreakRule:
    """A badge type measured by a consecutive-day streak.

    Attributes:
        criteria_type: Badge criteria type (e.g. 'steps_streak').
        data_type:     Metric evaluated each day.
        levels:        Daily minimums, ascending.
    """

    criteria_type: str
    data_type: str
    levels: list[StreakLevel]

    def select_level(self, required_value: float, threshold: float | None = None) -> StreakLevel:
        """Pick the streak level a badge is judged against.

        The highest level whose minimum does not exceed the explicit daily
        ``threshold`` (or, without one, the badge's required value) is used.
        The lowest level applies when none qualifies.
        """
        bound = threshold if threshold is not None else required_value
        eligible = [lvl for lvl in self.levels if lvl.min_value <= bound]
        return eligible[-1] if eligible else self.levels[0]


@dataclass
class AchievementsConfig:
    """Complete, validated achievement configuration.

    Attributes:
        version:           Config schema version string.
        badge_categories:  Badge categories considered health-related.
        workout_data_type: Metric counted for workout-count badges.
        totals:            criteria type → TotalRule.
        streaks:           criteria type → StreakRule.
    """

    version: str
    badge_categories: list[str]
    workout_data_type: str
    totals: dict[str, TotalRule]
    streaks: dict[str, StreakRule]
    _raw: dict = field(default_factory=dict, repr=False)

    @property
    def health_badge_types(self) -> set[str]:
        return (
            set(self.totals)
            | set(self.streaks)
            | {WEARABLE_WORKOUT_COUNT, DEVICE_CONNECTED, DEVICES_CONNECTED}
        )

    def streak_levels(self) -> list[tuple[StreakRule, StreakLevel]]:
        """Every (rule, level) pair, in config order."""
        return [(rule, lvl) for rule in self.streaks.values() for lvl in rule.levels]


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when achievements_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Achievements config not found: {path}")
    with path.open(encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc


def _validate_and_build(raw: dict[str, Any]) -> AchievementsConfig:
    """Validate a parsed config dict and build the typed config.

    All problems are collected and reported together.

    Raises:
        ConfigValidationError: If any field is missing or invalid.
    """
    errors: list[str] = []

    version = str(raw.get("version") or "")
    if not version:
        errors.append("version is required")

    categories = raw.get("badge_categories") or []
    if not isinstance(categories, list) or not categories:
        errors.append("badge_categories must be a non-empty list")
        categories = []

    workout_data_type = str(raw.get("workout_data_type") or HealthDataType.workout.value)

    totals: dict[str, TotalRule] = {}
    for criteria_type, entry in (raw.get("totals") or {}).items():
        if not isinstance(entry, dict) or not entry.get("data_type"):
            errors.append(f"totals.{criteria_type}: data_type is required")
            continue
        try:
            divisor = float(entry.get("divisor", 1.0))
        except (TypeError, ValueError):
            errors.append(f"totals.{criteria_type}: divisor must be a number")
            continue
        if divisor <= 0:
            errors.append(f"totals.{criteria_type}: divisor must be > 0")
            continue
        totals[criteria_type] = TotalRule(criteria_type, str(entry["data_type"]), divisor)

    streaks: dict[str, StreakRule] = {}
    seen_keys: set[str] = set()
    for criteria_type, entry in (raw.get("streaks") or {}).items():
        if not isinstance(entry, dict) or not entry.get("data_type"):
            errors.append(f"streaks.{criteria_type}: data_type is required")
            continue
        levels_raw = entry.get("levels") or []
        if not levels_raw:
            errors.append(f"streaks.{criteria_type}: at least one level is required")
            continue
        if not isinstance(levels_raw, list):
            errors.append(f"streaks.{criteria_type}: levels must be a list")
            continue
        levels: list[StreakLevel] = []
        for lvl in levels_raw:
            if not isinstance(lvl, dict):
                errors.append(f"streaks.{criteria_type}: each level must be a mapping")
                continue
            key = str(lvl.get("key") or "")
            try:
                min_value = float(lvl.get("min_value") or 0)
            except (TypeError, ValueError):
                errors.append(f"streaks.{criteria_type}.{key}: min_value must be a number")
                continue
            if not key:
                errors.append(f"streaks.{criteria_type}: level key is required")
            elif key in seen_keys:
                errors.append(f"streaks.{criteria_type}: duplicate level key '{key}'")
            if min_value <= 0:
                errors.append(f"streaks.{criteria_type}.{key}: min_value must be > 0")
            seen_keys.add(key)
            levels.append(StreakLevel(key, min_value))
        mins = [lvl.min_value for lvl in levels]
        if mins != sorted(set(mins)):
            errors.append(f"streaks.{criteria_type}: levels must be strictly ascending")
        streaks[criteria_type] = StreakRule(criteria_type, str(entry["data_type"]), levels)

    overlap = set(totals) & set(streaks)
    if overlap:
        errors.append(f"criteria types defined as both total and streak: {sorted(overlap)}")

    if errors:
        raise ConfigValidationError(
            f"achievements_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    return AchievementsConfig(
        version=version,
        badge_categories=[str(c) for c in categories],
        workout_data_type=workout_data_type,
        totals=totals,
        streaks=streaks,
        _raw=raw,
    )


def load_achievements_config(path: Path | None = None) -> AchievementsConfig:
    """Load and validate the achievements config.

    Args:
        path: Override path to YAML. Uses the bundled file by default.

    Raises:
        ConfigValidationError: If the config is invalid.
        FileNotFoundError:     If the file is missing.
    """
    target = path or _CONFIG_PATH
    config = _validate_and_build(_load_yaml(target))
    logger.info("Loaded achievements config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: AchievementsConfig | None = None
_config_lock = threading.Lock()


def get_achievements_config(path: Path | None = None) -> AchievementsConfig:
    """Return the global AchievementsConfig, loading it on first call."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_achievements_config(path)
    return _config


def reload_achievements_config(path: Path | None = None) -> AchievementsConfig:
    """Reload from disk and replace the global config.

    If validation fails the old config is retained and the error re-raised.
    """
    global _config
    new_config = load_achievements_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded achievements config: %s → %s", old_version, new_config.version)
    return new_config
