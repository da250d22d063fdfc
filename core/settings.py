"""Tunable thresholds for scoring, routing and challenge generation.

Defaults live in the dataclasses below. A YAML or JSON file (path taken from
``COACHING_CONFIG``) can override any subset of them::

    scoring:
      level_thresholds: {enterprise: 80, scale: 55, growth: 25}
    challenges:
      uniform_streak_threshold: 10
"""
from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import structlog
import yaml

from .errors import ConfigurationError

logger = structlog.get_logger(__name__)

CONFIG_ENV_VAR = "COACHING_CONFIG"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class ScoringSettings:
    # (exclusive lower bound on monthly revenue, points), highest first
    revenue_bands: Tuple[Tuple[float, int], ...] = (
        (1_000_000, 40),
        (100_000, 30),
        (10_000, 20),
        (1_000, 10),
    )
    revenue_cap: int = 40
    cac_ltv_points: int = 15
    churn_points: int = 5
    margin_points: int = 10
    metrics_cap: int = 30
    language_signal_points: int = 10
    language_cap: int = 30
    level_thresholds: Dict[str, int] = field(
        default_factory=lambda: {"enterprise": 75, "scale": 50, "growth": 25}
    )


@dataclass(frozen=True)
class ConstraintSettings:
    explicit_confidence: int = 85
    unsure_confidence: int = 50


@dataclass(frozen=True)
class RoutingSettings:
    highly_sophisticated_score: int = 80
    targeted_workspace_score: int = 40


@dataclass(frozen=True)
class ChallengeSettings:
    uniform_streak_threshold: int = 7
    history_decay: float = 0.5
    history_window_days: int = 30
    points_per_level: int = 100


@dataclass(frozen=True)
class CoachingSettings:
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    constraints: ConstraintSettings = field(default_factory=ConstraintSettings)
    routing: RoutingSettings = field(default_factory=RoutingSettings)
    challenges: ChallengeSettings = field(default_factory=ChallengeSettings)

    def validate(self) -> "CoachingSettings":
        thresholds = self.scoring.level_thresholds
        missing = {"enterprise", "scale", "growth"} - set(thresholds)
        if missing:
            raise ConfigurationError(
                "Level thresholds are incomplete",
                missing=sorted(missing),
            )
        if not all(_is_number(value) for value in thresholds.values()):
            raise ConfigurationError(
                "Level thresholds must be numbers",
                thresholds=dict(thresholds),
            )
        enterprise, scale, growth = (
            thresholds["enterprise"],
            thresholds["scale"],
            thresholds["growth"],
        )
        if not 0 < growth < scale < enterprise <= 100:
            raise ConfigurationError(
                "Level thresholds must be strictly ascending within 1..100",
                thresholds=dict(thresholds),
            )
        bands = self.scoring.revenue_bands
        if not bands or not all(_is_number(bound) and _is_number(points) for bound, points in bands):
            raise ConfigurationError("Revenue bands must be (threshold, points) numbers", revenue_bands=bands)
        bounds = [bound for bound, _ in bands]
        # the scorer takes the first band the revenue exceeds
        if any(higher <= lower for higher, lower in zip(bounds, bounds[1:])):
            raise ConfigurationError("Revenue bands must be listed highest threshold first", revenue_bands=bands)
        if not 0.0 < self.challenges.history_decay <= 1.0:
            raise ConfigurationError(
                "history_decay must be in (0, 1]",
                history_decay=self.challenges.history_decay,
            )
        if self.challenges.points_per_level <= 0:
            raise ConfigurationError(
                "points_per_level must be positive",
                points_per_level=self.challenges.points_per_level,
            )
        routing = self.routing
        if routing.targeted_workspace_score > routing.highly_sophisticated_score:
            raise ConfigurationError(
                "targeted_workspace_score cannot exceed highly_sophisticated_score",
                targeted=routing.targeted_workspace_score,
                highly_sophisticated=routing.highly_sophisticated_score,
            )
        return self


class ConfigManager:
    """Loads the optional settings file once and caches the parsed mapping."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()
        self._config: Optional[Dict[str, Any]] = None

    def get(self) -> Dict[str, Any]:
        with self._lock:
            if self._config is None:
                self._config = self._load()
            return dict(self._config)

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            logger.warning("Settings file not found", path=str(self._path))
            return {}
        text = self._path.read_text(encoding="utf-8")
        suffix = self._path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        elif suffix == ".json":
            data = json.loads(text)
        else:
            raise ConfigurationError(
                f"Unsupported config file extension: {self._path.suffix}",
                path=str(self._path),
            )
        if not isinstance(data, dict):
            raise ConfigurationError("Settings file must contain a mapping", path=str(self._path))
        return data


def _merge_section(section: Any, overrides: Mapping[str, Any], name: str) -> Any:
    known = {f.name for f in fields(section)}
    unknown = set(overrides) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown settings in section '{name}'",
            keys=sorted(unknown),
        )
    values = dict(overrides)
    if "revenue_bands" in values:
        try:
            values["revenue_bands"] = tuple((threshold, points) for threshold, points in values["revenue_bands"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                "Revenue bands must be a list of [threshold, points] pairs",
                revenue_bands=repr(values["revenue_bands"]),
            ) from exc
    if "level_thresholds" in values:
        if not isinstance(values["level_thresholds"], Mapping):
            raise ConfigurationError("level_thresholds must be a mapping", level_thresholds=repr(values["level_thresholds"]))
        merged = dict(section.level_thresholds)
        merged.update(values["level_thresholds"])
        values["level_thresholds"] = merged
    return replace(section, **values)


def settings_from_mapping(data: Mapping[str, Any]) -> CoachingSettings:
    """Build validated settings from a nested mapping of overrides."""

    settings = CoachingSettings()
    sections = {f.name for f in fields(settings)}
    unknown = set(data) - sections
    if unknown:
        raise ConfigurationError("Unknown settings sections", sections=sorted(unknown))
    updates = {
        name: _merge_section(getattr(settings, name), data[name] or {}, name)
        for name in sections
        if name in data
    }
    return replace(settings, **updates).validate()


def load_settings(path: Optional[str] = None) -> CoachingSettings:
    """Load settings from *path* or ``COACHING_CONFIG``; defaults otherwise."""

    config_path = path or os.getenv(CONFIG_ENV_VAR)
    if not config_path:
        return CoachingSettings().validate()
    data = ConfigManager(Path(config_path)).get()
    settings = settings_from_mapping(data)
    logger.info("Loaded coaching settings", path=config_path)
    return settings


@lru_cache(maxsize=1)
def get_settings() -> CoachingSettings:
    """Process-wide settings used when callers do not inject their own."""

    return load_settings()
