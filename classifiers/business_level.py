"""Map sophistication scores onto coaching levels."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from core.settings import ScoringSettings, get_settings

from .signals import coerce_number
from .sophistication import clamp


class BusinessLevel(str, Enum):
    BEGINNER = "beginner"
    GROWTH = "growth"
    SCALE = "scale"
    ENTERPRISE = "enterprise"


BUSINESS_STAGE_BY_LEVEL: Dict[BusinessLevel, str] = {
    BusinessLevel.BEGINNER: "startup",
    BusinessLevel.GROWTH: "growth",
    BusinessLevel.SCALE: "scale",
    BusinessLevel.ENTERPRISE: "mature",
}


def classify_level(score: Any, *, settings: Optional[ScoringSettings] = None) -> BusinessLevel:
    """Return the level whose band contains *score* (boundaries belong to the higher band)."""
    thresholds = (settings or get_settings().scoring).level_thresholds
    number = coerce_number(score)
    if number is None:
        return BusinessLevel.BEGINNER
    value = clamp(number)

    if value >= thresholds["enterprise"]:
        return BusinessLevel.ENTERPRISE
    if value >= thresholds["scale"]:
        return BusinessLevel.SCALE
    if value >= thresholds["growth"]:
        return BusinessLevel.GROWTH
    return BusinessLevel.BEGINNER


def coerce_level(value: Any) -> BusinessLevel:
    """Parse *value* as a level, falling back to beginner."""
    if isinstance(value, BusinessLevel):
        return value
    try:
        return BusinessLevel(str(value).strip().lower())
    except ValueError:
        return BusinessLevel.BEGINNER


def business_stage_for_level(level: Any) -> str:
    return BUSINESS_STAGE_BY_LEVEL[coerce_level(level)]
