"""Primary-constraint classification from the user's explicit choice."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from core.settings import ConstraintSettings, get_settings

from .signals import SignalSet


class ConstraintType(str, Enum):
    LEADS = "leads"
    SALES = "sales"
    DELIVERY = "delivery"
    PROFIT = "profit"
    UNKNOWN = "unknown"

    @property
    def is_concrete(self) -> bool:
        return self is not ConstraintType.UNKNOWN


UNSURE = "unsure"

# Form values accepted for each taxonomy entry.
CONSTRAINT_ALIASES: Dict[str, str] = {
    "leads": ConstraintType.LEADS.value,
    "sales": ConstraintType.SALES.value,
    "conversion": ConstraintType.SALES.value,
    "delivery": ConstraintType.DELIVERY.value,
    "fulfillment": ConstraintType.DELIVERY.value,
    "profit": ConstraintType.PROFIT.value,
    "unsure": UNSURE,
    "unknown": UNSURE,
}

SOURCE_EXPLICIT = "explicit"
SOURCE_UNSURE = "unsure"
SOURCE_NONE = "none"


@dataclass(frozen=True)
class ConstraintClassification:
    value: ConstraintType
    confidence: int
    source: str = SOURCE_NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value.value,
            "confidence": self.confidence,
            "source": self.source,
        }


UNKNOWN_CONSTRAINT = ConstraintClassification(ConstraintType.UNKNOWN, 0, SOURCE_NONE)


def normalize_constraint_choice(choice: Any) -> Optional[str]:
    """Return the canonical choice (taxonomy value or 'unsure'), or ``None``."""
    if choice is None:
        return None
    if isinstance(choice, ConstraintType):
        return choice.value if choice.is_concrete else UNSURE
    return CONSTRAINT_ALIASES.get(str(choice).strip().lower())


def coerce_constraint(value: Any) -> ConstraintType:
    """Parse *value* as a constraint type, falling back to unknown."""
    if isinstance(value, ConstraintClassification):
        return value.value
    choice = normalize_constraint_choice(value)
    if choice is None or choice == UNSURE:
        return ConstraintType.UNKNOWN
    return ConstraintType(choice)


def classify_constraint(
    explicit_choice: Optional[str],
    signals: Optional[SignalSet] = None,
    *,
    settings: Optional[ConstraintSettings] = None,
) -> ConstraintClassification:
    """Classify the primary constraint from an explicit answer only.

    ``signals`` are accepted so callers can pass the full classification
    context, but a constraint is never inferred from them: without an
    explicit choice the result is ``unknown`` with confidence 0.
    """
    settings = settings or get_settings().constraints
    choice = normalize_constraint_choice(explicit_choice)
    if choice is None:
        return UNKNOWN_CONSTRAINT
    if choice == UNSURE:
        return ConstraintClassification(ConstraintType.UNKNOWN, settings.unsure_confidence, SOURCE_UNSURE)
    return ConstraintClassification(ConstraintType(choice), settings.explicit_confidence, SOURCE_EXPLICIT)
