"""Value types for daily challenges."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from classifiers.constraint_classifier import ConstraintType, coerce_constraint
from core.errors import ValidationError


class ChallengeCategory(str, Enum):
    REVENUE = "revenue"
    FRAMEWORK = "framework"
    HABIT = "habit"
    CONSTRAINT = "constraint"
    TEAM = "team"
    LEARNING = "learning"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class BusinessTier(str, Enum):
    LEVEL0 = "level0"
    LEVEL1 = "level1"
    LEVEL2 = "level2"
    LEVEL3 = "level3"
    LEVEL4 = "level4"


EARLY_TIERS = frozenset({BusinessTier.LEVEL0, BusinessTier.LEVEL1})
ADVANCED_TIERS = frozenset({BusinessTier.LEVEL3, BusinessTier.LEVEL4})

PROOF_TYPES = frozenset({"text", "number", "image", "link", "boolean"})


def _coerce_enum(enum_cls, value: Any, default=None):
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def coerce_tier(value: Any) -> BusinessTier:
    return _coerce_enum(BusinessTier, value, BusinessTier.LEVEL0)


def coerce_difficulty(value: Any) -> Optional[Difficulty]:
    return _coerce_enum(Difficulty, value)


def coerce_category(value: Any) -> Optional[ChallengeCategory]:
    return _coerce_enum(ChallengeCategory, value)


@dataclass(frozen=True)
class ChallengeProof:
    type: str
    value: Any
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    verified: bool = False

    def __post_init__(self) -> None:
        if self.type not in PROOF_TYPES:
            raise ValidationError(
                f"Unsupported proof type '{self.type}'",
                allowed=sorted(PROOF_TYPES),
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "value": self.value,
            "timestamp": self.timestamp.isoformat(),
            "verified": self.verified,
        }


@dataclass(frozen=True)
class Challenge:
    id: str
    category: ChallengeCategory
    title: str
    description: str
    framework: str
    difficulty: Difficulty
    xp_reward: int
    time_required: str
    deadline: datetime
    success_criteria: str
    hints: Tuple[str, ...] = ()
    related_resources: Tuple[str, ...] = ()
    template_key: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    proof: Optional[ChallengeProof] = None

    def complete(self, *, proof: Optional[ChallengeProof] = None, at: Optional[datetime] = None) -> "Challenge":
        """Return the completed record; a completed challenge is returned unchanged."""
        if self.completed:
            return self
        return replace(
            self,
            completed=True,
            completed_at=at or datetime.now(timezone.utc),
            proof=proof,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.category.value,
            "title": self.title,
            "description": self.description,
            "framework": self.framework,
            "difficulty": self.difficulty.value,
            "xp_reward": self.xp_reward,
            "time_required": self.time_required,
            "deadline": self.deadline.isoformat(),
            "success_criteria": self.success_criteria,
            "hints": list(self.hints),
            "related_resources": list(self.related_resources),
            "completed": self.completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "proof": self.proof.to_dict() if self.proof else None,
        }


@dataclass(frozen=True)
class UserChallengeContext:
    """Read-only snapshot of the user supplied by the session layer."""

    user_id: str
    business_tier: BusinessTier = BusinessTier.LEVEL0
    primary_constraint: ConstraintType = ConstraintType.UNKNOWN
    current_streak: int = 0
    completed_challenges: Tuple[str, ...] = ()
    monthly_revenue: Optional[float] = None
    preferred_difficulty: Optional[Difficulty] = None
    preferred_types: Tuple[ChallengeCategory, ...] = ()
    timezone: Optional[str] = None

    @classmethod
    def from_mapping(cls, payload: Dict[str, Any]) -> "UserChallengeContext":
        """Build a context from loosely typed values, keeping the conservative default for anything unrecognised."""
        preferred_types = tuple(
            category
            for category in (coerce_category(item) for item in payload.get("preferred_types") or ())
            if category is not None
        )
        streak = payload.get("current_streak") or 0
        try:
            streak = max(0, int(streak))
        except (TypeError, ValueError):
            streak = 0
        return cls(
            user_id=str(payload.get("user_id") or ""),
            business_tier=coerce_tier(payload.get("business_tier")),
            primary_constraint=coerce_constraint(payload.get("primary_constraint")),
            current_streak=streak,
            completed_challenges=tuple(payload.get("completed_challenges") or ()),
            monthly_revenue=payload.get("monthly_revenue"),
            preferred_difficulty=coerce_difficulty(payload.get("preferred_difficulty")),
            preferred_types=preferred_types,
            timezone=payload.get("timezone"),
        )
