"""Daily challenge selection.

Selection runs in two weighted-random stages (category, then difficulty)
followed by a template pick within the category. All randomness goes
through an injected :class:`random.Random` so a seeded instance reproduces
the same challenge.
"""

from __future__ import annotations

import random
import re
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional, Sequence, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from classifiers.constraint_classifier import ConstraintType
from core.errors import TemplateError
from core.settings import ChallengeSettings, get_settings
from core.telemetry import TelemetryClient, TelemetryMixin

from .models import (
    ADVANCED_TIERS,
    EARLY_TIERS,
    Challenge,
    ChallengeCategory,
    Difficulty,
    UserChallengeContext,
)
from .templates import (
    CHALLENGE_TEMPLATES,
    DEFAULT_CATEGORY,
    DEFAULT_TEMPLATE_KEY,
    ChallengeTemplate,
    format_currency,
    interpolate,
    related_resources,
    resolve_template,
    template_keys,
    time_required,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _resolve_zone(name: Optional[str]) -> Optional[ZoneInfo]:
    """IANA zone for *name*, or ``None`` when it is missing or not a zone."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError):
        # OSError covers zone-database folders such as "America"
        logger.warning("Unknown time zone, using clock zone", timezone=name)
        return None


class ChallengeSelector(TelemetryMixin):
    """Weighted challenge generator driven by a :class:`UserChallengeContext`."""

    BASE_WEIGHTS: Dict[ChallengeCategory, float] = {
        ChallengeCategory.REVENUE: 0.30,
        ChallengeCategory.FRAMEWORK: 0.20,
        ChallengeCategory.HABIT: 0.20,
        ChallengeCategory.CONSTRAINT: 0.20,
        ChallengeCategory.TEAM: 0.05,
        ChallengeCategory.LEARNING: 0.05,
    }

    CONSTRAINT_ADJUSTMENTS: Dict[ConstraintType, Dict[ChallengeCategory, float]] = {
        ConstraintType.LEADS: {
            ChallengeCategory.CONSTRAINT: 0.20,
            ChallengeCategory.REVENUE: -0.10,
        },
        ConstraintType.SALES: {
            ChallengeCategory.FRAMEWORK: 0.20,
        },
        ConstraintType.PROFIT: {
            ChallengeCategory.REVENUE: 0.20,
            ChallengeCategory.FRAMEWORK: 0.10,
        },
        ConstraintType.DELIVERY: {
            ChallengeCategory.HABIT: 0.10,
            ChallengeCategory.TEAM: 0.10,
            ChallengeCategory.REVENUE: -0.10,
        },
    }

    EARLY_TIER_ADJUSTMENTS: Dict[ChallengeCategory, float] = {
        ChallengeCategory.HABIT: 0.10,
        ChallengeCategory.LEARNING: 0.15,
        ChallengeCategory.FRAMEWORK: 0.10,
        ChallengeCategory.REVENUE: -0.10,
    }

    ADVANCED_TIER_ADJUSTMENTS: Dict[ChallengeCategory, float] = {
        ChallengeCategory.TEAM: 0.10,
    }

    def __init__(
        self,
        settings: Optional[ChallengeSettings] = None,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        templates: Optional[Mapping[str, Mapping[str, Mapping]]] = None,
        telemetry_client: Optional[TelemetryClient] = None,
    ) -> None:
        TelemetryMixin.__init__(self, telemetry_client)
        self.settings = settings or get_settings().challenges
        self.rng = rng or random.Random()
        self.clock = clock or _local_now
        self.templates = CHALLENGE_TEMPLATES if templates is None else templates

    # -- stage 1: category -------------------------------------------------

    def category_weights(self, context: UserChallengeContext) -> Dict[ChallengeCategory, float]:
        weights = dict(self.BASE_WEIGHTS)
        adjustments = [self.CONSTRAINT_ADJUSTMENTS.get(context.primary_constraint, {})]
        if context.business_tier in EARLY_TIERS:
            adjustments.append(self.EARLY_TIER_ADJUSTMENTS)
        if context.business_tier in ADVANCED_TIERS:
            adjustments.append(self.ADVANCED_TIER_ADJUSTMENTS)
        for adjustment in adjustments:
            for category, delta in adjustment.items():
                weights[category] = weights[category] + delta
        return {category: max(0.0, weight) for category, weight in weights.items()}

    def select_category(self, context: UserChallengeContext) -> ChallengeCategory:
        if context.preferred_types:
            return self.rng.choice(list(context.preferred_types))
        if context.current_streak > self.settings.uniform_streak_threshold:
            return self.rng.choice(list(ChallengeCategory))
        weights = self.category_weights(context)
        return self._weighted_choice(list(weights), list(weights.values()))

    # -- stage 2: difficulty -----------------------------------------------

    def select_difficulty(self, context: UserChallengeContext) -> Difficulty:
        if context.preferred_difficulty is not None:
            return context.preferred_difficulty

        streak = context.current_streak
        if streak < 3:
            return Difficulty.EASY
        if context.business_tier in ADVANCED_TIERS:
            return Difficulty.HARD if self.rng.random() < 0.6 else Difficulty.MEDIUM
        if streak < 7:
            return Difficulty.EASY if self.rng.random() < 0.7 else Difficulty.MEDIUM
        if streak < 14:
            return Difficulty.MEDIUM if self.rng.random() < 0.5 else Difficulty.HARD

        roll = self.rng.random()
        if roll < 0.5:
            return Difficulty.EASY
        if roll < 0.8:
            return Difficulty.MEDIUM
        return Difficulty.HARD

    # -- stage 3: template -------------------------------------------------

    def select_template_key(self, category: ChallengeCategory, context: UserChallengeContext) -> str:
        keys = template_keys(category, self.templates)
        if not keys:
            raise TemplateError(
                f"No templates for category '{category.value}'",
                category=category.value,
            )
        weights = []
        for key in keys:
            marker = f"{category.value}-{_slug(key)}-"
            repeats = sum(1 for challenge_id in context.completed_challenges if marker in challenge_id)
            weights.append(self.settings.history_decay ** repeats)
        return self._weighted_choice(keys, weights)

    def deadline(self, context: UserChallengeContext) -> datetime:
        """End of the current day in the user's time zone."""
        now = self._now(context)
        return now.replace(hour=23, minute=59, second=59, microsecond=999000)

    # -- assembly ----------------------------------------------------------

    def select(self, context: UserChallengeContext) -> Challenge:
        category = self.select_category(context)
        difficulty = self.select_difficulty(context)
        try:
            key = self.select_template_key(category, context)
            template = resolve_template(category, key, self.templates)
            challenge = self._build(template, difficulty, context)
        except TemplateError as exc:
            self.capture_exception(exc, user_id=context.user_id, category=category.value)
            self.emit_metric("challenge.fallback", 1, category=category.value, reason=exc.code)
            self.emit_event(
                "challenge.fallback",
                user_id=context.user_id,
                category=category.value,
                reason=exc.code,
            )
            challenge = self.default_challenge(context, difficulty)

        self.emit_event(
            "challenge.generated",
            user_id=context.user_id,
            challenge_id=challenge.id,
            category=challenge.category.value,
            difficulty=challenge.difficulty.value,
            xp_reward=challenge.xp_reward,
        )
        return challenge

    def default_challenge(self, context: UserChallengeContext, difficulty: Difficulty) -> Challenge:
        template = resolve_template(DEFAULT_CATEGORY, DEFAULT_TEMPLATE_KEY, CHALLENGE_TEMPLATES)
        return self._build(template, difficulty, context)

    def beat_yesterday_challenge(self, context: UserChallengeContext, yesterday_revenue: float) -> Challenge:
        """Revenue challenge measured against an explicit prior-day figure."""
        difficulty = self.select_difficulty(context)
        template = resolve_template(DEFAULT_CATEGORY, DEFAULT_TEMPLATE_KEY, CHALLENGE_TEMPLATES)
        config = template.config_for(difficulty)
        baseline = max(0.0, float(yesterday_revenue))
        multiplier = config.get("multiplier", 1.0)
        target = round(baseline * multiplier)
        description = (
            f"Generate at least {format_currency(target)} today "
            f"({round((multiplier - 1) * 100)}% more than yesterday's {format_currency(baseline)})"
        )
        challenge = self._build(template, difficulty, context, target_amount=target)
        return Challenge(
            id=challenge.id,
            category=challenge.category,
            title=challenge.title,
            description=description,
            framework=challenge.framework,
            difficulty=difficulty,
            xp_reward=challenge.xp_reward,
            time_required="Throughout the day",
            deadline=challenge.deadline,
            success_criteria=challenge.success_criteria,
            hints=challenge.hints,
            related_resources=("/agents/money-model-architect", "/business-templates?filter=revenue"),
            template_key=template.key,
        )

    def _build(
        self,
        template: ChallengeTemplate,
        difficulty: Difficulty,
        context: UserChallengeContext,
        *,
        target_amount: Optional[float] = None,
    ) -> Challenge:
        config = template.config_for(difficulty)
        if target_amount is None and config.get("multiplier") is not None:
            target_amount = self._projected_target(context, config.get("multiplier"))
        return Challenge(
            id=f"{template.category.value}-{_slug(template.key)}-{self._timestamp_ms(context)}",
            category=template.category,
            title=template.title,
            description=interpolate(template.description, config, target_amount=target_amount),
            framework=template.framework,
            difficulty=difficulty,
            xp_reward=config.xp,
            time_required=time_required(template.category, difficulty),
            deadline=self.deadline(context),
            success_criteria=interpolate(template.success_criteria, config, target_amount=target_amount),
            hints=template.hints,
            related_resources=related_resources(template.category),
            template_key=template.key,
        )

    @staticmethod
    def _projected_target(context: UserChallengeContext, multiplier: float) -> Optional[float]:
        monthly = context.monthly_revenue
        if not isinstance(monthly, (int, float)) or isinstance(monthly, bool) or monthly <= 0:
            return None
        return round(monthly / 30 * multiplier)

    def _now(self, context: UserChallengeContext) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.astimezone()
        zone = _resolve_zone(context.timezone)
        return now.astimezone(zone) if zone is not None else now

    def _timestamp_ms(self, context: UserChallengeContext) -> int:
        return int(self._now(context).timestamp() * 1000)

    def _weighted_choice(self, items: Sequence[T], weights: Sequence[float]) -> T:
        if sum(weights) <= 0:
            return self.rng.choice(list(items))
        return self.rng.choices(list(items), weights=list(weights), k=1)[0]


def _selector(rng: Optional[random.Random], now: Optional[datetime]) -> ChallengeSelector:
    clock = (lambda: now) if now is not None else None
    return ChallengeSelector(rng=rng, clock=clock)


def select_challenge(
    context: UserChallengeContext,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Challenge:
    """Generate one challenge for *context* with default settings."""
    return _selector(rng, now).select(context)


def beat_yesterday_challenge(
    context: UserChallengeContext,
    yesterday_revenue: float,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Challenge:
    return _selector(rng, now).beat_yesterday_challenge(context, yesterday_revenue)
