"""Run the full classification pipeline and produce the decision record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from core.settings import CoachingSettings, get_settings
from core.telemetry import TelemetryClient, TelemetryMixin

from .assessment import build_onboarding_input
from .business_level import BusinessLevel, business_stage_for_level, classify_level
from .constraint_classifier import ConstraintClassification, classify_constraint
from .route_resolver import RouteId, recommend_route
from .signals import KeywordSignalExtractor, OnboardingInput, SignalExtractor, SignalSet
from .sophistication import SophisticationScore, SophisticationScorer


@dataclass(frozen=True)
class ClassificationResult:
    signals: SignalSet
    score: SophisticationScore
    level: BusinessLevel
    constraint: ConstraintClassification
    route: RouteId
    business_stage: Optional[str] = None
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def key_indicators(self) -> List[str]:
        return self.signals.key_indicators()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sophistication": {
                **self.score.to_dict(),
                "indicators": self.signals.to_dict(),
                "detected_at": self.detected_at.isoformat(),
            },
            "business_level": self.level.value,
            "profile_stage": business_stage_for_level(self.level),
            "business_stage": self.business_stage,
            "constraint": self.constraint.to_dict(),
            "route": self.route.value,
            "key_indicators": self.key_indicators,
        }


class BusinessClassifier(TelemetryMixin):
    """Signal extraction, scoring, level, constraint and route in one call."""

    def __init__(
        self,
        settings: Optional[CoachingSettings] = None,
        *,
        extractor: Optional[SignalExtractor] = None,
        telemetry_client: Optional[TelemetryClient] = None,
    ) -> None:
        TelemetryMixin.__init__(self, telemetry_client)
        self.settings = settings or get_settings()
        self.extractor = extractor or KeywordSignalExtractor()
        self.scorer = SophisticationScorer(self.settings.scoring)

    def classify(
        self,
        onboarding: OnboardingInput,
        explicit_constraint: Optional[str] = None,
        *,
        previous_signals: Optional[SignalSet] = None,
    ) -> ClassificationResult:
        signals = self.extractor.extract(onboarding, previous_signals)
        score = self.scorer.score(onboarding, signals)
        level = classify_level(score.total, settings=self.settings.scoring)
        constraint = classify_constraint(
            explicit_constraint, signals, settings=self.settings.constraints
        )
        route = recommend_route(level, constraint, score.total, settings=self.settings.routing)

        result = ClassificationResult(
            signals=signals,
            score=score,
            level=level,
            constraint=constraint,
            route=route,
            business_stage=onboarding.normalized_stage(),
        )
        self.emit_event(
            "classification.completed",
            score=score.total,
            level=level.value,
            constraint=constraint.value.value,
            route=route.value,
        )
        return result

    def classify_answers(
        self,
        answers: Mapping[str, Any],
        *,
        explicit_constraint: Optional[str] = None,
        previous_signals: Optional[SignalSet] = None,
    ) -> ClassificationResult:
        """Classify a flat onboarding or assessment answer mapping.

        A non-empty *explicit_constraint* wins over any constraint answer.
        """
        adapted = build_onboarding_input(answers)
        return self.classify(
            adapted.onboarding,
            explicit_constraint or adapted.explicit_constraint,
            previous_signals=previous_signals,
        )
