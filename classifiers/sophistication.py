"""Weighted additive sophistication scoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.settings import ScoringSettings, get_settings

from .signals import OnboardingInput, SignalSet

MAX_SCORE = 100


def clamp(value: float, lower: int = 0, upper: int = MAX_SCORE) -> int:
    return int(max(lower, min(upper, value)))


@dataclass(frozen=True)
class SophisticationScore:
    """Total score with the components that produced it."""

    revenue: int
    metrics: int
    language: int

    @property
    def total(self) -> int:
        return self.revenue + self.metrics + self.language

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "breakdown": {
                "revenue": self.revenue,
                "metrics": self.metrics,
                "language": self.language,
            },
        }


class SophisticationScorer:
    """Combine revenue tier, metrics knowledge and language into 0-100."""

    def __init__(self, settings: Optional[ScoringSettings] = None) -> None:
        self.settings = settings or get_settings().scoring

    def revenue_component(self, onboarding: OnboardingInput) -> int:
        revenue = onboarding.resolved_monthly_revenue()
        for threshold, points in self.settings.revenue_bands:
            if revenue > threshold:
                return clamp(points, upper=self.settings.revenue_cap)
        return 0

    def metrics_component(self, signals: SignalSet) -> int:
        points = 0
        if signals.cac_known and signals.ltv_known:
            points += self.settings.cac_ltv_points
        if signals.churn_known:
            points += self.settings.churn_points
        if signals.margin_known:
            points += self.settings.margin_points
        return clamp(points, upper=self.settings.metrics_cap)

    def language_component(self, signals: SignalSet) -> int:
        points = sum(self.settings.language_signal_points for flag in signals.language_signals if flag)
        return clamp(points, upper=self.settings.language_cap)

    def score(self, onboarding: OnboardingInput, signals: SignalSet) -> SophisticationScore:
        revenue = self.revenue_component(onboarding)
        metrics = self.metrics_component(signals)
        language = self.language_component(signals)

        # Caps may be configured above 100 in total; trim language first, then
        # metrics, so the breakdown still sums to the clamped total.
        overflow = max(0, revenue + metrics + language - MAX_SCORE)
        cut = min(language, overflow)
        language -= cut
        overflow -= cut
        cut = min(metrics, overflow)
        metrics -= cut
        overflow -= cut
        revenue -= overflow

        return SophisticationScore(revenue=revenue, metrics=metrics, language=language)


def score(
    onboarding: OnboardingInput,
    signals: SignalSet,
    *,
    settings: Optional[ScoringSettings] = None,
) -> SophisticationScore:
    """Score *onboarding* with the default (or supplied) scoring settings."""
    return SophisticationScorer(settings).score(onboarding, signals)
