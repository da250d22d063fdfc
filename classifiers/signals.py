"""Derive sophistication signals from raw onboarding answers."""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

BUSINESS_TERMS: Tuple[str, ...] = (
    "cac",
    "ltv",
    "conversion",
    "funnel",
    "optimization",
    "constraint",
    "scale",
    "systematic",
    "framework",
    "roi",
    "kpi",
    "metrics",
)

SYSTEMIC_WORDS: Tuple[str, ...] = (
    "process",
    "system",
    "framework",
    "methodology",
    "systematic",
    "optimization",
    "scale",
    "implement",
    "strategy",
)

SCALING_WORDS: Tuple[str, ...] = (
    "team",
    "hire",
    "delegate",
    "automate",
    "scale",
    "growth",
    "expansion",
    "operations",
    "management",
)

# Representative monthly revenue for each bucket label offered by the
# onboarding and assessment forms, keyed by the normalised label.
REVENUE_BUCKETS: Dict[str, float] = {
    # onboarding form
    "0-1k": 500,
    "1k-5k": 2_500,
    "5k-10k": 7_500,
    "10k-50k": 25_000,
    "50k-100k": 75_000,
    "100k-500k": 250_000,
    "500k-1m": 750_000,
    "1m+": 2_500_000,
    # assessment form
    "1k-10k": 5_000,
    "50k-250k": 150_000,
    "250k+": 500_000,
}

METRICS_KNOWLEDGE_LEVELS = {"expert", "intermediate"}

BUSINESS_STAGES = {
    "complete_beginner",
    "have_business",
    "scaling_business",
    "experienced_operator",
}


def normalize_bucket_label(label: Any) -> str:
    """Collapse '$1K - $5K' style labels to '1k-5k'."""
    if label is None:
        return ""
    text = str(label).lower()
    return re.sub(r"[\s$,]", "", text)


def coerce_number(value: Any) -> Optional[float]:
    """Return *value* as a finite float, or ``None`` when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def is_known_metric(value: Any) -> bool:
    number = coerce_number(value)
    return number is not None and number > 0


def normalize_rate(value: Any) -> Optional[float]:
    """Map a rate given as a fraction or a percentage onto 0..1."""
    number = coerce_number(value)
    if number is None or number <= 0:
        return None
    if number > 1:
        number = number / 100.0
    return min(number, 1.0)


@dataclass(frozen=True)
class OnboardingInput:
    """Raw answers collected by the onboarding and assessment flows."""

    business_description: Optional[str] = None
    biggest_challenge: Optional[str] = None
    experience_narrative: Optional[str] = None
    extra_text: Tuple[str, ...] = ()
    business_stage: Optional[str] = None
    industry: Optional[str] = None
    revenue_bucket: Optional[str] = None
    team_size: Optional[str] = None
    metrics_knowledge: Optional[str] = None
    monthly_revenue: Optional[float] = None
    cac: Optional[float] = None
    ltv: Optional[float] = None
    churn_rate: Optional[float] = None
    gross_margin: Optional[float] = None

    def text_fields(self) -> Iterable[str]:
        yield self.business_description or ""
        yield self.biggest_challenge or ""
        yield self.experience_narrative or ""
        for text in self.extra_text or ():
            yield text or ""

    def resolved_monthly_revenue(self) -> float:
        """Monthly revenue from the numeric answer, else from the bucket label."""
        number = coerce_number(self.monthly_revenue)
        if number is None:
            number = REVENUE_BUCKETS.get(normalize_bucket_label(self.revenue_bucket), 0.0)
        return max(number, 0.0)

    def normalized_stage(self) -> Optional[str]:
        stage = (self.business_stage or "").strip().lower()
        return stage if stage in BUSINESS_STAGES else None


@dataclass(frozen=True)
class SignalSet:
    uses_business_terms: bool = False
    has_systemic_approach: bool = False
    has_scaling_experience: bool = False
    knows_metrics: bool = False
    cac_known: bool = False
    ltv_known: bool = False
    churn_known: bool = False
    margin_known: bool = False
    churn_rate_normalized: Optional[float] = None
    gross_margin_normalized: Optional[float] = None

    @property
    def language_signals(self) -> Tuple[bool, bool, bool]:
        return (
            self.uses_business_terms,
            self.has_systemic_approach,
            self.has_scaling_experience,
        )

    def key_indicators(self) -> List[str]:
        labels = [
            (self.uses_business_terms, "Uses business terminology"),
            (self.has_systemic_approach, "Systematic thinking"),
            (self.has_scaling_experience, "Scaling experience"),
        ]
        return [label for flag, label in labels if flag]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uses_business_terms": self.uses_business_terms,
            "has_systemic_approach": self.has_systemic_approach,
            "has_scaling_experience": self.has_scaling_experience,
            "knows_metrics": self.knows_metrics,
            "cac_known": self.cac_known,
            "ltv_known": self.ltv_known,
            "churn_known": self.churn_known,
            "margin_known": self.margin_known,
            "churn_rate_normalized": self.churn_rate_normalized,
            "gross_margin_normalized": self.gross_margin_normalized,
        }


class SignalExtractor(ABC):
    """Strategy that turns onboarding answers into a :class:`SignalSet`."""

    @abstractmethod
    def extract(self, onboarding: OnboardingInput, previous: Optional[SignalSet] = None) -> SignalSet:
        """Return signals for *onboarding*, never clearing flags set in *previous*."""


@dataclass(frozen=True)
class KeywordSignalExtractor(SignalExtractor):
    """Case-insensitive substring matching against fixed keyword lists."""

    business_terms: Tuple[str, ...] = BUSINESS_TERMS
    systemic_words: Tuple[str, ...] = SYSTEMIC_WORDS
    scaling_words: Tuple[str, ...] = SCALING_WORDS
    metrics_knowledge_levels: FrozenSet[str] = field(default_factory=lambda: frozenset(METRICS_KNOWLEDGE_LEVELS))

    @staticmethod
    def _mentions(text: str, keywords: Iterable[str]) -> bool:
        return any(keyword in text for keyword in keywords)

    def extract(self, onboarding: OnboardingInput, previous: Optional[SignalSet] = None) -> SignalSet:
        previous = previous or SignalSet()
        uses_terms = previous.uses_business_terms
        systemic = previous.has_systemic_approach
        scaling = previous.has_scaling_experience

        for raw in onboarding.text_fields():
            text = str(raw).lower()
            if not text:
                continue
            uses_terms = uses_terms or self._mentions(text, self.business_terms)
            systemic = systemic or self._mentions(text, self.systemic_words)
            scaling = scaling or self._mentions(text, self.scaling_words)

        cac_known = is_known_metric(onboarding.cac)
        ltv_known = is_known_metric(onboarding.ltv)
        churn_known = is_known_metric(onboarding.churn_rate)
        margin_known = is_known_metric(onboarding.gross_margin)
        declared = (onboarding.metrics_knowledge or "").strip().lower() in self.metrics_knowledge_levels

        return SignalSet(
            uses_business_terms=uses_terms,
            has_systemic_approach=systemic,
            has_scaling_experience=scaling,
            knows_metrics=previous.knows_metrics
            or declared
            or cac_known
            or ltv_known
            or churn_known
            or margin_known,
            cac_known=cac_known,
            ltv_known=ltv_known,
            churn_known=churn_known,
            margin_known=margin_known,
            churn_rate_normalized=normalize_rate(onboarding.churn_rate),
            gross_margin_normalized=normalize_rate(onboarding.gross_margin),
        )


DEFAULT_EXTRACTOR = KeywordSignalExtractor()


def extract_signals(
    onboarding: OnboardingInput,
    previous: Optional[SignalSet] = None,
    *,
    extractor: Optional[SignalExtractor] = None,
) -> SignalSet:
    """Derive the signal set for *onboarding* using *extractor* (keywords by default)."""
    return (extractor or DEFAULT_EXTRACTOR).extract(onboarding, previous)
