"""Adapt raw form answers into :class:`OnboardingInput`.

Both the onboarding wizard and the constraint assessment post flat answer
mappings. They are folded into one input type here so a single scorer
serves both flows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

from .signals import OnboardingInput, coerce_number

TEXT_ANSWER_KEYS: Tuple[str, ...] = (
    "current_offers",
    "biggest_pain_point",
    "desired_outcome",
    "primary_goal",
    "timeframe",
)


def _first(answers: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = answers.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return " ".join(str(item) for item in value)
    return str(value)


@dataclass(frozen=True)
class AdaptedAnswers:
    onboarding: OnboardingInput
    explicit_constraint: Optional[str]


def build_onboarding_input(answers: Mapping[str, Any]) -> AdaptedAnswers:
    """Map onboarding or assessment answers onto the shared input type.

    ``monthly_revenue`` may be a number (onboarding wizard) or a bucket label
    such as ``"10k-50k"`` (assessment); labels are kept as ``revenue_bucket``.
    """
    answers = answers or {}
    revenue = answers.get("monthly_revenue")
    revenue_number = coerce_number(revenue)
    revenue_bucket = answers.get("revenue_bucket")
    if revenue_number is None and isinstance(revenue, str) and not revenue_bucket:
        revenue_bucket = revenue

    extra_text = tuple(
        text
        for text in (_text(answers.get(key)) for key in TEXT_ANSWER_KEYS)
        if text
    )

    onboarding = OnboardingInput(
        business_description=_text(_first(answers, ("business_description", "description"))),
        biggest_challenge=_text(_first(answers, ("biggest_challenge", "main_challenge"))),
        experience_narrative=_text(_first(answers, ("experience_narrative", "business_experience"))),
        extra_text=extra_text,
        business_stage=_text(answers.get("business_stage")),
        industry=_text(answers.get("industry")),
        revenue_bucket=_text(revenue_bucket),
        team_size=_text(answers.get("team_size")),
        metrics_knowledge=_text(answers.get("metrics_knowledge")),
        monthly_revenue=revenue_number,
        cac=coerce_number(answers.get("cac")),
        ltv=coerce_number(answers.get("ltv")),
        churn_rate=coerce_number(answers.get("churn_rate")),
        gross_margin=coerce_number(answers.get("gross_margin")),
    )
    explicit = _first(answers, ("primary_challenge", "primary_constraint", "constraint"))
    return AdaptedAnswers(onboarding=onboarding, explicit_constraint=_text(explicit))
