"""Integration tests covering the assessment LangGraph workflow."""

from classifiers import BusinessLevel, ConstraintType, OnboardingInput, RouteId, SignalSet
from core import CoachingSettings, settings_from_mapping
from graphs import AssessmentDependencies, compile_assessment_graph


def _graph(settings: CoachingSettings = None):
    return compile_assessment_graph(
        dependencies=AssessmentDependencies(settings=settings or CoachingSettings())
    )


def test_graph_classifies_empty_answers_conservatively() -> None:
    result = _graph().invoke({"answers": {}})

    assert result["score"].total == 0
    assert result["level"] is BusinessLevel.BEGINNER
    assert result["constraint"].value is ConstraintType.UNKNOWN
    assert result["route"] is RouteId.GUIDED_CHAT
    assert result["decision"]["route"] == "/chat"


def test_graph_accepts_a_prepared_input_and_explicit_constraint() -> None:
    onboarding = OnboardingInput(
        business_description="Our funnel and retention metrics drive every process",
        monthly_revenue=150_000,
        cac=90,
        ltv=900,
    )

    result = _graph().invoke({"input": onboarding, "explicit_constraint": "profit"})

    # 30 revenue + 15 metrics + 20 language
    assert result["score"].total == 65
    assert result["level"] is BusinessLevel.SCALE
    assert result["constraint"].value is ConstraintType.PROFIT
    assert result["route"] is RouteId.FINANCIAL_CALCULATOR
    assert result["decision"]["constraint"]["confidence"] == 85


def test_graph_reads_constraint_from_assessment_answers() -> None:
    answers = {
        "monthly_revenue": "1m+",
        "primary_challenge": "leads",
        "desired_outcome": "Scale the team with a KPI framework",
        "cac": 100,
        "ltv": 1_000,
        "churn_rate": 3,
        "gross_margin": 0.55,
    }

    result = _graph().invoke({"answers": answers})

    assert result["score"].total == 100
    assert result["level"] is BusinessLevel.ENTERPRISE
    assert result["constraint"].value is ConstraintType.LEADS
    assert result["route"] is RouteId.WORKSPACE_SELECTION


def test_graph_merges_previous_signals() -> None:
    previous = SignalSet(uses_business_terms=True, has_systemic_approach=True)

    result = _graph().invoke({"input": OnboardingInput(), "previous_signals": previous})

    assert result["signals"].uses_business_terms is True
    assert result["score"].language == 20


def test_graph_honours_configured_thresholds() -> None:
    settings = settings_from_mapping({"scoring": {"level_thresholds": {"growth": 10}}})
    onboarding = OnboardingInput(monthly_revenue=5_000)

    result = _graph(settings).invoke({"input": onboarding})

    assert result["score"].total == 10
    assert result["level"] is BusinessLevel.GROWTH
