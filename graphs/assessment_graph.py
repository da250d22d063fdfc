"""LangGraph workflow that classifies a business from onboarding answers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TypedDict

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from classifiers import (
    BusinessLevel,
    ClassificationResult,
    ConstraintClassification,
    KeywordSignalExtractor,
    OnboardingInput,
    RouteId,
    SignalExtractor,
    SignalSet,
    SophisticationScore,
    SophisticationScorer,
    build_onboarding_input,
    classify_constraint,
    classify_level,
    recommend_route,
)
from core.settings import CoachingSettings, get_settings


@dataclass
class AssessmentDependencies:
    """Container for injectable dependencies used by the assessment graph."""

    settings: CoachingSettings = field(default_factory=get_settings)
    extractor: SignalExtractor = field(default_factory=KeywordSignalExtractor)


class AssessmentState(TypedDict, total=False):
    """State payload that flows through the assessment graph."""

    answers: Dict[str, Any]
    input: OnboardingInput
    explicit_constraint: Optional[str]
    previous_signals: Optional[SignalSet]
    signals: SignalSet
    score: SophisticationScore
    level: BusinessLevel
    constraint: ConstraintClassification
    route: RouteId
    result: ClassificationResult
    decision: Dict[str, Any]


def build_assessment_graph(
    *,
    dependencies: Optional[AssessmentDependencies] = None,
) -> StateGraph:
    """Construct the assessment LangGraph workflow."""

    deps = dependencies or AssessmentDependencies()
    settings = deps.settings
    scorer = SophisticationScorer(settings.scoring)
    graph = StateGraph(AssessmentState)

    def _onboarding(state: AssessmentState) -> OnboardingInput:
        return state.get("input") or OnboardingInput()

    def prepare_node(state: AssessmentState) -> AssessmentState:
        if state.get("input") is not None:
            return {"explicit_constraint": state.get("explicit_constraint")}
        adapted = build_onboarding_input(state.get("answers") or {})
        explicit = state.get("explicit_constraint") or adapted.explicit_constraint
        return {"input": adapted.onboarding, "explicit_constraint": explicit}

    def signals_node(state: AssessmentState) -> AssessmentState:
        signals = deps.extractor.extract(_onboarding(state), state.get("previous_signals"))
        return {"signals": signals}

    def score_node(state: AssessmentState) -> AssessmentState:
        return {"score": scorer.score(_onboarding(state), state["signals"])}

    def level_node(state: AssessmentState) -> AssessmentState:
        return {"level": classify_level(state["score"].total, settings=settings.scoring)}

    def constraint_node(state: AssessmentState) -> AssessmentState:
        constraint = classify_constraint(
            state.get("explicit_constraint"),
            state["signals"],
            settings=settings.constraints,
        )
        return {"constraint": constraint}

    def route_node(state: AssessmentState) -> AssessmentState:
        route = recommend_route(
            state["level"],
            state["constraint"],
            state["score"].total,
            settings=settings.routing,
        )
        result = ClassificationResult(
            signals=state["signals"],
            score=state["score"],
            level=state["level"],
            constraint=state["constraint"],
            route=route,
            business_stage=_onboarding(state).normalized_stage(),
        )
        return {"route": route, "result": result, "decision": result.to_dict()}

    graph.add_node("prepare_input", prepare_node)
    graph.add_node("extract_signals", signals_node)
    graph.add_node("score_sophistication", score_node)
    graph.add_node("classify_level", level_node)
    graph.add_node("classify_constraint", constraint_node)
    graph.add_node("recommend_route", route_node)

    graph.add_edge(START, "prepare_input")
    graph.add_edge("prepare_input", "extract_signals")
    graph.add_edge("extract_signals", "score_sophistication")
    graph.add_edge("score_sophistication", "classify_level")
    graph.add_edge("classify_level", "classify_constraint")
    graph.add_edge("classify_constraint", "recommend_route")
    graph.add_edge("recommend_route", END)

    return graph


def compile_assessment_graph(
    *,
    dependencies: Optional[AssessmentDependencies] = None,
) -> CompiledStateGraph:
    """Return a compiled version of the assessment workflow."""

    graph = build_assessment_graph(dependencies=dependencies)
    return graph.compile()
