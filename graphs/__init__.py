"""Graph orchestration helpers for the coaching intake engine."""

from .assessment_graph import (
    AssessmentDependencies,
    AssessmentState,
    build_assessment_graph,
    compile_assessment_graph,
)

__all__ = [
    "AssessmentDependencies",
    "AssessmentState",
    "build_assessment_graph",
    "compile_assessment_graph",
]
