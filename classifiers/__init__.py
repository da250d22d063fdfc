from .assessment import AdaptedAnswers, build_onboarding_input
from .business_classifier import BusinessClassifier, ClassificationResult
from .business_level import BusinessLevel, business_stage_for_level, classify_level, coerce_level
from .constraint_classifier import (
    ConstraintClassification,
    ConstraintType,
    classify_constraint,
    coerce_constraint,
)
from .route_resolver import RouteId, recommend_route, workspace_for_constraint
from .signals import (
    KeywordSignalExtractor,
    OnboardingInput,
    SignalExtractor,
    SignalSet,
    extract_signals,
)
from .sophistication import SophisticationScore, SophisticationScorer, score

__all__ = [
    'AdaptedAnswers',
    'build_onboarding_input',
    'BusinessClassifier',
    'ClassificationResult',
    'BusinessLevel',
    'business_stage_for_level',
    'classify_level',
    'coerce_level',
    'ConstraintClassification',
    'ConstraintType',
    'classify_constraint',
    'coerce_constraint',
    'RouteId',
    'recommend_route',
    'workspace_for_constraint',
    'KeywordSignalExtractor',
    'OnboardingInput',
    'SignalExtractor',
    'SignalSet',
    'extract_signals',
    'SophisticationScore',
    'SophisticationScorer',
    'score',
]
