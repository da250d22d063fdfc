from .models import (
    BusinessTier,
    Challenge,
    ChallengeCategory,
    ChallengeProof,
    Difficulty,
    UserChallengeContext,
)
from .selector import ChallengeSelector, beat_yesterday_challenge, select_challenge
from .templates import CHALLENGE_TEMPLATES, ChallengeTemplate, resolve_template
from .tracker import ChallengeTracker, InMemoryChallengeTracker, ProgressSnapshot

__all__ = [
    'BusinessTier',
    'Challenge',
    'ChallengeCategory',
    'ChallengeProof',
    'Difficulty',
    'UserChallengeContext',
    'ChallengeSelector',
    'beat_yesterday_challenge',
    'select_challenge',
    'CHALLENGE_TEMPLATES',
    'ChallengeTemplate',
    'resolve_template',
    'ChallengeTracker',
    'InMemoryChallengeTracker',
    'ProgressSnapshot',
]
