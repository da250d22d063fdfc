"""Recommend the next coaching workspace after assessment."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from core.settings import RoutingSettings, get_settings

from .constraint_classifier import ConstraintType, coerce_constraint
from .signals import coerce_number
from .sophistication import clamp


class RouteId(str, Enum):
    WORKSPACE_SELECTION = "/agents"
    CONSTRAINT_ANALYZER = "/agents/constraint-analyzer"
    OFFER_ANALYZER = "/agents/offer-analyzer"
    IMPLEMENTATION_PLANNER = "/agents/implementation-planner"
    FINANCIAL_CALCULATOR = "/agents/financial-calculator"
    GUIDED_CHAT = "/chat"


CONSTRAINT_WORKSPACES: Dict[ConstraintType, RouteId] = {
    ConstraintType.LEADS: RouteId.CONSTRAINT_ANALYZER,
    ConstraintType.UNKNOWN: RouteId.CONSTRAINT_ANALYZER,
    ConstraintType.SALES: RouteId.OFFER_ANALYZER,
    ConstraintType.DELIVERY: RouteId.IMPLEMENTATION_PLANNER,
    ConstraintType.PROFIT: RouteId.FINANCIAL_CALCULATOR,
}


def workspace_for_constraint(constraint: Any) -> RouteId:
    return CONSTRAINT_WORKSPACES[coerce_constraint(constraint)]


def recommend_route(
    level: Any,
    constraint: Any,
    score: Any,
    *,
    settings: Optional[RoutingSettings] = None,
) -> RouteId:
    """Resolve the next route; rules are checked in order and the first match wins.

    ``level`` is part of the decision record but no rule depends on it:
    the score already encodes the level bands.
    """
    settings = settings or get_settings().routing
    constraint_type = coerce_constraint(constraint)
    number = coerce_number(score)
    value = clamp(number) if number is not None else 0

    if value >= settings.highly_sophisticated_score:
        return RouteId.WORKSPACE_SELECTION
    if constraint_type.is_concrete and value >= settings.targeted_workspace_score:
        return CONSTRAINT_WORKSPACES[constraint_type]
    return RouteId.GUIDED_CHAT
