"""Shared infrastructure exports."""

from .context import RequestContext, RequestContextManager, current_request_context
from .errors import (
    ChallengeNotFoundError,
    CoachingError,
    ConfigurationError,
    TemplateError,
    ValidationError,
    coerce_coaching_error,
)
from .settings import (
    ChallengeSettings,
    CoachingSettings,
    ConfigManager,
    ConstraintSettings,
    RoutingSettings,
    ScoringSettings,
    get_settings,
    load_settings,
    settings_from_mapping,
)
from .telemetry import LoggingTelemetryClient, NullTelemetryClient, TelemetryClient, TelemetryEvent, TelemetryMixin

__all__ = [
    "RequestContext",
    "RequestContextManager",
    "current_request_context",
    "ChallengeNotFoundError",
    "CoachingError",
    "ConfigurationError",
    "TemplateError",
    "ValidationError",
    "coerce_coaching_error",
    "ChallengeSettings",
    "CoachingSettings",
    "ConfigManager",
    "ConstraintSettings",
    "RoutingSettings",
    "ScoringSettings",
    "get_settings",
    "load_settings",
    "settings_from_mapping",
    "LoggingTelemetryClient",
    "NullTelemetryClient",
    "TelemetryClient",
    "TelemetryEvent",
    "TelemetryMixin",
]
