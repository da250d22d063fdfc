"""Shared error taxonomy for the coaching engine and its service layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Type


@dataclass
class CoachingError(Exception):
    """Base class for structured coaching-engine exceptions."""

    message: str
    code: str = "coaching_error"
    http_status: int = 500
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "http_status": self.http_status,
            "details": self.details,
        }


class ConfigurationError(CoachingError):
    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(
            message=message,
            code="configuration_error",
            http_status=500,
            details=details,
        )


class ValidationError(CoachingError):
    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(
            message=message,
            code="validation_error",
            http_status=400,
            details=details,
        )


class ChallengeNotFoundError(CoachingError):
    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(
            message=message,
            code="challenge_not_found",
            http_status=404,
            details=details,
        )


class TemplateError(CoachingError):
    """Raised when a challenge template cannot be resolved.

    The challenge selector always masks this with its default challenge; it
    only escapes when template helpers are called directly.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(
            message=message,
            code="template_error",
            http_status=500,
            details=details,
        )


ERROR_CODE_MAP: Dict[str, Type[CoachingError]] = {
    "coaching_error": CoachingError,
    "configuration_error": ConfigurationError,
    "validation_error": ValidationError,
    "challenge_not_found": ChallengeNotFoundError,
    "template_error": TemplateError,
}


def coerce_coaching_error(error: Exception) -> CoachingError:
    """Return *error* as a :class:`CoachingError`."""

    if isinstance(error, CoachingError):
        return error
    return CoachingError(message=str(error))
