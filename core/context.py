"""Request context shared between the service layer and telemetry."""
from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


_CURRENT_CONTEXT: ContextVar[Optional["RequestContext"]] = ContextVar(
    "coaching_current_context",
    default=None,
)


@dataclass
class RequestContext:
    """Metadata for one classification or challenge request."""

    request_id: str
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def with_user(self, user_id: Optional[str]) -> "RequestContext":
        """Return a copy of this context scoped to *user_id*."""
        return RequestContext(
            request_id=self.request_id,
            user_id=user_id,
            session_id=self.session_id,
            metadata=dict(self.metadata),
            created_at=self.created_at,
        )


class RequestContextManager:
    """Bind a :class:`RequestContext` to the current task."""

    def __init__(self, context: RequestContext):
        self._context = context
        self._token = None

    def __enter__(self) -> RequestContext:
        self._token = _CURRENT_CONTEXT.set(self._context)
        return self._context

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._token is not None:
            _CURRENT_CONTEXT.reset(self._token)
            self._token = None

    async def __aenter__(self) -> RequestContext:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.__exit__(exc_type, exc, tb)


def current_request_context() -> Optional[RequestContext]:
    """Return the context bound to the current task, if any."""

    return _CURRENT_CONTEXT.get()
