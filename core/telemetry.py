"""Telemetry for classification and challenge events.

Every event is stamped with the request bound through
:class:`~core.context.RequestContextManager`, so a classification, the
challenge it led to and any template fallback can be joined by
``request_id`` in the logs.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import structlog

from .context import RequestContext, current_request_context
from .errors import CoachingError


@dataclass
class TelemetryEvent:
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    context: Optional[RequestContext] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def payload(self) -> Dict[str, Any]:
        """Attributes merged with the request identifiers."""
        data = dict(self.attributes)
        data.setdefault("timestamp", self.timestamp.isoformat())
        if self.context is not None:
            data.setdefault("request_id", self.context.request_id)
            if self.context.user_id:
                data.setdefault("user_id", self.context.user_id)
        return data


class TelemetryClient(ABC):
    """Transport for events, counters and handled errors."""

    @abstractmethod
    def emit_event(self, event: TelemetryEvent) -> None:
        """Send an application event."""

    @abstractmethod
    def emit_metric(self, name: str, value: float, *, attributes: Optional[Mapping[str, Any]] = None) -> None:
        """Send a numeric observation."""

    @abstractmethod
    def capture_exception(self, error: BaseException, *, attributes: Optional[Mapping[str, Any]] = None) -> None:
        """Record an error the caller recovered from."""


class LoggingTelemetryClient(TelemetryClient):
    """Writes telemetry through :mod:`structlog`."""

    def __init__(self, logger: Optional[structlog.BoundLogger] = None) -> None:
        self._logger = logger or structlog.get_logger("telemetry")

    def emit_event(self, event: TelemetryEvent) -> None:
        self._logger.info(event.name, **event.payload())

    def emit_metric(self, name: str, value: float, *, attributes: Optional[Mapping[str, Any]] = None) -> None:
        self._logger.info("metric", metric=name, value=value, **dict(attributes or {}))

    def capture_exception(self, error: BaseException, *, attributes: Optional[Mapping[str, Any]] = None) -> None:
        payload = dict(attributes or {})
        if isinstance(error, CoachingError):
            # handled coaching errors are recoverable; only server-side codes are errors
            log = self._logger.error if error.http_status >= 500 else self._logger.warning
            log("coaching_error", **error.to_dict(), **payload)
            return
        self._logger.error("exception", error=repr(error), **payload)


class NullTelemetryClient(TelemetryClient):
    """Drops everything."""

    def emit_event(self, event: TelemetryEvent) -> None:
        return

    def emit_metric(self, name: str, value: float, *, attributes: Optional[Mapping[str, Any]] = None) -> None:
        return

    def capture_exception(self, error: BaseException, *, attributes: Optional[Mapping[str, Any]] = None) -> None:
        return


class TelemetryMixin:
    """Gives classifiers, selectors and trackers a telemetry client."""

    def __init__(self, telemetry_client: Optional[TelemetryClient] = None) -> None:
        self._telemetry_client = telemetry_client or LoggingTelemetryClient()

    @property
    def telemetry(self) -> TelemetryClient:
        return self._telemetry_client

    def emit_event(self, name: str, **attributes: Any) -> None:
        context = attributes.pop("context", None) or current_request_context()
        self.telemetry.emit_event(TelemetryEvent(name=name, attributes=attributes, context=context))

    def emit_metric(self, name: str, value: float, **attributes: Any) -> None:
        context = current_request_context()
        if context is not None:
            attributes.setdefault("request_id", context.request_id)
        self.telemetry.emit_metric(name, value, attributes=attributes or None)

    def capture_exception(self, error: BaseException, **attributes: Any) -> None:
        context = current_request_context()
        if context is not None:
            attributes.setdefault("request_id", context.request_id)
        self.telemetry.capture_exception(error, attributes=attributes or None)
