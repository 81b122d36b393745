"""Fire-and-forget notification sinks used to report import events."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

LOGGER = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class NotificationSink(Protocol):
    def notify(
        self,
        message: str,
        severity: str = "info",
        duration_ms: int = 3000,
        detail: Optional[str] = None,
    ) -> None:  # pragma: no cover - runtime protocol
        """Publish a message to the operator."""


@dataclass(frozen=True, slots=True)
class Notification:
    message: str
    severity: str
    duration_ms: int
    detail: Optional[str] = None


class LoggingNotifier:
    """Writes notifications to a logger instead of a toast UI."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER

    def notify(
        self,
        message: str,
        severity: str = "info",
        duration_ms: int = 3000,
        detail: Optional[str] = None,
    ) -> None:
        level = _LEVELS.get(severity, logging.INFO)
        if detail:
            self._logger.log(level, "%s (%s)", message, detail)
        else:
            self._logger.log(level, "%s", message)


class RecordingNotifier:
    """Keeps every notification so callers can render or assert on them."""

    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def notify(
        self,
        message: str,
        severity: str = "info",
        duration_ms: int = 3000,
        detail: Optional[str] = None,
    ) -> None:
        self.notifications.append(Notification(message, severity, duration_ms, detail))

    def messages(self, severity: Optional[str] = None) -> List[str]:
        return [item.message for item in self.notifications if severity is None or item.severity == severity]


def safe_notify(sink: Optional[NotificationSink], message: str, severity: str = "info", duration_ms: int = 3000, detail: Optional[str] = None) -> None:
    """Deliver a notification without letting a broken sink affect the import."""

    if sink is None:
        return
    try:
        sink.notify(message, severity, duration_ms, detail)
    except Exception:  # pragma: no cover - observational only
        LOGGER.exception("Notification sink failed for message %r", message)


__all__ = [
    "LoggingNotifier",
    "Notification",
    "NotificationSink",
    "RecordingNotifier",
    "safe_notify",
]
