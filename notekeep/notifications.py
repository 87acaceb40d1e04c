"""User-facing notifications (toasts) raised by the notes workflow."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional

from .logging import get_logger

LOGGER = get_logger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    description: Optional[str] = None
    duration: float = 5.0
    action_label: Optional[str] = None
    note_id: Optional[str] = None

    def format(self) -> str:
        text = f"[{self.level.value}] {self.title}"
        if self.description:
            text += f" - {self.description}"
        if self.action_label:
            text += f" ({self.action_label} available)"
        return text


NotificationSink = Callable[[Notification], None]


class Notifier:
    """Fan notifications out to subscribed sinks and keep a short history."""

    def __init__(self, default_duration: float = 5.0, history: int = 50) -> None:
        self.default_duration = default_duration
        self._sinks: List[NotificationSink] = []
        self._history: Deque[Notification] = deque(maxlen=history)

    @property
    def history(self) -> List[Notification]:
        return list(self._history)

    def subscribe(self, sink: NotificationSink) -> Callable[[], None]:
        self._sinks.append(sink)

        def unsubscribe() -> None:
            if sink in self._sinks:
                self._sinks.remove(sink)

        return unsubscribe

    def notify(
        self,
        level: NotificationLevel,
        title: str,
        description: Optional[str] = None,
        *,
        duration: Optional[float] = None,
        action_label: Optional[str] = None,
        note_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            level=level,
            title=title,
            description=description,
            duration=self.default_duration if duration is None else duration,
            action_label=action_label,
            note_id=note_id,
        )
        self._history.append(notification)
        LOGGER.log(_LOG_LEVELS[level], "%s", notification.format())
        for sink in list(self._sinks):
            try:
                sink(notification)
            except Exception:  # pragma: no cover - sinks should not break the workflow
                LOGGER.exception("Notification sink raised an exception")
        return notification

    def success(self, title: str, description: Optional[str] = None, **kwargs) -> Notification:
        return self.notify(NotificationLevel.SUCCESS, title, description, **kwargs)

    def error(self, title: str, description: Optional[str] = None, **kwargs) -> Notification:
        return self.notify(NotificationLevel.ERROR, title, description, **kwargs)

    def info(self, title: str, description: Optional[str] = None, **kwargs) -> Notification:
        return self.notify(NotificationLevel.INFO, title, description, **kwargs)

    def warning(self, title: str, description: Optional[str] = None, **kwargs) -> Notification:
        return self.notify(NotificationLevel.WARNING, title, description, **kwargs)


__all__ = ["Notification", "NotificationLevel", "NotificationSink", "Notifier"]
