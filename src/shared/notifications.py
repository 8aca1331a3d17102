"""Transient user notifications (toasts).

Components post short messages here instead of talking to a UI toolkit.
A front end subscribes and renders them; tests inspect ``items``.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from itertools import count

import structlog

logger = structlog.get_logger(__name__)


class NotificationLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    level: NotificationLevel
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


Listener = Callable[[Notification], None]


class NotificationCenter:
    """Holds the notifications currently on screen."""

    def __init__(self, max_items: int = 20) -> None:
        self.max_items = max_items
        self.items: list[Notification] = []
        self._ids = count(1)
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` for every new notification. Returns an idempotent unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def push(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> Notification:
        notification = Notification(id=next(self._ids), message=message, level=level)
        self.items.append(notification)
        del self.items[: -self.max_items]

        logger.debug("Notification posted", level=level.value, message=message)
        for listener in list(self._listeners):
            listener(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.push(message, NotificationLevel.SUCCESS)

    def info(self, message: str) -> Notification:
        return self.push(message, NotificationLevel.INFO)

    def warning(self, message: str) -> Notification:
        return self.push(message, NotificationLevel.WARNING)

    def error(self, message: str) -> Notification:
        return self.push(message, NotificationLevel.ERROR)

    def dismiss(self, notification_id: int) -> None:
        self.items = [n for n in self.items if n.id != notification_id]

    def clear(self) -> None:
        self.items = []

    def messages(self, level: NotificationLevel | None = None) -> list[str]:
        return [n.message for n in self.items if level is None or n.level == level]
