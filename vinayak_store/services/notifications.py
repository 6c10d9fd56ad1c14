"""
Shopper-facing notifications

The storefront shows a short toast after every cart mutation. The cart store
emits them through a Notifier so the UI layer decides how to render them.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, List, Protocol

from vinayak_store.core.utils import utcnow

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=utcnow)


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None:
        ...


MAX_PENDING_NOTIFICATIONS = 50


class LoggingNotifier:
    """Default when no UI is attached: notifications only go to the log."""

    def notify(self, notification: Notification) -> None:
        logger.debug("notify level=%s message=%s", notification.level.value, notification.message)


class CollectingNotifier(LoggingNotifier):
    """
    Keeps notifications in memory for the UI to drain, and logs them.

    Only the newest max_pending are kept if the UI falls behind.
    """

    def __init__(self, max_pending: int = MAX_PENDING_NOTIFICATIONS):
        self._pending: Deque[Notification] = deque(maxlen=max_pending)

    def notify(self, notification: Notification) -> None:
        super().notify(notification)
        self._pending.append(notification)

    def drain(self) -> List[Notification]:
        pending = list(self._pending)
        self._pending.clear()
        return pending

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)


def success(message: str) -> Notification:
    return Notification(NotificationLevel.SUCCESS, message)


def error(message: str) -> Notification:
    return Notification(NotificationLevel.ERROR, message)
