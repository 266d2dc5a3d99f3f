"""
Notify — outcome sink for user-facing messages.

The core only pushes notifications; it never reads anything back.

    from cartsync import notify as N

    notifier = N.RecordingNotifier()
    notifier.notify(N.success("Added to cart", "Apple has been added to your cart"))
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog

log = structlog.get_logger(__name__)


class NotificationKind(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    kind: NotificationKind
    title: str
    detail: str


def success(title: str, detail: str) -> Notification:
    return Notification(NotificationKind.SUCCESS, title, detail)


def error(title: str, detail: str) -> Notification:
    return Notification(NotificationKind.ERROR, title, detail)


class Notifier(Protocol):
    """Sink for operation outcomes. Return value is ignored."""

    def notify(self, notification: Notification) -> None: ...


class LogNotifier:
    """Writes notifications to the structured log."""

    def notify(self, notification: Notification) -> None:
        match notification.kind:
            case NotificationKind.SUCCESS:
                log.info(notification.title, detail=notification.detail)
            case NotificationKind.ERROR:
                log.warning(notification.title, detail=notification.detail)


class RecordingNotifier:
    """Keeps every notification in memory. For tests and previews."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.sent.append(notification)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.sent]

    @property
    def errors(self) -> list[Notification]:
        return [n for n in self.sent if n.kind is NotificationKind.ERROR]

    def clear(self) -> None:
        self.sent.clear()


__all__ = (
    "NotificationKind",
    "Notification",
    "success",
    "error",
    "Notifier",
    "LogNotifier",
    "RecordingNotifier",
)
