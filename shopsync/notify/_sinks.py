"""
Notifier implementations.
"""

from __future__ import annotations

import logging

from shopsync.notify._types import Level, Notification, Notifier

logger = logging.getLogger("shopsync.notify")


class NotificationLog:
    """In-memory notifier; the UI layer drains it after each render."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    @property
    def items(self) -> tuple[Notification, ...]:
        return tuple(self._items)

    def success(self, title: str, description: str | None = None) -> None:
        self._items.append(Notification(Level.SUCCESS, title, description))

    def error(self, title: str, description: str | None = None) -> None:
        self._items.append(Notification(Level.ERROR, title, description))

    def drain(self) -> list[Notification]:
        items, self._items = self._items, []
        return items


class LoggingNotifier:
    def success(self, title: str, description: str | None = None) -> None:
        logger.info("%s%s", title, f": {description}" if description else "")

    def error(self, title: str, description: str | None = None) -> None:
        logger.warning("%s%s", title, f": {description}" if description else "")


class FanoutNotifier:
    """Forward every notification to all sinks."""

    def __init__(self, *sinks: Notifier) -> None:
        self._sinks = sinks

    def success(self, title: str, description: str | None = None) -> None:
        for sink in self._sinks:
            sink.success(title, description)

    def error(self, title: str, description: str | None = None) -> None:
        for sink in self._sinks:
            sink.error(title, description)


__all__ = ("NotificationLog", "LoggingNotifier", "FanoutNotifier")
