"""
Notification types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class Level(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    level: Level
    title: str
    description: str | None = None


class Notifier(Protocol):
    """
    User-facing toast sink.

    Example:
        class ToastNotifier:
            def success(self, title: str, description: str | None = None) -> None:
                ui.toast(title, description, kind="success")

            def error(self, title: str, description: str | None = None) -> None:
                ui.toast(title, description, kind="error")
    """

    def success(self, title: str, description: str | None = None) -> None:
        ...

    def error(self, title: str, description: str | None = None) -> None:
        ...


__all__ = ("Level", "Notification", "Notifier")
