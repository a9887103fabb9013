"""
Notify — user-facing success / error messages.

    from shopsync import notify as N

    log = N.NotificationLog()
    notifier = N.FanoutNotifier(log, N.LoggingNotifier())
"""

from __future__ import annotations

from shopsync.notify._types import Level, Notification, Notifier
from shopsync.notify._sinks import NotificationLog, LoggingNotifier, FanoutNotifier

__all__ = (
    "Level",
    "Notification",
    "Notifier",
    "NotificationLog",
    "LoggingNotifier",
    "FanoutNotifier",
)
