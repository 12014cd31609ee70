# backend/courtbook/services/notification_service.py
"""
Post-commit notification dispatch.

Delivery itself (email, push, SMS) lives outside this service; it only
hands a summary to a ``NotificationDispatcher``. Dispatch happens after the
booking has committed, so a failure here is logged and never changes the
outcome the caller sees.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from ..events.booking_events import Event, event_summary

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def notify(self, user_id: str, summary: Dict[str, Any]) -> None:
        ...


class LoggingNotificationDispatcher:
    """Default dispatcher: records the notification in the application log."""

    def notify(self, user_id: str, summary: Dict[str, Any]) -> None:
        logger.info(
            "Notification dispatched",
            extra={"user_id": user_id, "event_type": summary.get("event_type"), "summary": summary},
        )


class NotificationService:
    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None):
        self.dispatcher = dispatcher or LoggingNotificationDispatcher()

    def publish(self, user_id: str, event: Event) -> bool:
        """Send a notification for ``event``; returns False when the dispatcher failed."""
        summary = event_summary(event)
        try:
            self.dispatcher.notify(user_id, summary)
        except Exception as exc:
            logger.warning(
                "Notification dispatch failed",
                extra={
                    "user_id": user_id,
                    "event_type": summary["event_type"],
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return False
        return True
