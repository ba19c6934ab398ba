"""
Notification dispatcher that logs messages and keeps them in an outbox.
"""

from fulfillz.collaborators.base import Notification, NotificationDispatcher
from fulfillz.core.exceptions import NotificationError
from fulfillz.core.logger import get_logger

logger = get_logger(__name__)


class LoggingNotificationDispatcher(NotificationDispatcher):
    """
    Writes each notification to the log and appends it to `outbox`.

    A recipient that is not an email address raises NotificationError; the
    send_* methods log it and move on.
    """

    def __init__(self) -> None:
        self.outbox: list[Notification] = []

    async def deliver(self, notification: Notification) -> None:
        recipient = notification.recipient or ""
        if "@" not in recipient.strip(" @"):
            msg = f"Cannot deliver {notification.kind}: invalid recipient {recipient!r}"
            raise NotificationError(msg)
        logger.info(
            f"Sending {notification.kind} to {notification.recipient}: {notification.subject}"
        )
        self.outbox.append(notification)

    def sent(self, kind: str | None = None) -> list[Notification]:
        """Delivered notifications, optionally filtered by kind."""
        if kind is None:
            return list(self.outbox)
        return [n for n in self.outbox if n.kind == kind]
