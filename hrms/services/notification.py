from dataclasses import dataclass
from typing import Optional

from hrms.services.base import BaseService


@dataclass
class NotificationResult:
    """Outcome of a notification send. Callers may inspect or ignore it."""
    sent: bool
    recipient: Optional[str] = None
    error: Optional[str] = None


class NotificationService(BaseService):
    def notify_user(
        self,
        recipient_email: Optional[str],
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ) -> NotificationResult:
        """
        Standardized in-app notification trigger.
        Never raises: a failed notification must not affect the caller's transaction.
        """
        if not recipient_email:
            return NotificationResult(sent=False, error="No recipient")

        error = self._best_effort("Notification", lambda: self.stores.logs.add_notification(
            recipient_email=recipient_email,
            title=title,
            message=message,
            type=type,
            link=link,
        ))
        if error:
            return NotificationResult(sent=False, recipient=recipient_email, error=error)
        return NotificationResult(sent=True, recipient=recipient_email)
