"""Standalone collaborator adapters.

Used when no mail server or socket server is wired in: messages and events
are written to the log and kept in memory for inspection.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from domain.gateways import ActivityLogger, Clock, EventEmitter, NotificationService

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """Records confirmation emails instead of sending them"""

    def __init__(self):
        self.sent: List[Tuple[str, Dict[str, Any]]] = []

    async def send_booking_confirmation(self, customer_email: str, summary: Dict[str, Any]) -> bool:
        self.sent.append((customer_email, summary))
        logger.info(
            "Booking confirmation for %s sent to %s",
            summary.get("booking_number"), customer_email
        )
        return True


class InMemoryEventEmitter(EventEmitter):
    def __init__(self):
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []

    def emit(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        self.events.append((channel, event, payload))
        logger.debug("Emitted %s on %s: %s", event, channel, payload)

    def names(self) -> List[str]:
        return [event for _, event, _ in self.events]


class LoggingActivityLogger(ActivityLogger):
    def __init__(self):
        self.entries: List[Tuple[str, Dict[str, Any], Optional[str]]] = []

    async def log(self, action: str, details: Dict[str, Any], user_id: Optional[str] = None) -> None:
        self.entries.append((action, details, user_id))
        logger.info("Activity %s by %s: %s", action, user_id or "anonymous", details)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.utcnow()


class FixedClock(Clock):
    """Clock pinned to a given instant, for tests and replays"""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)
