"""Domain Collaborator Interfaces

Side-effect collaborators injected into the booking service. Failures in
these are logged by the caller and never fail a booking operation.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, Optional


class NotificationService(ABC):
    """Outbound guest messages"""

    @abstractmethod
    async def send_booking_confirmation(self, customer_email: str, summary: Dict[str, Any]) -> bool:
        """Send booking confirmation email"""
        pass


class EventEmitter(ABC):
    """Real-time event broadcast"""

    @abstractmethod
    def emit(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        """Broadcast an event on a channel"""
        pass


class ActivityLogger(ABC):
    """Audit trail of staff and customer actions"""

    @abstractmethod
    async def log(self, action: str, details: Dict[str, Any], user_id: Optional[str] = None) -> None:
        """Record an action"""
        pass


class Clock(ABC):
    """Source of the current time"""

    @abstractmethod
    def now(self) -> datetime:
        pass

    def today(self) -> date:
        return self.now().date()
