"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional, List
from uuid import UUID
from datetime import date

from domain.entities import AddOn, PriceRule, Reservation, Unit
from domain.enums import BookingStatus


class BookingRepository(ABC):
    """Storage for units, pricing data and reservations.

    Implementations must serialize ``create_reservation`` and
    ``update_reservation`` per unit: a write whose date range overlaps
    another non-cancelled reservation of the same unit has to be rejected
    with ``UnitAlreadyBooked``. The service's own availability check is a
    read followed by a write and cannot close that race by itself.
    """

    # ==================== CATALOG ====================
    @abstractmethod
    async def find_unit(self, unit_id: str) -> Optional[Unit]:
        """Find unit by ID"""
        pass

    @abstractmethod
    async def list_active_price_rules(self, unit_id: str) -> List[PriceRule]:
        """Active price rules of a unit"""
        pass

    @abstractmethod
    async def find_add_ons(self, add_on_ids: Iterable[str]) -> List[AddOn]:
        """Add-ons matching the given IDs (unknown IDs are left out)"""
        pass

    # ==================== RESERVATIONS ====================
    @abstractmethod
    async def create_reservation(self, reservation: Reservation) -> Reservation:
        """Persist a new reservation"""
        pass

    @abstractmethod
    async def update_reservation(self, reservation: Reservation) -> Reservation:
        """Persist changes to an existing reservation"""
        pass

    @abstractmethod
    async def find_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_reservation_by_number(self, booking_number: str) -> Optional[Reservation]:
        """Find reservation by booking number"""
        pass

    @abstractmethod
    async def list_reservations_overlapping(
        self,
        unit_id: str,
        start: date,
        end: date,
        exclude_statuses: Iterable[BookingStatus] = ()
    ) -> List[Reservation]:
        """Reservations of a unit whose stay intersects [start, end)"""
        pass

    @abstractmethod
    async def list_reservations_by_customer(self, customer_id: UUID) -> List[Reservation]:
        """Reservations made by a customer account"""
        pass

    @abstractmethod
    async def list_reservations(
        self,
        unit_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Reservation]:
        """Reservations matching all given filters, ordered by check-in"""
        pass

    @abstractmethod
    async def next_booking_sequence(self, prefix: str, day: date) -> int:
        """Next unique sequence number for booking numbers issued on a day"""
        pass
