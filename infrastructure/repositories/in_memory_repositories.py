"""In-Memory Repository Implementations"""
import asyncio
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID
from datetime import date

from domain.repositories import BookingRepository
from domain.entities import AddOn, PriceRule, Reservation, Unit
from domain.enums import BookingStatus
from domain.exceptions import NotFound, UnitAlreadyBooked
from infrastructure.repositories.records import (
    add_on_from_record, price_rule_from_record, unit_from_record
)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository.

    Reservation writes run under one lock and re-check overlaps before
    storing, which gives the same guarantee a unique exclusion constraint
    would in a database.
    """

    def __init__(self):
        self._units: Dict[str, Unit] = {}
        self._rules: Dict[str, PriceRule] = {}
        self._add_ons: Dict[str, AddOn] = {}
        self._reservations: Dict[UUID, Reservation] = {}
        self._sequences: Dict[Tuple[str, date], int] = defaultdict(int)
        self._write_lock = asyncio.Lock()

    # ==================== CATALOG ADMIN ====================
    def add_unit(self, unit: Unit) -> Unit:
        self._units[unit.unit_id] = unit
        return unit

    def add_price_rule(self, rule: PriceRule) -> PriceRule:
        self._rules[rule.rule_id] = rule
        return rule

    def add_add_on(self, add_on: AddOn) -> AddOn:
        self._add_ons[add_on.add_on_id] = add_on
        return add_on

    def load_records(
        self,
        units: Iterable[Dict[str, Any]] = (),
        price_rules: Iterable[Dict[str, Any]] = (),
        add_ons: Iterable[Dict[str, Any]] = ()
    ) -> None:
        """Seed the catalog from raw rows"""
        for record in units:
            self.add_unit(unit_from_record(record))
        for record in price_rules:
            self.add_price_rule(price_rule_from_record(record))
        for record in add_ons:
            self.add_add_on(add_on_from_record(record))

    # ==================== CATALOG ====================
    async def find_unit(self, unit_id: str) -> Optional[Unit]:
        return self._units.get(unit_id)

    async def list_active_price_rules(self, unit_id: str) -> List[PriceRule]:
        return [r for r in self._rules.values() if r.unit_id == unit_id and r.is_active]

    async def find_add_ons(self, add_on_ids: Iterable[str]) -> List[AddOn]:
        return [self._add_ons[i] for i in dict.fromkeys(add_on_ids) if i in self._add_ons]

    # ==================== RESERVATIONS ====================
    async def create_reservation(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        async with self._write_lock:
            self._ensure_no_overlap(reservation)
            self._reservations[reservation.reservation_id] = reservation.model_copy(deep=True)
        return reservation

    async def update_reservation(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        async with self._write_lock:
            if reservation.reservation_id not in self._reservations:
                raise NotFound("Reservation not found")
            if reservation.is_active():
                self._ensure_no_overlap(reservation)
            self._reservations[reservation.reservation_id] = reservation.model_copy(deep=True)
        return reservation

    async def find_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        stored = self._reservations.get(reservation_id)
        return stored.model_copy(deep=True) if stored else None

    async def find_reservation_by_number(self, booking_number: str) -> Optional[Reservation]:
        for reservation in self._reservations.values():
            if reservation.booking_number == booking_number:
                return reservation.model_copy(deep=True)
        return None

    async def list_reservations_overlapping(
        self,
        unit_id: str,
        start: date,
        end: date,
        exclude_statuses: Iterable[BookingStatus] = ()
    ) -> List[Reservation]:
        excluded = set(exclude_statuses)
        return [
            r.model_copy(deep=True) for r in self._sorted()
            if r.unit_id == unit_id
            and r.status not in excluded
            and r.date_range.overlaps(start, end)
        ]

    async def list_reservations_by_customer(self, customer_id: UUID) -> List[Reservation]:
        return [
            r.model_copy(deep=True) for r in self._sorted()
            if r.customer.customer_id == customer_id
        ]

    async def list_reservations(
        self,
        unit_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Reservation]:
        results = []
        for r in self._sorted():
            if unit_id is not None and r.unit_id != unit_id:
                continue
            if status is not None and r.status != status:
                continue
            if start_date is not None and r.check_in_date < start_date:
                continue
            if end_date is not None and r.check_in_date > end_date:
                continue
            results.append(r.model_copy(deep=True))
        return results

    async def next_booking_sequence(self, prefix: str, day: date) -> int:
        async with self._write_lock:
            self._sequences[(prefix, day)] += 1
            return self._sequences[(prefix, day)]

    # ==================== HELPERS ====================
    def _sorted(self) -> List[Reservation]:
        return sorted(self._reservations.values(), key=lambda r: (r.check_in_date, r.created_at))

    def _ensure_no_overlap(self, reservation: Reservation) -> None:
        for other in self._reservations.values():
            if (
                other.reservation_id != reservation.reservation_id
                and other.unit_id == reservation.unit_id
                and other.is_active()
                and other.date_range.overlaps(reservation.check_in_date, reservation.check_out_date)
            ):
                raise UnitAlreadyBooked()
