"""Application Services - Business use cases"""
import logging
from uuid import UUID
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from domain.repositories import BookingRepository
from domain.gateways import ActivityLogger, Clock, EventEmitter, NotificationService
from domain.entities import Reservation, Unit
from domain.enums import BookingStatus, PaymentMethod
from domain.exceptions import (
    CapacityExceeded, InvalidGuestCount, InvalidTransition, NotAvailable, NotFound, UnitAlreadyBooked
)
from domain.pricing import calculate_price
from domain.value_objects import (
    CustomerInfo, DateRange, DepositPolicy, PriceBreakdown, SelectedAddOn
)

logger = logging.getLogger(__name__)

INACTIVE_STATUSES = (BookingStatus.CANCELLED,)


def _long_date(day: date) -> str:
    """e.g. 'March 7, 2025'"""
    return f"{day:%B} {day.day}, {day:%Y}"


class BookingResult(BaseModel):
    reservation: Reservation
    unit: Unit


class AvailabilityCalendar(BaseModel):
    unit_id: str
    blocked_dates: List[date] = []


class TodayBookings(BaseModel):
    check_ins: List[Reservation] = []
    check_outs: List[Reservation] = []


class AvailabilityService:
    """Date-range conflict detection for a unit"""

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    async def is_available(
        self,
        unit_id: str,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[UUID] = None
    ) -> bool:
        """True when no non-cancelled reservation overlaps [check_in, check_out)"""
        reservations = await self.repository.list_reservations_overlapping(
            unit_id, check_in, check_out, exclude_statuses=INACTIVE_STATUSES
        )
        for reservation in reservations:
            if reservation.reservation_id == exclude_reservation_id:
                continue
            if reservation.is_active() and reservation.date_range.overlaps(check_in, check_out):
                return False
        return True

    async def blocked_dates(self, unit_id: str, range_start: date, range_end: date) -> List[date]:
        """Nights taken by non-cancelled reservations within [range_start, range_end]"""
        if range_end < range_start:
            return []
        window_end = range_end + timedelta(days=1)
        reservations = await self.repository.list_reservations_overlapping(
            unit_id, range_start, window_end, exclude_statuses=INACTIVE_STATUSES
        )
        blocked = set()
        for reservation in reservations:
            if not reservation.is_active():
                continue
            for night in reservation.date_range.iter_nights():
                if range_start <= night <= range_end:
                    blocked.add(night)
        return sorted(blocked)


class PricingService:
    """Loads pricing inputs from storage and runs the price calculator"""

    def __init__(self, repository: BookingRepository, deposit_policy: Optional[DepositPolicy] = None):
        self.repository = repository
        self.deposit_policy = deposit_policy

    async def price_stay(
        self,
        unit: Unit,
        check_in: date,
        check_out: date,
        add_ons: Sequence[SelectedAddOn] = ()
    ) -> PriceBreakdown:
        rules = await self.repository.list_active_price_rules(unit.unit_id)
        catalog = {}
        if add_ons:
            found = await self.repository.find_add_ons([a.add_on_id for a in add_ons])
            catalog = {a.add_on_id: a for a in found}
        return calculate_price(
            unit,
            check_in,
            check_out,
            rules=rules,
            selected_add_ons=add_ons,
            add_on_catalog=catalog,
            deposit_policy=self.deposit_policy
        )


class BookingService:
    """Service for chalet booking use cases"""

    def __init__(self,
                 repository: BookingRepository,
                 notifications: NotificationService,
                 events: EventEmitter,
                 activity: ActivityLogger,
                 clock: Clock,
                 deposit_policy: Optional[DepositPolicy] = None,
                 event_channel: str = "chalets"):
        self.repository = repository
        self.notifications = notifications
        self.events = events
        self.activity = activity
        self.clock = clock
        self.event_channel = event_channel
        self.availability = AvailabilityService(repository)
        self.pricing = PricingService(repository, deposit_policy)

    # ==================== CREATION ====================
    async def quote(
        self,
        unit_id: str,
        check_in: date,
        check_out: date,
        guest_count: int,
        add_ons: Sequence[SelectedAddOn] = ()
    ) -> PriceBreakdown:
        """Price a stay with the same checks as booking it, without saving"""
        unit = await self._bookable_unit(unit_id, guest_count)
        DateRange.between(check_in, check_out)
        return await self.pricing.price_stay(unit, check_in, check_out, add_ons)

    async def create_booking(
        self,
        unit_id: str,
        customer: CustomerInfo,
        check_in: date,
        check_out: date,
        guest_count: int,
        add_ons: Sequence[SelectedAddOn] = (),
        special_requests: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None
    ) -> BookingResult:
        """Create a pending booking.

        The availability check here is advisory; the repository rejects
        overlapping writes on its own.
        """
        unit = await self._bookable_unit(unit_id, guest_count)
        date_range = DateRange.between(check_in, check_out)

        if not await self.availability.is_available(unit_id, check_in, check_out):
            raise UnitAlreadyBooked()

        pricing = await self.pricing.price_stay(unit, check_in, check_out, add_ons)
        now = self.clock.now()
        booking_number = await self._generate_booking_number(unit)

        reservation = Reservation.create(
            booking_number=booking_number,
            unit_id=unit_id,
            customer=customer,
            date_range=date_range,
            guest_count=guest_count,
            pricing=pricing,
            now=now,
            special_requests=special_requests,
            payment_method=payment_method
        )
        reservation = await self.repository.create_reservation(reservation)
        logger.info(
            "Created booking %s for %s %s..%s total=%s",
            reservation.booking_number, unit_id, check_in, check_out, reservation.total_amount
        )

        if customer.email:
            await self._send_confirmation(reservation, unit)

        await self._log_activity("CREATE_BOOKING", {
            "booking_number": reservation.booking_number,
            "unit_id": unit_id,
            "check_in": check_in.isoformat(),
            "check_out": check_out.isoformat(),
            "total": str(reservation.total_amount),
        }, str(customer.customer_id) if customer.customer_id else None)

        self._emit("booking:new", {
            "id": str(reservation.reservation_id),
            "booking_number": reservation.booking_number,
            "unit_name": unit.name,
            "customer_name": customer.name,
            "check_in": check_in.isoformat(),
            "check_out": check_out.isoformat(),
            "status": reservation.status.value,
            "total_amount": str(reservation.total_amount),
        })

        return BookingResult(reservation=reservation, unit=unit)

    # ==================== QUERIES ====================
    async def get_booking_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        return await self.repository.find_reservation(reservation_id)

    async def get_booking_by_number(self, booking_number: str) -> Optional[Reservation]:
        return await self.repository.find_reservation_by_number(booking_number)

    async def get_bookings_by_customer(self, customer_id: UUID) -> List[Reservation]:
        return await self.repository.list_reservations_by_customer(customer_id)

    async def get_bookings(
        self,
        unit_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Reservation]:
        return await self.repository.list_reservations(
            unit_id=unit_id, status=status, start_date=start_date, end_date=end_date
        )

    async def get_today_bookings(self) -> TodayBookings:
        """Arrivals and departures due today"""
        today = self.clock.today()
        reservations = await self.repository.list_reservations()
        return TodayBookings(
            check_ins=[
                r for r in reservations
                if r.check_in_date == today
                and r.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)
            ],
            check_outs=[
                r for r in reservations
                if r.check_out_date == today and r.status == BookingStatus.CHECKED_IN
            ],
        )

    async def check_availability(self, unit_id: str, check_in: date, check_out: date) -> bool:
        return await self.availability.is_available(unit_id, check_in, check_out)

    async def get_availability(self, unit_id: str, range_start: date, range_end: date) -> AvailabilityCalendar:
        blocked = await self.availability.blocked_dates(unit_id, range_start, range_end)
        return AvailabilityCalendar(unit_id=unit_id, blocked_dates=blocked)

    # ==================== LIFECYCLE ====================
    async def confirm_booking(self, reservation_id: UUID, actor_id: Optional[str] = None) -> Reservation:
        reservation = await self._get_or_raise(reservation_id)
        reservation.confirm(self.clock.now())
        updated = await self.repository.update_reservation(reservation)
        await self._record_transition("CONFIRM_BOOKING", "booking:confirmed", updated, actor_id)
        return updated

    async def check_in(self, reservation_id: UUID, actor_id: str) -> Reservation:
        reservation = await self._get_or_raise(reservation_id)
        reservation.check_in(actor_id, self.clock.now())
        updated = await self.repository.update_reservation(reservation)
        await self._record_transition("CHECK_IN", "booking:checkedIn", updated, actor_id)
        return updated

    async def check_out(self, reservation_id: UUID, actor_id: str) -> Reservation:
        reservation = await self._get_or_raise(reservation_id)
        reservation.check_out(actor_id, self.clock.now())
        updated = await self.repository.update_reservation(reservation)
        await self._record_transition("CHECK_OUT", "booking:checkedOut", updated, actor_id)
        return updated

    async def cancel_booking(
        self,
        reservation_id: UUID,
        reason: str,
        actor_id: Optional[str] = None
    ) -> Reservation:
        reservation = await self._get_or_raise(reservation_id)
        reservation.cancel(reason, self.clock.now(), actor_id)
        updated = await self.repository.update_reservation(reservation)
        await self._record_transition(
            "CANCEL_BOOKING", "booking:cancelled", updated, actor_id, reason=reason
        )
        return updated

    async def reschedule_booking(
        self,
        reservation_id: UUID,
        new_check_in: date,
        new_check_out: date,
        actor_id: Optional[str] = None
    ) -> Reservation:
        """Move a pending or confirmed booking to new dates and re-price it"""
        reservation = await self._get_or_raise(reservation_id)
        if not reservation.is_reschedulable():
            raise InvalidTransition(
                f"Cannot reschedule a booking with status: {reservation.status.value}",
                reservation.status,
            )
        date_range = DateRange.between(new_check_in, new_check_out)

        unit = await self.repository.find_unit(reservation.unit_id)
        if unit is None:
            raise NotFound("Chalet not found")

        available = await self.availability.is_available(
            reservation.unit_id, new_check_in, new_check_out,
            exclude_reservation_id=reservation.reservation_id
        )
        if not available:
            raise UnitAlreadyBooked()

        selections = [
            SelectedAddOn(add_on_id=item.add_on_id, quantity=item.quantity)
            for item in reservation.add_ons
        ]
        pricing = await self.pricing.price_stay(unit, new_check_in, new_check_out, selections)
        previous = reservation.date_range
        reservation.reschedule(date_range, pricing, self.clock.now())
        updated = await self.repository.update_reservation(reservation)
        await self._record_transition(
            "RESCHEDULE_BOOKING", "booking:rescheduled", updated, actor_id,
            previous_check_in=previous.check_in.isoformat(),
            previous_check_out=previous.check_out.isoformat(),
            check_in=new_check_in.isoformat(),
            check_out=new_check_out.isoformat(),
            total_amount=str(updated.total_amount),
        )
        return updated

    # ==================== PRIVATE HELPERS ====================
    async def _bookable_unit(self, unit_id: str, guest_count: int) -> Unit:
        if guest_count < 1:
            raise InvalidGuestCount()
        unit = await self.repository.find_unit(unit_id)
        if unit is None:
            raise NotFound("Chalet not found")
        if not unit.is_active:
            raise NotAvailable()
        if guest_count > unit.capacity:
            raise CapacityExceeded(unit.capacity)
        return unit

    async def _get_or_raise(self, reservation_id: UUID) -> Reservation:
        reservation = await self.repository.find_reservation(reservation_id)
        if reservation is None:
            raise NotFound()
        return reservation

    async def _generate_booking_number(self, unit: Unit) -> str:
        prefix = unit.unit_type.booking_prefix
        today = self.clock.today()
        sequence = await self.repository.next_booking_sequence(prefix, today)
        return f"{prefix}-{today.strftime('%y%m%d')}-{sequence:03d}"

    async def _record_transition(
        self,
        action: str,
        event: str,
        reservation: Reservation,
        actor_id: Optional[str],
        **details: Any
    ) -> None:
        logger.info(
            "Booking %s -> %s by %s",
            reservation.booking_number, reservation.status.value, actor_id or "anonymous"
        )
        payload = {
            "id": str(reservation.reservation_id),
            "booking_number": reservation.booking_number,
            "status": reservation.status.value,
            **details,
        }
        await self._log_activity(action, payload, actor_id)
        self._emit(event, payload)

    async def _send_confirmation(self, reservation: Reservation, unit: Unit) -> None:
        summary = {
            "customer_name": reservation.customer.name,
            "booking_number": reservation.booking_number,
            "unit_name": unit.name,
            "check_in": _long_date(reservation.check_in_date),
            "check_out": _long_date(reservation.check_out_date),
            "guest_count": reservation.guest_count,
            "nights": reservation.nights,
            "total_amount": str(reservation.total_amount),
            "deposit_amount": str(reservation.deposit_amount),
            "payment_status": reservation.payment_status.value,
        }
        try:
            await self.notifications.send_booking_confirmation(reservation.customer.email, summary)
        except Exception:
            logger.warning(
                "Failed to send booking confirmation email for %s",
                reservation.booking_number, exc_info=True
            )

    async def _log_activity(self, action: str, details: Dict[str, Any], user_id: Optional[str]) -> None:
        try:
            await self.activity.log(action, details, user_id)
        except Exception:
            logger.warning("Failed to record activity %s", action, exc_info=True)

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        try:
            self.events.emit(self.event_channel, event, payload)
        except Exception:
            logger.warning("Failed to emit %s", event, exc_info=True)
