"""Domain Entities - Aggregates"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from uuid import UUID, uuid4
from datetime import datetime, date, timezone
from typing import Optional, List
from decimal import Decimal

from domain.enums import (
    AddOnPricingMode, BookingEvent, BookingStatus, PaymentMethod, PaymentStatus, UnitType
)
from domain.lifecycle import is_terminal, next_status
from domain.value_objects import AddOnLineItem, CustomerInfo, DateRange, PriceBreakdown


class Unit(BaseModel):
    """Bookable unit (chalet). Read-only to the booking core."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    unit_id: str
    name: str
    unit_type: UnitType = UnitType.CHALET
    capacity: int = Field(ge=1)
    base_rate: Decimal = Field(ge=0)
    weekend_rate: Decimal = Field(ge=0)
    is_active: bool = True


class PriceRule(BaseModel):
    """Time-bounded multiplier on a unit's nightly rate"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    rule_id: str
    unit_id: str
    name: str
    start_date: date
    end_date: date
    multiplier: Decimal = Field(gt=0)
    priority: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('end_date')
    @classmethod
    def end_not_before_start(cls, v, info):
        if 'start_date' in info.data and v < info.data['start_date']:
            raise ValueError('Price rule end date must not be before start date')
        return v

    @field_validator('created_at')
    @classmethod
    def created_at_naive_utc(cls, v):
        # rules are compared by created_at, so all of them share one clock
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    def covers(self, night: date) -> bool:
        return self.start_date <= night <= self.end_date


class AddOn(BaseModel):
    """Optional paid extra"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    add_on_id: str
    name: str
    price: Decimal = Field(ge=0)
    pricing_mode: AddOnPricingMode = AddOnPricingMode.ONE_TIME
    is_active: bool = True


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""
    model_config = ConfigDict(from_attributes=True)

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)
    booking_number: str

    # References
    unit_id: str
    customer: CustomerInfo

    # Stay
    date_range: DateRange
    guest_count: int = Field(ge=1)
    add_ons: List[AddOnLineItem] = []
    special_requests: Optional[str] = None

    # Pricing
    nights: int
    base_amount: Decimal
    add_on_amount: Decimal
    deposit_amount: Decimal
    total_amount: Decimal

    # Status
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None

    # Lifecycle audit
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    checked_out_at: Optional[datetime] = None
    checked_out_by: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        booking_number: str,
        unit_id: str,
        customer: CustomerInfo,
        date_range: DateRange,
        guest_count: int,
        pricing: PriceBreakdown,
        now: datetime,
        special_requests: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None
    ) -> "Reservation":
        """Create a pending reservation from a priced stay"""
        return Reservation(
            booking_number=booking_number,
            unit_id=unit_id,
            customer=customer,
            date_range=date_range,
            guest_count=guest_count,
            add_ons=list(pricing.add_on_items),
            special_requests=special_requests,
            nights=pricing.nights,
            base_amount=pricing.base_amount,
            add_on_amount=pricing.add_on_amount,
            deposit_amount=pricing.deposit_amount,
            total_amount=pricing.total_amount,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_method=payment_method,
            created_at=now,
            updated_at=now
        )

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self, now: datetime) -> None:
        self._apply(BookingEvent.CONFIRM, now)

    def check_in(self, actor_id: str, now: datetime) -> None:
        """Mark guest as checked in"""
        self._apply(BookingEvent.CHECK_IN, now)
        self.checked_in_at = now
        self.checked_in_by = actor_id

    def check_out(self, actor_id: str, now: datetime) -> None:
        """Process guest check-out"""
        self._apply(BookingEvent.CHECK_OUT, now)
        self.checked_out_at = now
        self.checked_out_by = actor_id

    def cancel(self, reason: str, now: datetime, actor_id: Optional[str] = None) -> None:
        """Cancel reservation. Frees the unit for the date range."""
        self._apply(BookingEvent.CANCEL, now)
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.cancelled_by = actor_id

    def reschedule(self, date_range: DateRange, pricing: PriceBreakdown, now: datetime) -> None:
        """Move the stay to new dates with fresh pricing"""
        self.date_range = date_range
        self.nights = pricing.nights
        self.add_ons = list(pricing.add_on_items)
        self.base_amount = pricing.base_amount
        self.add_on_amount = pricing.add_on_amount
        self.deposit_amount = pricing.deposit_amount
        self.total_amount = pricing.total_amount
        self._touch(now)

    # ==================== QUERY METHODS ====================
    @property
    def check_in_date(self) -> date:
        return self.date_range.check_in

    @property
    def check_out_date(self) -> date:
        return self.date_range.check_out

    def is_active(self) -> bool:
        """Whether the reservation still holds its dates"""
        return self.status != BookingStatus.CANCELLED

    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def is_reschedulable(self) -> bool:
        return self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    # ==================== PRIVATE METHODS ====================
    def _apply(self, event: BookingEvent, now: datetime) -> None:
        self.status = next_status(self.status, event)
        self._touch(now)

    def _touch(self, now: datetime) -> None:
        self.updated_at = now
        self.version += 1
