"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import AddOnPricingMode, BookingStatus, PaymentMethod


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class SelectedAddOnRequest(BaseModel):
    """Selected add-on request DTO"""
    add_on_id: str
    quantity: int = Field(ge=1, default=1)


class CreateBookingRequest(BaseModel):
    """Create booking request DTO"""
    unit_id: str
    customer_id: Optional[UUID] = None
    customer_name: str = Field(min_length=1, max_length=100)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    check_in: date
    check_out: date
    guest_count: int = Field(ge=1)
    add_ons: List[SelectedAddOnRequest] = []
    special_requests: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


class QuoteRequest(BaseModel):
    """Price quote request DTO"""
    unit_id: str
    check_in: date
    check_out: date
    guest_count: int = Field(ge=1, default=1)
    add_ons: List[SelectedAddOnRequest] = []


class CancelBookingRequest(BaseModel):
    """Cancel booking request DTO"""
    reason: str = Field(min_length=1, max_length=500)


class RescheduleBookingRequest(BaseModel):
    """Reschedule booking request DTO"""
    check_in: date
    check_out: date


class AddOnLineResponse(BaseModel):
    """Booked add-on response DTO"""
    add_on_id: str
    name: str
    pricing_mode: AddOnPricingMode
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class BookingResponse(BaseModel):
    """Booking response DTO"""
    reservation_id: UUID
    booking_number: str
    unit_id: str
    customer_id: Optional[UUID] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    guest_count: int
    add_ons: List[AddOnLineResponse]
    base_amount: Decimal
    add_on_amount: Decimal
    deposit_amount: Decimal
    total_amount: Decimal
    status: BookingStatus
    payment_status: str
    payment_method: Optional[str] = None
    special_requests: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    checked_out_at: Optional[datetime] = None
    checked_out_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int


class QuoteResponse(BaseModel):
    """Price quote response DTO"""
    unit_id: str
    check_in: date
    check_out: date
    nights: int
    nightly_rates: List[Decimal]
    base_amount: Decimal
    add_on_amount: Decimal
    deposit_amount: Decimal
    total_amount: Decimal
    add_ons: List[AddOnLineResponse]


class TodayBookingsResponse(BaseModel):
    """Today's arrivals and departures DTO"""
    check_ins: List[BookingResponse]
    check_outs: List[BookingResponse]


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class AvailabilityCalendarResponse(BaseModel):
    """Blocked nights of a unit DTO"""
    unit_id: str
    start_date: date
    end_date: date
    blocked_dates: List[date]


class AvailabilityCheckResponse(BaseModel):
    """Availability check DTO"""
    unit_id: str
    check_in: date
    check_out: date
    available: bool


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    disabled: bool
