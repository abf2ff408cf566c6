import logging
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Bookings
    CreateBookingRequest, QuoteRequest, CancelBookingRequest, RescheduleBookingRequest,
    BookingResponse, AddOnLineResponse, QuoteResponse, TodayBookingsResponse,
    # Availability
    AvailabilityCalendarResponse, AvailabilityCheckResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import (
    authenticate_user, get_current_active_user, get_current_staff_user, get_optional_user, fake_users_db
)
from infrastructure.config import settings
from infrastructure.security import create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from domain.auth import Role, User

from application.services import BookingService
from infrastructure.adapters import (
    InMemoryEventEmitter, LoggingActivityLogger, LoggingNotificationService, SystemClock
)
from infrastructure.repositories.in_memory_repositories import InMemoryBookingRepository
from domain.entities import Reservation
from domain.enums import AddOnPricingMode, BookingStatus
from domain.exceptions import BookingError
from domain.value_objects import CustomerInfo, SelectedAddOn

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Chalet reservations with dynamic pricing",
    version="1.0.0"
)

# Initialize repositories and collaborators
booking_repo = InMemoryBookingRepository()
notification_service = LoggingNotificationService()
event_emitter = InMemoryEventEmitter()
activity_logger = LoggingActivityLogger()
clock = SystemClock()

booking_repo.load_records(
    units=[
        {"id": "chalet-cedar", "name": "Cedar Chalet", "capacity": 6,
         "base_price": "100.00", "weekend_price": "150.00", "is_active": True},
        {"id": "chalet-pine", "name": "Pine Chalet", "capacity": 4,
         "price": "80.00", "is_active": True},
    ],
    add_ons=[
        {"id": "breakfast", "name": "Breakfast", "price": "20.00", "price_type": "per_night"},
        {"id": "bbq-kit", "name": "BBQ Kit", "price": "25.00", "price_type": "one_time"},
    ],
)

# Dependency injection
def get_booking_service() -> BookingService:
    return BookingService(
        booking_repo,
        notifications=notification_service,
        events=event_emitter,
        activity=activity_logger,
        clock=clock,
        deposit_policy=settings.deposit_policy(),
        event_channel=settings.event_channel
    )

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus enum values"""
    return {
        "values": [item.value for item in BookingStatus],
        "description": "Booking status values: pending, confirmed, checked_in, checked_out, cancelled"
    }

@app.get("/api/enums/add-on-pricing-mode", tags=["Enum Reference"])
async def get_add_on_pricing_modes():
    """Get all AddOnPricingMode enum values"""
    return {
        "values": [item.value for item in AddOnPricingMode],
        "description": "one_time: price x quantity; per_night: price x quantity x nights"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = authenticate_user(fake_users_db, form_data.username, form_data.password)
    if user is None:
        logger.info("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        user.username, user.role.value, expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return UserResponse(
        user_id=current_user.user_id,
        username=current_user.username,
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role.value,
        disabled=current_user.disabled
    )

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/chalets/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """Create new booking (guests and signed-in customers)"""
    customer_id = request.customer_id
    if current_user is not None and current_user.role == Role.CUSTOMER:
        customer_id = current_user.user_id

    try:
        result = await service.create_booking(
            unit_id=request.unit_id,
            customer=CustomerInfo(
                name=request.customer_name,
                email=request.customer_email,
                phone=request.customer_phone,
                customer_id=customer_id
            ),
            check_in=request.check_in,
            check_out=request.check_out,
            guest_count=request.guest_count,
            add_ons=[SelectedAddOn(add_on_id=a.add_on_id, quantity=a.quantity) for a in request.add_ons],
            special_requests=request.special_requests,
            payment_method=request.payment_method
        )
    except BookingError as e:
        _raise_http(e)
    return _booking_to_response(result.reservation)

@app.post("/api/chalets/bookings/quote", response_model=QuoteResponse, tags=["Bookings"])
async def quote_booking(
    request: QuoteRequest,
    service: BookingService = Depends(get_booking_service)
):
    """Price a stay without booking it"""
    try:
        pricing = await service.quote(
            unit_id=request.unit_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guest_count=request.guest_count,
            add_ons=[SelectedAddOn(add_on_id=a.add_on_id, quantity=a.quantity) for a in request.add_ons]
        )
    except BookingError as e:
        _raise_http(e)
    return QuoteResponse(
        unit_id=request.unit_id,
        check_in=request.check_in,
        check_out=request.check_out,
        nights=pricing.nights,
        nightly_rates=pricing.nightly_rates,
        base_amount=pricing.base_amount,
        add_on_amount=pricing.add_on_amount,
        deposit_amount=pricing.deposit_amount,
        total_amount=pricing.total_amount,
        add_ons=[AddOnLineResponse(**item.model_dump()) for item in pricing.add_on_items]
    )

@app.get("/api/chalets/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_bookings(
    unit_id: Optional[str] = None,
    status: Optional[BookingStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_staff_user)
):
    """List bookings (staff)"""
    reservations = await service.get_bookings(
        unit_id=unit_id, status=status, start_date=start_date, end_date=end_date
    )
    return [_booking_to_response(r) for r in reservations]

@app.get("/api/chalets/bookings/today", response_model=TodayBookingsResponse, tags=["Bookings"])
async def get_today_bookings(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Today's arrivals and departures (staff)"""
    today = await service.get_today_bookings()
    return TodayBookingsResponse(
        check_ins=[_booking_to_response(r) for r in today.check_ins],
        check_outs=[_booking_to_response(r) for r in today.check_outs]
    )

@app.get("/api/chalets/bookings/number/{booking_number}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking_by_number(
    booking_number: str,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by booking number"""
    reservation = await service.get_booking_by_number(booking_number)
    _ensure_visible(reservation, current_user)
    return _booking_to_response(reservation)

@app.get("/api/chalets/bookings/customer/{customer_id}", response_model=List[BookingResponse], tags=["Bookings"])
async def get_customer_bookings(
    customer_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all bookings of a customer"""
    if not current_user.is_staff() and current_user.user_id != customer_id:
        raise HTTPException(status_code=403, detail="Not allowed to view these bookings")
    reservations = await service.get_bookings_by_customer(customer_id)
    return [_booking_to_response(r) for r in reservations]

@app.get("/api/chalets/bookings/{reservation_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by ID"""
    reservation = await service.get_booking_by_id(reservation_id)
    _ensure_visible(reservation, current_user)
    return _booking_to_response(reservation)

@app.post("/api/chalets/bookings/{reservation_id}/confirm", response_model=BookingResponse, tags=["Bookings"])
async def confirm_booking(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Confirm pending booking (staff)"""
    try:
        reservation = await service.confirm_booking(reservation_id, current_user.username)
    except BookingError as e:
        _raise_http(e)
    return _booking_to_response(reservation)

@app.post("/api/chalets/bookings/{reservation_id}/check-in", response_model=BookingResponse, tags=["Bookings"])
async def check_in_booking(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Check guest in (staff)"""
    try:
        reservation = await service.check_in(reservation_id, current_user.username)
    except BookingError as e:
        _raise_http(e)
    return _booking_to_response(reservation)

@app.post("/api/chalets/bookings/{reservation_id}/check-out", response_model=BookingResponse, tags=["Bookings"])
async def check_out_booking(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Check guest out (staff)"""
    try:
        reservation = await service.check_out(reservation_id, current_user.username)
    except BookingError as e:
        _raise_http(e)
    return _booking_to_response(reservation)

@app.post("/api/chalets/bookings/{reservation_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    reservation_id: UUID,
    request: CancelBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel booking (owner or staff)"""
    reservation = await service.get_booking_by_id(reservation_id)
    _ensure_visible(reservation, current_user)
    try:
        reservation = await service.cancel_booking(reservation_id, request.reason, current_user.username)
    except BookingError as e:
        _raise_http(e)
    return _booking_to_response(reservation)

@app.put("/api/chalets/bookings/{reservation_id}/dates", response_model=BookingResponse, tags=["Bookings"])
async def reschedule_booking(
    reservation_id: UUID,
    request: RescheduleBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Move booking to new dates (staff)"""
    try:
        reservation = await service.reschedule_booking(
            reservation_id, request.check_in, request.check_out, current_user.username
        )
    except BookingError as e:
        _raise_http(e)
    return _booking_to_response(reservation)

# ============================================================================
# AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/api/chalets/{unit_id}/availability", response_model=AvailabilityCalendarResponse, tags=["Availability"])
async def get_availability(
    unit_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    service: BookingService = Depends(get_booking_service)
):
    """Blocked nights of a chalet within [start_date, end_date]"""
    calendar = await service.get_availability(unit_id, start_date, end_date)
    return AvailabilityCalendarResponse(
        unit_id=unit_id,
        start_date=start_date,
        end_date=end_date,
        blocked_dates=calendar.blocked_dates
    )

@app.get("/api/chalets/{unit_id}/availability/check", response_model=AvailabilityCheckResponse, tags=["Availability"])
async def check_availability(
    unit_id: str,
    check_in: date = Query(...),
    check_out: date = Query(...),
    service: BookingService = Depends(get_booking_service)
):
    """Whether a chalet is free for a stay"""
    if check_out <= check_in:
        raise HTTPException(status_code=400, detail="Invalid date range: check-out must be after check-in")
    available = await service.check_availability(unit_id, check_in, check_out)
    return AvailabilityCheckResponse(
        unit_id=unit_id, check_in=check_in, check_out=check_out, available=available
    )

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _raise_http(error: BookingError):
    """Convert a booking failure to an HTTP error"""
    logger.info("Booking request rejected: %s (%s)", error.message, error.code)
    raise HTTPException(status_code=error.status_code, detail=error.message)

def _ensure_visible(reservation: Optional[Reservation], user: User) -> None:
    if reservation is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    if user.is_staff():
        return
    if reservation.customer.customer_id != user.user_id:
        raise HTTPException(status_code=404, detail="Booking not found")

def _booking_to_response(reservation: Reservation) -> BookingResponse:
    """Convert Reservation entity to BookingResponse"""
    return BookingResponse(
        reservation_id=reservation.reservation_id,
        booking_number=reservation.booking_number,
        unit_id=reservation.unit_id,
        customer_id=reservation.customer.customer_id,
        customer_name=reservation.customer.name,
        customer_email=reservation.customer.email,
        customer_phone=reservation.customer.phone,
        check_in=reservation.check_in_date,
        check_out=reservation.check_out_date,
        nights=reservation.nights,
        guest_count=reservation.guest_count,
        add_ons=[AddOnLineResponse(**item.model_dump()) for item in reservation.add_ons],
        base_amount=reservation.base_amount,
        add_on_amount=reservation.add_on_amount,
        deposit_amount=reservation.deposit_amount,
        total_amount=reservation.total_amount,
        status=reservation.status,
        payment_status=reservation.payment_status.value,
        payment_method=reservation.payment_method.value if reservation.payment_method else None,
        special_requests=reservation.special_requests,
        cancellation_reason=reservation.cancellation_reason,
        cancelled_at=reservation.cancelled_at,
        checked_in_at=reservation.checked_in_at,
        checked_in_by=reservation.checked_in_by,
        checked_out_at=reservation.checked_out_at,
        checked_out_by=reservation.checked_out_by,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        version=reservation.version
    )
