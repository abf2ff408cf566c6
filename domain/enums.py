"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class BookingEvent(str, Enum):
    CONFIRM = "confirm"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    CANCEL = "cancel"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    WHISH = "whish"
    ONLINE = "online"


class AddOnPricingMode(str, Enum):
    ONE_TIME = "one_time"
    PER_NIGHT = "per_night"


class DepositType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class UnitType(str, Enum):
    CHALET = "chalet"
    VILLA = "villa"
    BUNGALOW = "bungalow"

    @property
    def booking_prefix(self) -> str:
        """Prefix used in booking numbers"""
        return {
            UnitType.CHALET: "C",
            UnitType.VILLA: "V",
            UnitType.BUNGALOW: "B",
        }[self]
