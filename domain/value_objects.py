"""Domain Value Objects"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID
from typing import Iterator, List, Optional

from domain.enums import AddOnPricingMode, DepositType
from domain.exceptions import InvalidDateRange


class DateRange(BaseModel):
    """Half-open stay range: check_in is the first night, check_out is not a night"""
    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info):
        if 'check_in' in info.data and v <= info.data['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    @classmethod
    def between(cls, check_in: date, check_out: date) -> "DateRange":
        """Build a range, raising InvalidDateRange instead of a validation error"""
        if (check_out - check_in).days <= 0:
            raise InvalidDateRange()
        return cls(check_in=check_in, check_out=check_out)

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def iter_nights(self) -> Iterator[date]:
        current = self.check_in
        while current < self.check_out:
            yield current
            current += timedelta(days=1)

    def overlaps(self, check_in: date, check_out: date) -> bool:
        return self.check_in < check_out and self.check_out > check_in


class CustomerInfo(BaseModel):
    """Who the booking is for"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    customer_id: Optional[UUID] = None


class SelectedAddOn(BaseModel):
    """An add-on picked by the guest, before pricing"""
    model_config = ConfigDict(frozen=True)

    add_on_id: str
    quantity: int = Field(default=1, ge=1)


class AddOnLineItem(BaseModel):
    """Priced add-on stored on a reservation"""
    model_config = ConfigDict(frozen=True)

    add_on_id: str
    name: str
    pricing_mode: AddOnPricingMode
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class DepositPolicy(BaseModel):
    """How much of the total is collected upfront"""
    model_config = ConfigDict(frozen=True)

    deposit_type: DepositType
    percentage: Decimal = Field(default=Decimal("30"), ge=0, le=100)
    fixed_amount: Decimal = Field(default=Decimal("100"), ge=0)

    @classmethod
    def percent(cls, percentage) -> "DepositPolicy":
        return cls(deposit_type=DepositType.PERCENTAGE, percentage=Decimal(str(percentage)))

    @classmethod
    def fixed(cls, amount) -> "DepositPolicy":
        return cls(deposit_type=DepositType.FIXED, fixed_amount=Decimal(str(amount)))


class PriceBreakdown(BaseModel):
    """Result of pricing a stay"""
    model_config = ConfigDict(frozen=True)

    nights: int
    nightly_rates: List[Decimal] = []
    base_amount: Decimal
    add_on_amount: Decimal
    deposit_amount: Decimal
    total_amount: Decimal
    add_on_items: List[AddOnLineItem] = []

    @model_validator(mode='after')
    def total_is_sum(self):
        if self.total_amount != self.base_amount + self.add_on_amount:
            raise ValueError('Total amount must equal base amount plus add-on amount')
        return self
