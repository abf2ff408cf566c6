"""Price Calculator

Pure functions; callers fetch the unit, its rules and the add-on catalog
before calling in. Per-night and per-add-on amounts keep full precision;
rounding to cents happens only when lines are summed.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from domain.entities import AddOn, PriceRule, Unit
from domain.enums import AddOnPricingMode, DepositType
from domain.value_objects import (
    AddOnLineItem, DateRange, DepositPolicy, PriceBreakdown, SelectedAddOn
)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# date.weekday(): Friday=4, Saturday=5
WEEKEND_DAYS: FrozenSet[int] = frozenset({4, 5})


def round2(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def is_weekend(night: date, weekend_days: FrozenSet[int] = WEEKEND_DAYS) -> bool:
    return night.weekday() in weekend_days


def select_price_rule(rules: Iterable[PriceRule], night: date) -> Optional[PriceRule]:
    """Pick the rule that applies to a night.

    Highest priority wins. Equal priorities fall back to the most recently
    created rule, then to the greatest rule_id, so the result never depends
    on the order rules were loaded in.
    """
    candidates = [rule for rule in rules if rule.is_active and rule.covers(night)]
    if not candidates:
        return None
    return max(candidates, key=lambda rule: (rule.priority, rule.created_at, rule.rule_id))


def nightly_rate(
    base_rate: Decimal,
    weekend_rate: Decimal,
    rules: Sequence[PriceRule],
    night: date,
    weekend_days: FrozenSet[int] = WEEKEND_DAYS
) -> Decimal:
    """Rate for a single night, unrounded"""
    rate = weekend_rate if is_weekend(night, weekend_days) else base_rate
    rule = select_price_rule(rules, night)
    if rule is not None:
        rate = rate * rule.multiplier
    return rate


def add_on_subtotal(add_on: AddOn, quantity: int, nights: int) -> Decimal:
    if add_on.pricing_mode == AddOnPricingMode.PER_NIGHT:
        return add_on.price * quantity * nights
    return add_on.price * quantity


def price_add_ons(
    selected: Sequence[SelectedAddOn],
    catalog: Dict[str, AddOn],
    nights: int
) -> List[AddOnLineItem]:
    """Price the selected add-ons. Unknown or inactive add-ons are skipped."""
    items = []
    for selection in selected:
        add_on = catalog.get(selection.add_on_id)
        if add_on is None or not add_on.is_active:
            continue
        items.append(AddOnLineItem(
            add_on_id=add_on.add_on_id,
            name=add_on.name,
            pricing_mode=add_on.pricing_mode,
            quantity=selection.quantity,
            unit_price=add_on.price,
            subtotal=add_on_subtotal(add_on, selection.quantity, nights)
        ))
    return items


def calculate_deposit(total_amount: Decimal, policy: Optional[DepositPolicy]) -> Decimal:
    if policy is None:
        return ZERO
    if policy.deposit_type == DepositType.PERCENTAGE:
        return round2(total_amount * policy.percentage / Decimal(100))
    return round2(min(policy.fixed_amount, total_amount))


def calculate_price(
    unit: Unit,
    check_in: date,
    check_out: date,
    rules: Sequence[PriceRule] = (),
    selected_add_ons: Sequence[SelectedAddOn] = (),
    add_on_catalog: Optional[Dict[str, AddOn]] = None,
    deposit_policy: Optional[DepositPolicy] = None,
    weekend_days: FrozenSet[int] = WEEKEND_DAYS
) -> PriceBreakdown:
    """Price a stay on a unit.

    Raises InvalidDateRange when check_out is not after check_in.
    Capacity is the caller's concern.
    """
    stay = DateRange.between(check_in, check_out)
    nights = stay.nights()
    unit_rules = [rule for rule in rules if rule.unit_id == unit.unit_id]

    rates = [
        nightly_rate(unit.base_rate, unit.weekend_rate, unit_rules, night, weekend_days)
        for night in stay.iter_nights()
    ]
    base_amount = round2(sum(rates, ZERO))

    items = price_add_ons(selected_add_ons, add_on_catalog or {}, nights)
    add_on_amount = round2(sum((item.subtotal for item in items), ZERO))

    total_amount = round2(base_amount + add_on_amount)

    return PriceBreakdown(
        nights=nights,
        nightly_rates=rates,
        base_amount=base_amount,
        add_on_amount=add_on_amount,
        deposit_amount=calculate_deposit(total_amount, deposit_policy),
        total_amount=total_amount,
        add_on_items=items
    )
