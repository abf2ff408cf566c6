"""Mapping of stored rows onto domain entities.

Older rows carry pricing under legacy column names (``price`` instead of
``base_price``, no ``weekend_price``, ``price_type`` instead of
``pricing_mode``). The fallbacks live here so the pricing code only ever
sees the canonical fields.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from domain.entities import AddOn, PriceRule, Unit
from domain.enums import AddOnPricingMode, UnitType


def _first(record: Dict[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _datetime(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp as naive UTC"""
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def unit_from_record(record: Dict[str, Any]) -> Unit:
    base_rate = _decimal(_first(record, "base_rate", "base_price", "price"))
    if base_rate is None:
        raise ValueError(f"Unit {record.get('id')} has no nightly rate")
    weekend_rate = _decimal(_first(record, "weekend_rate", "weekend_price"))

    return Unit(
        unit_id=str(_first(record, "unit_id", "id")),
        name=record["name"],
        unit_type=UnitType(record.get("unit_type") or UnitType.CHALET.value),
        capacity=int(record["capacity"]),
        base_rate=base_rate,
        weekend_rate=weekend_rate if weekend_rate is not None else base_rate,
        is_active=bool(record.get("is_active", True))
    )


def price_rule_from_record(record: Dict[str, Any]) -> PriceRule:
    data = {
        "rule_id": str(_first(record, "rule_id", "id")),
        "unit_id": str(_first(record, "unit_id", "chalet_id")),
        "name": record.get("name", ""),
        "start_date": _date(record["start_date"]),
        "end_date": _date(record["end_date"]),
        "multiplier": _decimal(_first(record, "multiplier", "price_multiplier")) or Decimal("1"),
        "priority": int(record.get("priority") or 0),
        "is_active": bool(record.get("is_active", True)),
        # no timestamp ranks oldest
        "created_at": _datetime(record.get("created_at")) or datetime.min,
    }
    return PriceRule(**data)


def add_on_from_record(record: Dict[str, Any]) -> AddOn:
    mode = _first(record, "pricing_mode", "price_type") or AddOnPricingMode.ONE_TIME.value
    return AddOn(
        add_on_id=str(_first(record, "add_on_id", "id")),
        name=record["name"],
        price=_decimal(_first(record, "price", "unit_price")) or Decimal("0"),
        pricing_mode=AddOnPricingMode(mode),
        is_active=bool(record.get("is_active", True))
    )
