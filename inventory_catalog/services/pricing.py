"""Customer tier and price resolution.

Prices are integer cents. Every function here is total: malformed input falls
back to retail pricing or zero instead of raising, because the catalog must
always show a price.

Rounding: percentages are applied with Decimal arithmetic and rounded
ROUND_HALF_UP to whole cents.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping


class Tier(str, Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    RESALE = "resale"


ADMIN_CUSTOMER_TYPE = "ADMIN"

PRICE_FIELDS: dict[Tier, str] = {
    Tier.RETAIL: "price_retail",
    Tier.WHOLESALE: "price_wholesale",
    Tier.RESALE: "price_reseller",
}

_HUNDRED = Decimal(100)
_CENT = Decimal(1)


def _attr(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_tier(value: Any) -> Tier | None:
    if isinstance(value, Tier):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Tier(value.strip().lower())
    except ValueError:
        return None


def _as_cents(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 0
    if not amount.is_finite() or amount <= 0:
        return 0
    return int(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


def _round_cents(amount: Decimal) -> int:
    return int(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


def resolve_effective_tier(customer: Any) -> Tier:
    """Tier whose prices the customer sees. ADMIN is a role, so it maps to its preview tier or retail."""
    if customer is None:
        return Tier.RETAIL
    customer_type = _attr(customer, "customer_type")
    if isinstance(customer_type, str) and customer_type.strip().upper() == ADMIN_CUSTOMER_TYPE:
        preview = _as_tier(_attr(customer, "admin_preview_type"))
        if preview is not None:
            return preview
        return Tier.RETAIL
    tier = _as_tier(customer_type)
    if tier is not None:
        return tier
    return Tier.RETAIL


def price_field_for(tier: Tier) -> str:
    return PRICE_FIELDS[tier]


def effective_price(product: Any, customer: Any) -> int:
    tier_price = _as_cents(_attr(product, price_field_for(resolve_effective_tier(customer))))
    if tier_price:
        return tier_price
    return _as_cents(_attr(product, "price_retail"))


def _discount_percentage(product: Any) -> Decimal:
    raw = _attr(product, "discount_percentage")
    if raw is None or isinstance(raw, bool):
        return Decimal(0)
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not value.is_finite() or value <= 0:
        return Decimal(0)
    return min(value, _HUNDRED)


def display_price(product: Any, customer: Any) -> int:
    price = effective_price(product, customer)
    discount = _discount_percentage(product)
    if not discount:
        return price
    return _round_cents(Decimal(price) * (_HUNDRED - discount) / _HUNDRED)


def price_with_fee(base_price: int, fee_percent: Any) -> int:
    """Final price for a payment method that carries a percentage fee."""
    try:
        fee = Decimal(str(fee_percent))
    except (InvalidOperation, ValueError):
        fee = Decimal(0)
    if not fee.is_finite():
        fee = Decimal(0)
    return _round_cents(Decimal(_as_cents(base_price)) * (_HUNDRED + fee) / _HUNDRED)


def installment_value(total_price: int, installments: int) -> int:
    try:
        count = int(installments)
    except (TypeError, ValueError):
        count = 1
    if count < 1:
        count = 1
    return _round_cents(Decimal(_as_cents(total_price)) / Decimal(count))


def format_brl(cents: Any) -> str:
    amount = Decimal(_as_cents(cents)) / _HUNDRED
    whole, fraction = f"{amount:,.2f}".split(".")
    return f"R$ {whole.replace(',', '.')},{fraction}"
