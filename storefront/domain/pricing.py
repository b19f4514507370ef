# storefront/domain/pricing.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from storefront.utils import settings

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def round_money(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_money(value) -> str | None:
    if value is None:
        return None
    return str(round_money(value))


def has_active_sale(price, sale_price) -> bool:
    return sale_price is not None and Decimal(sale_price) < Decimal(price)


def effective_price(price, sale_price) -> Decimal:
    """Sale price when present and lower than the regular price, else the regular price."""
    if has_active_sale(price, sale_price):
        return Decimal(sale_price)
    return Decimal(price)


def shipping_for(subtotal: Decimal) -> Decimal:
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return ZERO
    return round_money(settings.STANDARD_SHIPPING_COST)


def tax_for(subtotal: Decimal, shipping_cost: Decimal) -> Decimal:
    return round_money((subtotal + shipping_cost) * settings.GST_RATE)


@dataclass(frozen=True)
class PricedLine:
    price: Decimal
    sale_price: Decimal | None
    quantity: int


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def calculate_totals(lines: Iterable[PricedLine]) -> OrderTotals:
    """
    Order money breakdown.

    The subtotal is already net of sale discounts; `discount` reports how much
    the sale prices saved and is not subtracted again.
    """
    subtotal = ZERO
    discount = ZERO

    for line in lines:
        subtotal += effective_price(line.price, line.sale_price) * line.quantity
        if has_active_sale(line.price, line.sale_price):
            discount += (Decimal(line.price) - Decimal(line.sale_price)) * line.quantity

    subtotal = round_money(subtotal)
    shipping_cost = shipping_for(subtotal)
    tax_amount = tax_for(subtotal, shipping_cost)

    return OrderTotals(
        subtotal=subtotal,
        discount=round_money(discount),
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        total_amount=round_money(subtotal + shipping_cost + tax_amount),
    )
