from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from ..errors import ValidationError


TAX_RATE = Decimal("0.12")  # 12% VAT
DELIVERY_FEE = Decimal("50")
FREE_DELIVERY_THRESHOLD = Decimal("1000")

_CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging binary noise into the sums
    return Decimal(str(value if value is not None else 0))


def round_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceInfo:
    original_price: Decimal
    discount_percentage: int
    final_price: Decimal
    savings: Decimal


def calculate_price(base_price: Number, discount_percentage: int) -> PriceInfo:
    """Effective unit price after applying a percentage discount.

    `savings = P * D / 100` and `final_price = P - savings`, both exact.
    """
    price = to_decimal(base_price)
    if price < 0:
        raise ValidationError("base_price must be >= 0", field="base_price")
    pct = int(discount_percentage or 0)
    if pct < 0 or pct > 100:
        raise ValidationError("discount_percentage must be between 0 and 100", field="discount_percentage")
    savings = price * pct / 100
    return PriceInfo(
        original_price=price,
        discount_percentage=pct,
        final_price=price - savings,
        savings=savings,
    )


def calculate_price_info(product) -> PriceInfo:
    return calculate_price(product.base_price, product.discount_percentage)


def calculate_tax(subtotal: Number) -> Decimal:
    return round_money(to_decimal(subtotal) * TAX_RATE)


def calculate_delivery_fee(subtotal: Number, has_items: bool) -> Decimal:
    if to_decimal(subtotal) >= FREE_DELIVERY_THRESHOLD:
        return Decimal("0")
    return DELIVERY_FEE if has_items else Decimal("0")
