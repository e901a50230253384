from decimal import Decimal, ROUND_HALF_UP
from typing import Union
from storefront.core.config import settings
from storefront.models.promotion import DiscountType

ZERO = Decimal("0")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # float через str, чтобы не тащить двоичный хвост
    return Decimal(str(value))


def calculate_promotional_price(
    original_price: Number,
    discount_type: DiscountType,
    discount_value: Number,
) -> Decimal:
    """
    Цена после скидки, без округления.
    Процент: price * (1 - value/100); фикс: max(0, price - value).
    """
    price = to_decimal(original_price)
    value = to_decimal(discount_value)

    if discount_type == DiscountType.PERCENTAGE:
        result = price * (1 - value / HUNDRED)
    elif discount_type == DiscountType.FIXED_AMOUNT:
        result = price - value
    else:
        return price

    return max(result, ZERO)


def calculate_discount_percentage(original_price: Number, promotional_price: Number) -> int:
    """Процент скидки для бейджа, округлённый до целого"""
    original = to_decimal(original_price)
    if original <= 0:
        return 0
    promotional = to_decimal(promotional_price)
    percent = (original - promotional) / original * HUNDRED
    return int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quantize_price(value: Number) -> Decimal:
    """Округление до точности валюты, только на выходе"""
    return to_decimal(value).quantize(settings.price_quantum, rounding=ROUND_HALF_UP)


def format_price(value: Number) -> str:
    return f"{settings.CURRENCY_SYMBOL} {quantize_price(value)}"
