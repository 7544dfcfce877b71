"""
Money arithmetic shared by voucher validation and the client cart.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")
PERCENTAGE = "PERCENTAGE"


def round_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_discount(
    discount_type: str,
    value: Decimal,
    order_amount: Decimal,
    max_discount: Optional[Decimal] = None
) -> Decimal:
    """Discount for an eligible amount, rounded half-up to cents.

    Percentage discounts are capped by max_discount when set; fixed discounts
    never exceed the order amount.
    """
    order_amount = Decimal(order_amount)
    value = Decimal(value)

    if discount_type == PERCENTAGE:
        discount = order_amount * value / Decimal(100)
        if max_discount is not None and discount > max_discount:
            discount = Decimal(max_discount)
    else:
        discount = min(value, order_amount)

    return round_money(max(discount, Decimal(0)))
