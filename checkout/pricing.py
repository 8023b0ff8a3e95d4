"""
Order pricing rules.

    - Shipping is free from FREE_SHIPPING_THRESHOLD up, SHIPPING_COST below
    - Percentage coupons take value% of the subtotal
    - Fixed coupons take their value as-is; the total never goes negative

Shipping is decided on the subtotal before the coupon discount.
"""

from decimal import Decimal

from django.conf import settings

from core.models import quantize

ZERO = Decimal('0.00')


def shipping_cost(subtotal):
    subtotal = Decimal(subtotal)
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return ZERO
    return quantize(settings.SHIPPING_COST)


def calculate_discount(coupon, subtotal):
    """
    Discount a coupon gives on `subtotal`.

    A fixed coupon's value is returned even when it exceeds the subtotal.
    """
    if coupon is None:
        return ZERO
    subtotal = Decimal(subtotal)
    if coupon.discount_type == 'percentage':
        return quantize(subtotal * coupon.discount_value / 100)
    return quantize(coupon.discount_value)


def calculate_totals(subtotal, coupon=None):
    """
    Returns:
        dict: subtotal, discount, shipping, total (Decimals)
    """
    subtotal = quantize(Decimal(subtotal))
    discount = calculate_discount(coupon, subtotal)
    shipping = shipping_cost(subtotal)
    total = max(subtotal - discount, ZERO) + shipping
    return {
        'subtotal': subtotal,
        'discount': discount,
        'shipping': shipping,
        'total': quantize(total),
    }
