from decimal import Decimal

import pytest

from core.models import Coupon
from checkout.pricing import calculate_discount, calculate_totals, shipping_cost


def coupon(discount_type, value):
    return Coupon(code='X', discount_type=discount_type, discount_value=Decimal(value))


class TestShipping:
    def test_below_threshold_pays_shipping(self):
        assert shipping_cost(Decimal('2499.99')) == Decimal('200.00')

    def test_threshold_is_free(self):
        assert shipping_cost(Decimal('2500.00')) == Decimal('0.00')

    def test_above_threshold_is_free(self):
        assert shipping_cost(Decimal('4000')) == Decimal('0.00')


class TestDiscount:
    def test_no_coupon(self):
        assert calculate_discount(None, Decimal('300')) == Decimal('0.00')

    @pytest.mark.parametrize('subtotal, value, expected', [
        ('1000.00', '10', '100.00'),
        ('333.33', '15', '50.00'),
        ('80.00', '100', '80.00'),
    ])
    def test_percentage(self, subtotal, value, expected):
        assert calculate_discount(coupon('percentage', value), Decimal(subtotal)) == Decimal(expected)

    def test_fixed_is_value(self):
        assert calculate_discount(coupon('fixed', '75'), Decimal('1000')) == Decimal('75.00')

    def test_fixed_larger_than_subtotal_is_not_clamped(self):
        assert calculate_discount(coupon('fixed', '500'), Decimal('120')) == Decimal('500.00')


class TestTotals:
    def test_total_is_subtotal_minus_discount_plus_shipping(self):
        totals = calculate_totals(Decimal('1000.00'), coupon('percentage', '10'))
        assert totals == {
            'subtotal': Decimal('1000.00'),
            'discount': Decimal('100.00'),
            'shipping': Decimal('200.00'),
            'total': Decimal('1100.00'),
        }

    def test_free_shipping_is_decided_before_discount(self):
        totals = calculate_totals(Decimal('2600.00'), coupon('fixed', '200'))
        assert totals['shipping'] == Decimal('0.00')
        assert totals['total'] == Decimal('2400.00')

    def test_total_never_negative(self):
        totals = calculate_totals(Decimal('100.00'), coupon('fixed', '500'))
        assert totals['discount'] == Decimal('500.00')
        assert totals['total'] == Decimal('200.00')

    def test_empty_cart(self):
        totals = calculate_totals(Decimal('0'))
        assert totals['total'] == Decimal('200.00')
