from datetime import datetime, time, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from analytics.reports import (
    best_sellers, daily_sales, influencer_performance, period_comparison,
)
from core.models import Coupon, Order, OrderItem

pytestmark = pytest.mark.django_db

TODAY = timezone.localdate()


def placed_on(order, day):
    """Backdate an order to midday of `day` (local time)."""
    moment = timezone.make_aware(datetime.combine(day, time(12)))
    Order.objects.filter(pk=order.pk).update(created_at=moment)
    return order


def add_line(order, name, quantity, price, product=None):
    return OrderItem.objects.create(order=order, product=product, product_name=name,
                                    price=Decimal(price), quantity=quantity)


class TestDailySales:
    def test_zero_filled_calendar(self, make_order):
        placed_on(make_order(total='100.00'), TODAY)
        placed_on(make_order(total='50.50'), TODAY)
        placed_on(make_order(total='70.00'), TODAY - timedelta(days=2))

        rows = daily_sales(days=3, today=TODAY)

        assert [r['date'] for r in rows] == [
            (TODAY - timedelta(days=2)).isoformat(),
            (TODAY - timedelta(days=1)).isoformat(),
            TODAY.isoformat(),
        ]
        assert [r['orders'] for r in rows] == [1, 0, 2]
        assert [r['revenue'] for r in rows] == [70.0, 0.0, 150.5]

    def test_only_paid_and_not_cancelled(self, make_order):
        make_order(total='100.00', payment_status='pending')
        make_order(total='100.00', status='cancelled')
        make_order(total='30.00')

        rows = daily_sales(days=1, today=TODAY)
        assert rows == [{'date': TODAY.isoformat(), 'orders': 1, 'revenue': 30.0}]

    def test_no_sales(self):
        rows = daily_sales(days=7, today=TODAY)
        assert len(rows) == 7
        assert all(r['orders'] == 0 and r['revenue'] == 0 for r in rows)

    def test_days_outside_window_are_ignored(self, make_order):
        placed_on(make_order(total='999.00'), TODAY - timedelta(days=10))
        assert sum(r['revenue'] for r in daily_sales(days=7, today=TODAY)) == 0


class TestBestSellers:
    def test_ranked_by_quantity_then_revenue(self, make_order, product):
        order = make_order()
        add_line(order, 'Linen Dress', 3, '100.00', product=product)
        add_line(order, 'Silk Top', 3, '200.00')
        add_line(order, 'Scarf', 1, '50.00')

        rows = best_sellers(limit=2)

        assert [r['productName'] for r in rows] == ['Silk Top', 'Linen Dress']
        assert rows[0]['productId'] is None
        assert rows[1] == {'productId': product.pk, 'productName': 'Linen Dress',
                           'quantity': 3, 'revenue': 300.0}

    def test_lines_are_summed_across_orders(self, make_order):
        add_line(make_order(), 'Scarf', 1, '50.00')
        add_line(make_order(), 'Scarf', 2, '50.00')
        add_line(make_order(payment_status='failed'), 'Scarf', 9, '50.00')

        assert best_sellers() == [{'productId': None, 'productName': 'Scarf',
                                   'quantity': 3, 'revenue': 150.0}]

    def test_empty(self):
        assert best_sellers() == []


class TestPeriodComparison:
    def test_change_between_periods(self, make_order):
        placed_on(make_order(total='300.00'), TODAY)
        placed_on(make_order(total='100.00'), TODAY - timedelta(days=6))
        placed_on(make_order(total='200.00'), TODAY - timedelta(days=7))

        result = period_comparison(days=7, today=TODAY)

        assert result['current']['orders'] == 2
        assert result['current']['revenue'] == 400.0
        assert result['current']['averageOrderValue'] == 200.0
        assert result['previous']['orders'] == 1
        assert result['previous']['end'] == (TODAY - timedelta(days=7)).isoformat()
        assert result['change'] == {'orders': 100.0, 'revenue': 100.0, 'averageOrderValue': 0.0}

    def test_empty_previous_period(self, make_order):
        make_order(total='10.00')
        change = period_comparison(days=7, today=TODAY)['change']
        assert change['revenue'] == 100.0

    def test_no_sales_at_all(self):
        result = period_comparison(days=7, today=TODAY)
        assert result['change'] == {'orders': 0.0, 'revenue': 0.0, 'averageOrderValue': 0.0}


class TestInfluencerPerformance:
    def test_commission_per_coupon(self, make_order):
        ayse = Coupon.objects.create(code='AYSE15', discount_value=Decimal('15'),
                                     is_influencer_code=True, influencer_instagram='ayse',
                                     commission_rate=Decimal('10'), used_count=2)
        idle = Coupon.objects.create(code='IDLE', discount_value=Decimal('5'),
                                     is_influencer_code=True, influencer_instagram='idle')
        plain = Coupon.objects.create(code='PLAIN', discount_value=Decimal('5'))

        make_order(total='1000.00', coupon=ayse, discount_amount=Decimal('150.00'))
        make_order(total='500.00', coupon=ayse, discount_amount=Decimal('75.00'))
        make_order(total='500.00', coupon=plain)

        rows = influencer_performance()

        assert [r['code'] for r in rows] == ['AYSE15', 'IDLE']
        assert rows[0]['orders'] == 2
        assert rows[0]['revenue'] == 1500.0
        assert rows[0]['totalDiscount'] == 225.0
        assert rows[0]['commission'] == 150.0
        assert rows[1]['couponId'] == idle.pk
        assert rows[1]['orders'] == 0
        assert rows[1]['commission'] == 0.0

    def test_without_orders(self):
        Coupon.objects.create(code='AYSE15', discount_value=Decimal('15'),
                              is_influencer_code=True, influencer_instagram='ayse')
        assert influencer_performance()[0]['revenue'] == 0.0

    def test_no_influencer_coupons(self):
        assert influencer_performance() == []


class TestEndpoints:
    @pytest.mark.parametrize('url', [
        '/api/admin/analytics/sales',
        '/api/admin/analytics/best-sellers',
        '/api/admin/analytics/comparison',
        '/api/admin/analytics/influencers',
    ])
    def test_anonymous_is_refused(self, client, url):
        response = client.get(url)
        assert response.status_code == 401
        assert response.json()['error'] == 'Authentication required'

    def test_customer_is_refused(self, customer_client):
        assert customer_client.get('/api/admin/analytics/sales').status_code == 403

    def test_sales_chart(self, admin_client, make_order):
        make_order(total='120.00')
        body = admin_client.get('/api/admin/analytics/sales?days=7').json()

        assert body['days'] == 7
        assert len(body['labels']) == 7
        assert body['totalOrders'] == 1
        assert body['totalRevenue'] == 120.0
        assert body['datasets'][0]['data'][-1] == 120.0

    @pytest.mark.parametrize('days', ['abc', '0', '400'])
    def test_bad_days(self, admin_client, days):
        response = admin_client.get(f'/api/admin/analytics/sales?days={days}')
        assert response.status_code == 400
        assert response.json()['error'].startswith('days must be')

    def test_best_sellers(self, admin_client, make_order):
        add_line(make_order(), 'Scarf', 2, '50.00')
        assert admin_client.get('/api/admin/analytics/best-sellers?limit=5').json()[0]['quantity'] == 2

    def test_comparison(self, admin_client):
        assert admin_client.get('/api/admin/analytics/comparison?days=14').json()['days'] == 14

    def test_influencers(self, admin_client):
        assert admin_client.get('/api/admin/analytics/influencers').json() == []
